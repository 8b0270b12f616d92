"""Detect the portal login form in rendered pages."""
import logging

from selectolax.parser import HTMLParser

logger = logging.getLogger(__name__)

USERNAME_SELECTOR = "input#Username.form-control.form-icon-input"
PASSWORD_SELECTOR = "input#Password.form-control.form-icon-input"
SUBMIT_SELECTOR = "button[type='submit']"


def is_login_form(html: str | None) -> bool:
    """
    True when the page still shows the login form.

    The username input alone is enough; a password input next to a submit
    button counts as well in case the username id changes.
    """
    if not html:
        return False

    parser = HTMLParser(html)
    if parser.css_first("input#Username") is not None:
        return True
    return (
        parser.css_first("input[type='password']") is not None
        and parser.css_first(SUBMIT_SELECTOR) is not None
    )
