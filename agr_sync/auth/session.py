"""Portal login through the browser session."""
import logging
from typing import Optional

from agr_sync.auth.login_detector import (
    PASSWORD_SELECTOR,
    SUBMIT_SELECTOR,
    USERNAME_SELECTOR,
    is_login_form,
)
from agr_sync.config import config
from agr_sync.errors import AuthenticationFailure, NavigationFailure
from agr_sync.fetch.endpoints import get_login_url

logger = logging.getLogger(__name__)


class PortalLogin:
    """Fills and submits the AGR Cloud login form."""

    def __init__(self, session, email: Optional[str] = None, password: Optional[str] = None):
        self.session = session
        self.email = email or config.AGR_EMAIL
        self.password = password or config.AGR_PASSWORD

    async def login(self) -> None:
        """Log in or raise AuthenticationFailure / NavigationFailure."""
        if not self.email or not self.password:
            raise ValueError("AGR_EMAIL and AGR_PASSWORD are required to log in")

        url = get_login_url()
        await self.session.fetch(url)

        if not await self.session.wait_for_selector(USERNAME_SELECTOR, timeout=config.LOGIN_TIMEOUT):
            raise NavigationFailure(url, "login form not found")

        logger.info(f"Logging in as {self.email}...")
        await self.session.type(USERNAME_SELECTOR, self.email)
        await self.session.type(PASSWORD_SELECTOR, self.password)
        await self.session.submit(SUBMIT_SELECTOR)

        if await self.session.has_selector(USERNAME_SELECTOR) or is_login_form(await self.session.content()):
            logger.error("Login failed: form still present after submit")
            raise AuthenticationFailure("Login failed: form still present after submit")

        logger.info("Login OK")
