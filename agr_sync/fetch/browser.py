"""Headless browser session with navigation retries."""
import logging
from typing import Optional

from playwright.async_api import (
    Browser,
    Error as PlaywrightError,
    Page,
    Playwright,
    Route,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from agr_sync.config import config
from agr_sync.errors import NavigationFailure

logger = logging.getLogger(__name__)

CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-extensions",
    "--disable-background-networking",
    "--disable-background-timer-throttling",
    "--disable-backgrounding-occluded-windows",
    "--disable-renderer-backgrounding",
]

BLOCKED_RESOURCES = ("image",)


async def _block_heavy_resources(route: Route) -> None:
    if route.request.resource_type in BLOCKED_RESOURCES:
        await route.abort()
    else:
        await route.continue_()


class BrowserSession:
    """One Chromium page driven through Playwright; use as an async context manager."""

    def __init__(
        self,
        headless: Optional[bool] = None,
        retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        nav_timeout: Optional[float] = None,
    ):
        self.headless = config.HEADLESS if headless is None else headless
        self.retries = config.NAV_RETRIES if retries is None else retries
        self.retry_delay = config.NAV_RETRY_DELAY if retry_delay is None else retry_delay
        self.nav_timeout_ms = int((nav_timeout or config.NAV_TIMEOUT) * 1000)
        self._playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.page: Optional[Page] = None
        self.navigations = 0

    async def __aenter__(self) -> "BrowserSession":
        self._playwright = await async_playwright().start()
        logger.info(f"Launching Chromium (headless={self.headless}, executable={config.CHROME_PATH or 'bundled'})")
        self.browser = await self._playwright.chromium.launch(
            headless=self.headless,
            executable_path=config.CHROME_PATH or None,
            args=CHROMIUM_ARGS,
        )
        self.page = await self.browser.new_page()
        self.page.set_default_timeout(self.nav_timeout_ms)
        self.page.set_default_navigation_timeout(self.nav_timeout_ms)
        await self.page.route("**/*", _block_heavy_resources)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.browser:
            try:
                await self.browser.close()
            except PlaywrightError as e:
                logger.error(f"Error closing browser: {e}")
        if self._playwright:
            await self._playwright.stop()
        self.browser = None
        self.page = None
        self._playwright = None

    async def fetch(self, url: str, wait_until: str = "domcontentloaded", timeout: Optional[float] = None) -> Page:
        """
        Navigate to url, retrying on navigation errors.

        Raises NavigationFailure once retries are exhausted.
        """
        timeout_ms = int(timeout * 1000) if timeout else self.nav_timeout_ms
        attempts = self.retries + 1
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(attempts),
                wait=wait_fixed(self.retry_delay),
                retry=retry_if_exception_type(PlaywrightError),
                reraise=True,
            ):
                with attempt:
                    number = attempt.retry_state.attempt_number
                    if number > 1:
                        logger.warning(f"goto retry {number}/{attempts} -> {url}")
                    await self.page.goto(url, wait_until=wait_until, timeout=timeout_ms)
        except PlaywrightError as e:
            raise NavigationFailure(url, str(e)) from e
        self.navigations += 1
        return self.page

    async def wait_for_selector(self, selector: str, timeout: Optional[float] = None) -> bool:
        """True when selector appears within timeout, False on timeout."""
        timeout_ms = int((timeout or config.ROWS_TIMEOUT) * 1000)
        try:
            await self.page.wait_for_selector(selector, timeout=timeout_ms)
            return True
        except PlaywrightTimeoutError:
            return False

    async def has_selector(self, selector: str) -> bool:
        return await self.page.query_selector(selector) is not None

    async def content(self) -> str:
        return await self.page.content()

    async def type(self, selector: str, text: str) -> None:
        await self.page.fill(selector, text)

    async def submit(self, selector: str, wait_until: str = "domcontentloaded", timeout: Optional[float] = None) -> None:
        """Click selector and wait for the navigation it triggers."""
        timeout_ms = int(timeout * 1000) if timeout else self.nav_timeout_ms
        try:
            async with self.page.expect_navigation(wait_until=wait_until, timeout=timeout_ms):
                await self.page.click(selector)
        except PlaywrightError as e:
            raise NavigationFailure(self.page.url, f"submit {selector}: {e}") from e
