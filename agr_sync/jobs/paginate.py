"""Pagination strategies for portal tables."""
import logging
from dataclasses import dataclass
from typing import Any, Callable

from agr_sync.config import config
from agr_sync.parse.table import discover_total_pages

logger = logging.getLogger(__name__)

ROWS_SELECTOR = "tbody tr"

UrlBuilder = Callable[[int], str]
PageParser = Callable[[str], list[Any]]


@dataclass
class FixedTotalPages:
    """
    Read the page count from the pagination control on page 1, then walk every page.

    Used by the stock and reward tables, whose pagination control lists all pages.
    """

    name: str
    url_for: UrlBuilder
    parse: PageParser
    pages_visited: int = 0

    async def scrape(self, session) -> list[Any]:
        self.pages_visited = 0
        html = await self._load(session, 1)
        total_pages = discover_total_pages(html)
        logger.info(f"[{self.name}] Detected {total_pages} pages")

        rows: list[Any] = []
        for page_number in range(1, total_pages + 1):
            if page_number > 1:
                html = await self._load(session, page_number)
            if html is None:
                logger.info(f"[{self.name}]   -> page {page_number}: no rows")
                continue
            page_rows = self.parse(html)
            logger.info(f"[{self.name}]   -> page {page_number}: {len(page_rows)} rows")
            rows.extend(page_rows)
        return rows

    async def _load(self, session, page_number: int) -> str | None:
        """Page HTML, or None when the table never showed rows."""
        await session.fetch(self.url_for(page_number))
        self.pages_visited += 1
        if not await session.wait_for_selector(ROWS_SELECTOR, timeout=config.ROWS_TIMEOUT):
            # Page 1 may still carry the pagination control
            return await session.content() if page_number == 1 else None
        return await session.content()


@dataclass
class ShrinkingPageSize:
    """
    Walk pages until one is empty or shorter than page_size.

    Used by the movements table, which has no reliable page count.
    """

    name: str
    url_for: UrlBuilder
    parse: PageParser
    page_size: int
    max_pages: int = 0
    pages_visited: int = 0

    async def scrape(self, session) -> list[Any]:
        self.pages_visited = 0
        max_pages = self.max_pages or config.MAX_PAGES
        rows: list[Any] = []

        for page_number in range(1, max_pages + 1):
            url = self.url_for(page_number)
            logger.info(f"[{self.name}] Loading page {page_number} -> {url}")
            await session.fetch(url)
            self.pages_visited += 1

            if not await session.wait_for_selector(ROWS_SELECTOR, timeout=config.ROWS_TIMEOUT):
                break
            page_rows = self.parse(await session.content())
            if not page_rows:
                break
            rows.extend(page_rows)
            if len(page_rows) < self.page_size:
                break
        else:
            logger.warning(f"[{self.name}] Stopped at max_pages={max_pages}, results may be incomplete")

        logger.info(f"[{self.name}] Total rows extracted: {len(rows)}")
        return rows
