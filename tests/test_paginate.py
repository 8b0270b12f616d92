"""Tests for the two pagination strategies."""
import asyncio

import pytest
from playwright.async_api import Error as PlaywrightError

from agr_sync.errors import NavigationFailure
from agr_sync.fetch.browser import BrowserSession
from agr_sync.jobs.items import parse_products_page
from agr_sync.jobs.movements import parse_movements_page
from agr_sync.jobs.paginate import FixedTotalPages, ShrinkingPageSize

from conftest import FakeSession, movement_table, product_table


def _movement_rows(count: int, page: int) -> list[tuple]:
    return [
        (f"0{page}/11/2025", "TOBAGO", "Egreso", f"D{page}-{i}", "Otro", "A", "B", str(i + 1))
        for i in range(count)
    ]


def _page_of(url: str) -> int:
    return int(url.rsplit("page=", 1)[1].split("&")[0])


def test_shrinking_stops_on_short_page():
    """A page shorter than page_size is the last one."""
    sizes = {1: 3, 2: 3, 3: 1}
    session = FakeSession(lambda url: movement_table(_movement_rows(sizes.get(_page_of(url), 0), _page_of(url))))
    strategy = ShrinkingPageSize("MOV", lambda p: f"https://portal.test/mov?page={p}", parse_movements_page, page_size=3)

    rows = asyncio.run(strategy.scrape(session))

    assert len(rows) == 7
    assert strategy.pages_visited == 3
    assert rows[0].document_ref == "D1-0"
    assert rows[-1].document_ref == "D3-0"


def test_shrinking_stops_on_empty_page():
    """A page without rows ends the walk even when the previous page was full."""
    sizes = {1: 2, 2: 2}
    session = FakeSession(lambda url: movement_table(_movement_rows(sizes.get(_page_of(url), 0), _page_of(url))))
    strategy = ShrinkingPageSize("MOV", lambda p: f"https://portal.test/mov?page={p}", parse_movements_page, page_size=2)

    rows = asyncio.run(strategy.scrape(session))

    assert len(rows) == 4
    assert strategy.pages_visited == 3


def test_shrinking_respects_max_pages():
    """max_pages caps an endless table."""
    session = FakeSession(lambda url: movement_table(_movement_rows(2, _page_of(url))))
    strategy = ShrinkingPageSize(
        "MOV", lambda p: f"https://portal.test/mov?page={p}", parse_movements_page, page_size=2, max_pages=4
    )

    rows = asyncio.run(strategy.scrape(session))

    assert len(rows) == 8
    assert strategy.pages_visited == 4


def test_fixed_total_pages_walks_every_page():
    """Page count comes from page 1; empty pages in between contribute nothing."""
    pages = {
        1: product_table([("Cafe", "Bebidas", "Todo", "DEPOSITO BETTICA", "1")], total_pages=3),
        2: "<html><body><p>sin resultados</p></body></html>",
        3: product_table([("Te", "Bebidas", "Todo", "DEPOSITO MONTEVERDE", "2")], total_pages=3),
    }
    session = FakeSession(lambda url: pages[_page_of(url)])
    strategy = FixedTotalPages("ITEMS", lambda p: f"https://portal.test/stock?page={p}", parse_products_page)

    rows = asyncio.run(strategy.scrape(session))

    assert [r.description for r in rows] == ["Cafe", "Te"]
    assert strategy.pages_visited == 3


def test_fixed_total_pages_ignores_rows_after_total():
    """Pages beyond the discovered total are never requested."""
    session = FakeSession(
        lambda url: product_table([("Cafe", "Bebidas", "Todo", "DEPOSITO BETTICA", "1")], total_pages=1)
    )
    strategy = FixedTotalPages("ITEMS", lambda p: f"https://portal.test/stock?page={p}", parse_products_page)

    rows = asyncio.run(strategy.scrape(session))

    assert len(rows) == 1
    assert session.visited == ["https://portal.test/stock?page=1"]


def test_navigation_failure_aborts_scrape():
    """A page that fails to load after retries aborts the whole scrape."""

    class BrokenSession(FakeSession):
        async def fetch(self, url, wait_until="domcontentloaded", timeout=None):
            if _page_of(url) == 2:
                raise NavigationFailure(url, "net::ERR_CONNECTION_RESET")
            return await super().fetch(url)

    session = BrokenSession(lambda url: movement_table(_movement_rows(2, _page_of(url))))
    strategy = ShrinkingPageSize("MOV", lambda p: f"https://portal.test/mov?page={p}", parse_movements_page, page_size=2)

    with pytest.raises(NavigationFailure):
        asyncio.run(strategy.scrape(session))


class _FlakyPage:
    """Page double whose goto fails a fixed number of times."""

    def __init__(self, failures: int):
        self.failures = failures
        self.calls = 0

    async def goto(self, url, wait_until=None, timeout=None):
        self.calls += 1
        if self.calls <= self.failures:
            raise PlaywrightError("net::ERR_TIMED_OUT")


def test_browser_fetch_retries_then_succeeds():
    """Transient navigation errors are retried within the budget."""
    session = BrowserSession(retries=2, retry_delay=0, nav_timeout=1)
    session.page = _FlakyPage(failures=2)

    asyncio.run(session.fetch("https://portal.test/a"))

    assert session.page.calls == 3
    assert session.navigations == 1


def test_browser_fetch_exhausts_retries():
    """Exhausted retries surface as NavigationFailure."""
    session = BrowserSession(retries=2, retry_delay=0, nav_timeout=1)
    session.page = _FlakyPage(failures=5)

    with pytest.raises(NavigationFailure) as exc:
        asyncio.run(session.fetch("https://portal.test/a"))

    assert session.page.calls == 3
    assert exc.value.url == "https://portal.test/a"
