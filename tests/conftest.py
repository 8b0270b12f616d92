"""Shared fakes and HTML builders for tests."""
import itertools
from typing import Any, Callable, Optional

import pytest
from selectolax.parser import HTMLParser

from agr_sync.config import config
from agr_sync.errors import PersistenceFailure

LOGIN_FORM_HTML = """
<html><body><form>
<input id="Username" class="form-control form-icon-input" name="Username">
<input id="Password" class="form-control form-icon-input" type="password" name="Password">
<button type="submit">Ingresar</button>
</form></body></html>
"""

HOME_HTML = "<html><body><h1>Panel</h1></body></html>"


def movement_table(rows: list[tuple]) -> str:
    """rows: (date, entity, movement, document, reward, source, dest, quantity)."""
    body = []
    for date, entity, movement, document, reward, source, dest, quantity in rows:
        body.append(
            "<tr>"
            f"<td>{date}</td><td>{entity}</td><td>{movement}</td>"
            f"<td><a href='/doc'>{document}</a></td>"
            f"<td><a href='/reward'>{reward}</a></td>"
            f"<td>{source}</td><td>{dest}</td><td>{quantity}</td>"
            "</tr>"
        )
    return f"<html><body><table><tbody>{''.join(body)}</tbody></table></body></html>"


def pagination(total: int) -> str:
    buttons = "".join(f"<li><button class='page'>{n}</button></li>" for n in range(1, total + 1))
    return f"<ul class='pagination'>{buttons}<li><button class='next'>&raquo;</button></li></ul>"


def product_table(rows: list[tuple], total_pages: int = 1) -> str:
    """rows: (description, category, season, location, stock)."""
    body = []
    for description, category, season, location, stock in rows:
        body.append(
            "<tr class='news-item'>"
            "<td>x</td><td><img src='a.png'></td>"
            f"<td><p>{description}</p><small>sku</small></td>"
            f"<td>{category}</td><td>{season}</td><td>-</td>"
            f"<td>{location}</td><td>-</td><td>{stock}</td>"
            "</tr>"
        )
    return (
        f"<html><body><table><tbody>{''.join(body)}</tbody></table>"
        f"{pagination(total_pages)}</body></html>"
    )


def reward_table(rows: list[tuple], total_pages: int = 1) -> str:
    """rows: (description, category, cost, price, points, status)."""
    body = []
    for description, category, cost, price, points, status in rows:
        body.append(
            "<tr>"
            "<td>1</td><td>img</td>"
            f"<td><p>{description}</p></td><td>{category}</td><td>-</td>"
            f"<td>{cost}</td><td>{price}</td><td>{points}</td><td>{status}</td>"
            "</tr>"
        )
    return (
        f"<html><body><table><tbody>{''.join(body)}</tbody></table>"
        f"{pagination(total_pages)}</body></html>"
    )


class FakeSession:
    """Scripted stand-in for BrowserSession; route(url) returns the page HTML."""

    def __init__(self, route: Callable[[str], Optional[str]], login_ok: bool = True):
        self.route = route
        self.login_ok = login_ok
        self.visited: list[str] = []
        self.typed: dict[str, str] = {}
        self.current = ""
        self.opened = 0
        self.closed = 0

    async def __aenter__(self):
        self.opened += 1
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.closed += 1

    async def fetch(self, url, wait_until="domcontentloaded", timeout=None):
        self.visited.append(url)
        if url.rstrip("/") == config.BASE_URL.rstrip("/"):
            self.current = LOGIN_FORM_HTML
        else:
            self.current = self.route(url) or "<html><body></body></html>"
        return self

    async def wait_for_selector(self, selector, timeout=None):
        return HTMLParser(self.current).css_first(selector) is not None

    async def has_selector(self, selector):
        return HTMLParser(self.current).css_first(selector) is not None

    async def content(self):
        return self.current

    async def type(self, selector, text):
        self.typed[selector] = text

    async def submit(self, selector, wait_until="domcontentloaded", timeout=None):
        self.current = HOME_HTML if self.login_ok else LOGIN_FORM_HTML


class FakeGateway:
    """In-memory persistence gateway."""

    def __init__(self, data: Optional[dict[str, list[dict]]] = None, fail_on: tuple = ()):
        self.data: dict[str, list[dict]] = {k: [dict(r) for r in v] for k, v in (data or {}).items()}
        self.fail_on = set(fail_on)
        self.calls: list[tuple[str, str]] = []
        self._ids = itertools.count(1000)
        self.opened = 0
        self.closed = 0

    async def __aenter__(self):
        self.opened += 1
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.closed += 1

    def _check(self, operation: str, collection: str) -> None:
        self.calls.append((operation, collection))
        if (operation, collection) in self.fail_on:
            raise PersistenceFailure(f"{operation}({collection}) failed")

    def rows(self, collection: str) -> list[dict]:
        return self.data.setdefault(collection, [])

    async def delete_all(self, collection):
        self._check("delete_all", collection)
        self.data[collection] = []

    async def delete_where(self, collection, field, value):
        self._check("delete_where", collection)
        self.data[collection] = [r for r in self.rows(collection) if r.get(field) != value]

    async def insert_many(self, collection, records, ordered=True):
        self._check("insert_many", collection)
        for record in records:
            row = dict(record)
            row.setdefault("id", next(self._ids))
            self.rows(collection).append(row)
        return len(records)

    async def find_all(self, collection):
        self._check("find_all", collection)
        return [dict(r) for r in self.rows(collection)]

    async def find_by_id(self, collection, record_id):
        self._check("find_by_id", collection)
        return next((dict(r) for r in self.rows(collection) if r.get("id") == record_id), None)

    async def upsert_by_id(self, collection, record_id, fields):
        await self.upsert_many(collection, [{**fields, "id": record_id}])

    async def upsert_many(self, collection, records):
        self._check("upsert_many", collection)
        rows = self.rows(collection)
        for record in records:
            existing = next((r for r in rows if r.get("id") == record["id"]), None)
            if existing is None:
                rows.append(dict(record))
            else:
                existing.update(record)
        return len(records)


@pytest.fixture
def credentials(monkeypatch):
    monkeypatch.setattr(config, "AGR_EMAIL", "ops@example.com")
    monkeypatch.setattr(config, "AGR_PASSWORD", "secret")
    monkeypatch.setattr(config, "ROWS_TIMEOUT", 1)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


def factory(instance: Any) -> Callable[[], Any]:
    """Wrap a fake so jobs can call it like a class."""
    return lambda: instance
