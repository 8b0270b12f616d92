"""Movements job: scrape the month's transactions, aggregate coffee outflows, feed the ledger."""
import logging
from datetime import datetime
from typing import Callable, Optional

from agr_sync.auth.session import PortalLogin
from agr_sync.config import config
from agr_sync.core.classify import build_coffee_aggregates, build_ledger_entries, classify_and_bucket
from agr_sync.core.periods import date_window, local_now, month_key
from agr_sync.fetch.browser import BrowserSession
from agr_sync.fetch.endpoints import get_movements_url
from agr_sync.jobs.metrics_exporter import JobMetrics, MetricsExporter
from agr_sync.jobs.paginate import ShrinkingPageSize
from agr_sync.jobs.rollover import RolloverManager
from agr_sync.parse.models import MovementRow, OtherItemRecord
from agr_sync.parse.normalize import parse_count
from agr_sync.parse.table import MOVEMENT_COLUMNS, extract_rows
from agr_sync.store.gateway import COFFEE_MOVEMENTS, MOVEMENTS, OTHER_ITEMS, replace_live
from agr_sync.store.supabase_store import SupabaseGateway

logger = logging.getLogger(__name__)


def parse_movements_page(html: str) -> list[MovementRow]:
    """Movement rows of one page; rows with empty cells are kept."""
    rows = []
    for raw in extract_rows(html, MOVEMENT_COLUMNS):
        raw["quantity"] = parse_count(raw.get("quantity"))
        rows.append(MovementRow(**raw))
    return rows


async def scrape_movements(session, window, page_size: Optional[int] = None) -> tuple[list[MovementRow], int]:
    """All movement rows in the window and the number of pages visited."""
    page_size = page_size or config.MOVEMENTS_PAGE_SIZE
    strategy = ShrinkingPageSize(
        name="MOV",
        url_for=lambda page: get_movements_url(window, page, page_size),
        parse=parse_movements_page,
        page_size=page_size,
    )
    rows = await strategy.scrape(session)
    return rows, strategy.pages_visited


async def run_movements_job(
    gateway_factory: Callable = SupabaseGateway,
    session_factory: Callable = BrowserSession,
    exporter: Optional[MetricsExporter] = None,
    now: Optional[datetime] = None,
) -> JobMetrics:
    """Full movements pipeline. Raises on any fatal error."""
    now = now or local_now()
    month = month_key(now)
    window = date_window(now)
    metrics = JobMetrics(job="movements", month=month)

    logger.info(f"[MOV] Window {window.start_param} -> {window.end_param} (period {month})")
    async with gateway_factory() as store:
        async with session_factory() as session:
            await PortalLogin(session).login()

            outcome = await RolloverManager(store).check(month)
            metrics.archived = outcome.archived

            rows, metrics.pages = await scrape_movements(session, window)
            metrics.rows = len(rows)

        captured_at = local_now()
        buckets, other_rows = classify_and_bucket(rows)

        coffee_docs = [
            doc.model_dump(mode="json") for doc in build_coffee_aggregates(buckets, captured_at, month)
        ]
        metrics.coffee_aggregates = await replace_live(store, COFFEE_MOVEMENTS, coffee_docs)
        logger.info(f"[MOV] Inserted into {COFFEE_MOVEMENTS}: {metrics.coffee_aggregates}")

        other_docs = [
            OtherItemRecord(**row.model_dump(), captured_at=captured_at, period_month=month).model_dump(mode="json")
            for row in other_rows
        ]
        metrics.other_items = await replace_live(store, OTHER_ITEMS, other_docs)
        logger.info(f"[MOV] Inserted into {OTHER_ITEMS}: {metrics.other_items}")

        ledger = [entry.model_dump(mode="json") for entry in build_ledger_entries(rows, month, captured_at)]
        metrics.ledger_upserts = await store.upsert_many(MOVEMENTS, ledger)
        logger.info(f"[MOV] Ledger upserts: {metrics.ledger_upserts}")

    if exporter:
        await exporter.export(metrics)
    return metrics
