"""Items job: scrape stock per deposit and the reward catalog, store one record per product."""
import logging
from datetime import datetime
from typing import Callable, Optional

from agr_sync.auth.session import PortalLogin
from agr_sync.config import config
from agr_sync.core.periods import local_now
from agr_sync.core.stock import reconcile_stock
from agr_sync.fetch.browser import BrowserSession
from agr_sync.fetch.endpoints import get_rewards_url, get_stocks_url
from agr_sync.jobs.metrics_exporter import JobMetrics, MetricsExporter
from agr_sync.jobs.paginate import FixedTotalPages
from agr_sync.parse.models import ProductRow, RewardRow
from agr_sync.parse.table import (
    PRODUCT_COLUMNS,
    PRODUCT_REQUIRED,
    PRODUCT_ROW_SELECTOR,
    REWARD_COLUMNS,
    REWARD_REQUIRED,
    extract_rows,
)
from agr_sync.store.gateway import AGR_ITEMS, replace_live
from agr_sync.store.supabase_store import SupabaseGateway

logger = logging.getLogger(__name__)


def parse_products_page(html: str) -> list[ProductRow]:
    rows = extract_rows(html, PRODUCT_COLUMNS, row_selector=PRODUCT_ROW_SELECTOR, required=PRODUCT_REQUIRED)
    return [ProductRow(**row) for row in rows]


def parse_rewards_page(html: str) -> list[RewardRow]:
    rows = extract_rows(html, REWARD_COLUMNS, required=REWARD_REQUIRED)
    return [RewardRow(**row) for row in rows]


async def run_items_job(
    gateway_factory: Callable = SupabaseGateway,
    session_factory: Callable = BrowserSession,
    exporter: Optional[MetricsExporter] = None,
    now: Optional[datetime] = None,
) -> JobMetrics:
    """Full items pipeline. Raises on any fatal error."""
    page_size = config.ITEMS_PAGE_SIZE
    metrics = JobMetrics(job="items")

    products_strategy = FixedTotalPages(
        name="ITEMS/products",
        url_for=lambda page: get_stocks_url(page, page_size),
        parse=parse_products_page,
    )
    rewards_strategy = FixedTotalPages(
        name="ITEMS/rewards",
        url_for=lambda page: get_rewards_url(page, page_size),
        parse=parse_rewards_page,
    )

    async with gateway_factory() as store:
        async with session_factory() as session:
            await PortalLogin(session).login()
            products = await products_strategy.scrape(session)
            rewards = await rewards_strategy.scrape(session)

        metrics.pages = products_strategy.pages_visited + rewards_strategy.pages_visited
        metrics.rows = len(products) + len(rewards)
        logger.info(f"[ITEMS] Products: {len(products)}, rewards: {len(rewards)}")

        items = reconcile_stock(products, rewards, now or local_now())
        docs = [item.model_dump(mode="json") for item in items]
        metrics.items = await replace_live(store, AGR_ITEMS, docs)
        logger.info(f"[ITEMS] Stored {metrics.items} items in {AGR_ITEMS}")

    if exporter:
        await exporter.export(metrics)
    return metrics
