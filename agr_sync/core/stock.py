"""Merge per-deposit stock rows and the reward catalog into one record per product."""
import logging
from datetime import datetime
from typing import Iterable

from agr_sync.parse.models import ProductRow, RewardRow, StockItem
from agr_sync.parse.normalize import normalize, parse_count

logger = logging.getLogger(__name__)

# Normalized deposit name -> StockItem counter
LOCATION_FIELDS = {
    "DEPOSITO BETTICA": "stock_bettica",
    "DEPOSITO GRUPO GEN": "stock_grupogen",
    "DEPOSITO MONTEVERDE": "stock_monteverde",
    "DEPOSITO TOBAGO 1": "stock_tobago1",
}

CATALOG_FIELDS = ("cost", "price", "points", "status")


def reconcile_stock(
    products: Iterable[ProductRow],
    rewards: Iterable[RewardRow],
    captured_at: datetime,
) -> list[StockItem]:
    """
    One StockItem per normalized description.

    The first row seen for a description supplies the canonical
    description and category. Deposits outside LOCATION_FIELDS are ignored.
    """
    catalog = {normalize(r.description): r for r in rewards}
    items: dict[str, StockItem] = {}
    unknown_locations: set[str] = set()

    for product in products:
        key = normalize(product.description)
        item = items.get(key)
        if item is None:
            item = StockItem(
                description=product.description,
                category=product.category,
                captured_at=captured_at,
            )
            items[key] = item

        field = LOCATION_FIELDS.get(normalize(product.deposit_location))
        if field is None:
            unknown_locations.add(product.deposit_location)
            continue
        setattr(item, field, getattr(item, field) + parse_count(product.stock_text))

    for key, item in items.items():
        item.stock_total = (
            item.stock_bettica + item.stock_grupogen + item.stock_monteverde + item.stock_tobago1
        )
        reward = catalog.get(key)
        if reward is not None:
            for name in CATALOG_FIELDS:
                setattr(item, name, getattr(reward, name))

    if unknown_locations:
        logger.warning(f"Ignored stock at unknown deposits: {sorted(unknown_locations)}")

    matched = sum(1 for key in items if key in catalog)
    logger.info(f"Reconciled {len(items)} products ({matched} with catalog data)")
    return list(items.values())
