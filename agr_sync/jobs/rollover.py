"""Month rollover: archive live collections when the active period changes."""
import logging
from dataclasses import dataclass
from typing import Optional

from agr_sync.store.gateway import (
    COFFEE_MOVEMENTS,
    COFFEE_MOVEMENTS_HISTORY,
    OTHER_ITEMS,
    OTHER_ITEMS_HISTORY,
    SCRAPER_META,
    SCRAPER_META_ID,
    PersistenceGateway,
    Record,
)

logger = logging.getLogger(__name__)

# live collection -> history collection
ARCHIVED_COLLECTIONS = (
    (COFFEE_MOVEMENTS, COFFEE_MOVEMENTS_HISTORY),
    (OTHER_ITEMS, OTHER_ITEMS_HISTORY),
)


@dataclass
class RolloverOutcome:
    previous_month: Optional[str]
    current_month: str
    archived: dict[str, int]

    @property
    def month_changed(self) -> bool:
        return self.previous_month is not None and self.previous_month != self.current_month


def _history_copy(record: Record, period_month: str) -> Record:
    copy = {k: v for k, v in record.items() if k != "id"}
    copy["period_month"] = period_month
    return copy


class RolloverManager:
    """Tracks which month the live collections hold and archives them on change."""

    def __init__(self, store: PersistenceGateway):
        self.store = store

    async def stored_month(self) -> Optional[str]:
        meta = await self.store.find_by_id(SCRAPER_META, SCRAPER_META_ID)
        return meta.get("current_month") if meta else None

    async def check(self, month: str) -> RolloverOutcome:
        """
        Archive and clear live data if the stored month differs from month.

        Metadata only advances after archival succeeds, so a failed
        archival is retried by the next run.
        """
        previous = await self.stored_month()
        outcome = RolloverOutcome(previous_month=previous, current_month=month, archived={})

        if outcome.month_changed:
            logger.info(f"Month changed from {previous} to {month}. Archiving live data...")
            live = {name: await self.store.find_all(name) for name, _ in ARCHIVED_COLLECTIONS}
            logger.info(
                "Live to archive: " + ", ".join(f"{name}={len(rows)}" for name, rows in live.items())
            )

            for name, history in ARCHIVED_COLLECTIONS:
                records = live[name]
                await self.store.delete_where(history, "period_month", previous)
                if records:
                    await self.store.insert_many(history, [_history_copy(r, previous) for r in records])
                outcome.archived[name] = len(records)
                logger.info(f"Archived {len(records)} docs {name} -> {history} ({previous})")

            for name, _ in ARCHIVED_COLLECTIONS:
                await self.store.delete_all(name)
            logger.info("Live collections cleared")
        elif previous is None:
            logger.info(f"No rollover metadata yet, starting at {month}")

        await self.store.upsert_by_id(SCRAPER_META, SCRAPER_META_ID, {"current_month": month})
        return outcome
