"""Persistence gateway contract and collection names."""
from typing import Any, Optional, Protocol

# Live snapshots, replaced on every run
COFFEE_MOVEMENTS = "coffee_movements"
OTHER_ITEMS = "other_items"
AGR_ITEMS = "agr_items"

# Monthly archives
COFFEE_MOVEMENTS_HISTORY = "coffee_movements_history"
OTHER_ITEMS_HISTORY = "other_items_history"

# Permanent ledger keyed by derived id
MOVEMENTS = "movements"

# Singleton rollover metadata
SCRAPER_META = "scraper_meta"
SCRAPER_META_ID = "scraper-meta"

Record = dict[str, Any]


class PersistenceGateway(Protocol):
    """Document-store operations used by the jobs."""

    async def __aenter__(self) -> "PersistenceGateway": ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None: ...

    async def delete_all(self, collection: str) -> None: ...

    async def delete_where(self, collection: str, field: str, value: Any) -> None: ...

    async def insert_many(self, collection: str, records: list[Record], ordered: bool = True) -> int: ...

    async def find_all(self, collection: str) -> list[Record]: ...

    async def find_by_id(self, collection: str, record_id: str) -> Optional[Record]: ...

    async def upsert_by_id(self, collection: str, record_id: str, fields: Record) -> None: ...

    async def upsert_many(self, collection: str, records: list[Record]) -> int: ...


async def replace_live(store: PersistenceGateway, collection: str, records: list[Record]) -> int:
    """Replace a live snapshot: delete everything, then insert records."""
    await store.delete_all(collection)
    if not records:
        return 0
    return await store.insert_many(collection, records, ordered=False)
