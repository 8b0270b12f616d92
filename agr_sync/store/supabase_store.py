"""Supabase-backed persistence gateway with batched writes and retries."""
import asyncio
import logging
from functools import partial
from typing import Any, Callable, Optional
from supabase import create_client, Client
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from agr_sync.config import config
from agr_sync.errors import PersistenceFailure
from agr_sync.store.gateway import SCRAPER_META, Record

logger = logging.getLogger(__name__)

PAGE_SIZE = 1000  # PostgREST default max rows per select


def _chunks(records: list[Record], size: int):
    for i in range(0, len(records), size):
        yield records[i : i + size]


class SupabaseGateway:
    """Implements the persistence gateway on Supabase tables (one table per collection)."""

    def __init__(self, batch_size: Optional[int] = None):
        if not config.SUPABASE_URL or not config.SUPABASE_SERVICE_ROLE:
            raise ValueError("Supabase configuration missing")
        self.batch_size = batch_size or config.BATCH_SIZE
        self.client: Optional[Client] = None

    async def __aenter__(self) -> "SupabaseGateway":
        try:
            self.client = create_client(config.SUPABASE_URL, config.SUPABASE_SERVICE_ROLE)
        except Exception as e:
            raise PersistenceFailure(f"Supabase client creation failed: {e}") from e
        logger.debug("Supabase client created")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.client = None
        logger.debug("Supabase client released")

    async def _run(self, operation: str, func: Callable[..., Any], *args) -> Any:
        """Run a sync Supabase call in the thread pool, wrapping failures."""
        if self.client is None:
            raise PersistenceFailure("Supabase gateway used outside its context")
        loop = asyncio.get_event_loop()
        try:
            return await loop.run_in_executor(None, partial(func, *args))
        except Exception as e:
            logger.error(f"Supabase {operation} error: {e}")
            raise PersistenceFailure(f"{operation} failed: {e}") from e

    def _execute(self, query) -> Any:
        """Single attempt. Used for inserts, which are not safe to repeat."""
        return query.execute()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type((Exception,)),
        reraise=True,
    )
    def _execute_idempotent(self, query) -> Any:
        """Synchronous execute with retries for selects, deletes and upserts."""
        return query.execute()

    async def delete_all(self, collection: str) -> None:
        query = self.client.table(collection).delete().not_.is_("id", "null")
        await self._run(f"delete_all({collection})", self._execute_idempotent, query)
        logger.info(f"Cleared {collection}")

    async def delete_where(self, collection: str, field: str, value: Any) -> None:
        query = self.client.table(collection).delete().eq(field, value)
        await self._run(f"delete_where({collection}.{field})", self._execute_idempotent, query)
        logger.info(f"Deleted {collection} rows where {field}={value}")

    async def insert_many(self, collection: str, records: list[Record], ordered: bool = True) -> int:
        """
        Insert records in batches.

        With ordered=False a failing batch does not stop later batches; the
        first failure is raised once every batch has been attempted.
        """
        if not records:
            return 0

        inserted = 0
        first_error: Optional[PersistenceFailure] = None
        for batch in _chunks(records, self.batch_size):
            query = self.client.table(collection).insert(batch)
            try:
                await self._run(f"insert_many({collection})", self._execute, query)
                inserted += len(batch)
            except PersistenceFailure as e:
                if ordered:
                    raise
                first_error = first_error or e

        if first_error:
            raise first_error
        logger.info(f"Inserted {inserted} rows into {collection}")
        return inserted

    async def find_all(self, collection: str) -> list[Record]:
        rows: list[Record] = []
        start = 0
        while True:
            query = self.client.table(collection).select("*").range(start, start + PAGE_SIZE - 1)
            response = await self._run(f"find_all({collection})", self._execute_idempotent, query)
            page = response.data or []
            rows.extend(page)
            if len(page) < PAGE_SIZE:
                break
            start += PAGE_SIZE
        return rows

    async def find_by_id(self, collection: str, record_id: str) -> Optional[Record]:
        query = self.client.table(collection).select("*").eq("id", record_id).limit(1)
        response = await self._run(f"find_by_id({collection})", self._execute_idempotent, query)
        return response.data[0] if response.data else None

    async def upsert_by_id(self, collection: str, record_id: str, fields: Record) -> None:
        await self.upsert_many(collection, [{**fields, "id": record_id}])

    async def upsert_many(self, collection: str, records: list[Record]) -> int:
        if not records:
            return 0
        for batch in _chunks(records, self.batch_size):
            query = self.client.table(collection).upsert(batch, on_conflict="id")
            await self._run(f"upsert_many({collection})", self._execute_idempotent, query)
        logger.info(f"Upserted {len(records)} rows into {collection}")
        return len(records)

    async def test_connection(self) -> bool:
        """One cheap select against the rollover metadata table, no retries."""
        try:
            query = self.client.table(SCRAPER_META).select("id").limit(1)
            await self._run("test_connection", self._execute, query)
            logger.info("Supabase connection successful")
            return True
        except PersistenceFailure as e:
            logger.error(f"Supabase connection test failed: {e}")
            return False


async def supabase_connected() -> bool:
    """Open a gateway and run test_connection; False when unconfigured or unreachable."""
    try:
        async with SupabaseGateway() as store:
            return await store.test_connection()
    except (ValueError, PersistenceFailure) as e:
        logger.warning(f"Supabase unavailable: {e}")
        return False
