"""Job runner: single-flight lock, deadlines and structured results."""
import asyncio
import logging
import time
from datetime import datetime
from typing import Awaitable, Callable, Optional

import aiosqlite

from agr_sync.config import config
from agr_sync.errors import RunTimeout
from agr_sync.fetch.browser import BrowserSession
from agr_sync.jobs.items import run_items_job
from agr_sync.jobs.lock import SingleFlight
from agr_sync.jobs.metrics_exporter import MetricsExporter
from agr_sync.jobs.movements import run_movements_job
from agr_sync.parse.models import RunResult
from agr_sync.store.state import RunStateDB
from agr_sync.store.supabase_store import SupabaseGateway

logger = logging.getLogger(__name__)

MOVEMENTS = "movements"
ITEMS = "items"
ALL = "all"


def format_elapsed(seconds: float) -> str:
    """Human-readable duration: '1h 2m 3s', '2m 3s' or '3s'."""
    s = int(seconds)
    h, rem = divmod(s, 3600)
    m, ss = divmod(rem, 60)
    if h:
        return f"{h}h {m}m {ss}s"
    if m:
        return f"{m}m {ss}s"
    return f"{ss}s"


class JobRunner:
    """Runs scraper jobs one at a time and reports ok / failed / skipped."""

    def __init__(
        self,
        lock: Optional[SingleFlight] = None,
        state_db: Optional[RunStateDB] = None,
        exporter: Optional[MetricsExporter] = None,
        gateway_factory: Callable = SupabaseGateway,
        session_factory: Callable = BrowserSession,
    ):
        self.lock = lock or SingleFlight()
        self.state_db = state_db
        self.exporter = exporter
        self.gateway_factory = gateway_factory
        self.session_factory = session_factory
        self._state_ready = False

    async def run_exclusive(
        self,
        name: str,
        fn: Callable[[], Awaitable[object]],
        timeout: Optional[float] = None,
    ) -> RunResult:
        """Run fn under the lock with a deadline; never raises."""
        timeout = timeout or config.SCRAPER_TIMEOUT
        started_at = datetime.now()

        if not self.lock.try_acquire(name):
            running, running_for = self.lock.holder(name) or (None, None)
            logger.info(f"[LOCK] SKIP {name}: {running} running for {format_elapsed(running_for or 0)}")
            result = RunResult(ok=False, skipped=True, running=running, running_for_seconds=running_for)
            await self._record(name, started_at, result)
            return result

        start = time.monotonic()
        try:
            try:
                await asyncio.wait_for(fn(), timeout=timeout)
            except asyncio.TimeoutError as e:
                raise RunTimeout(name, timeout) from e
            logger.info(f"[LOCK] OK {name} ({format_elapsed(time.monotonic() - start)})")
            result = RunResult(ok=True)
        except Exception as e:
            logger.error(f"[LOCK] ERROR {name} ({format_elapsed(time.monotonic() - start)}): {e}", exc_info=True)
            result = RunResult(ok=False, error=str(e))
        finally:
            self.lock.release(name)

        await self._record(name, started_at, result)
        return result

    async def _record(self, name: str, started_at: datetime, result: RunResult) -> None:
        if not self.state_db:
            return
        try:
            await self._ensure_state()
            await self.state_db.record_run(
                name, started_at, datetime.now(), ok=result.ok, skipped=result.skipped, error=result.error
            )
        except aiosqlite.Error as e:
            logger.warning(f"Could not record {name} run: {e}")

    async def _ensure_state(self) -> None:
        if not self._state_ready:
            await self.state_db.initialize()
            self._state_ready = True

    async def recent_runs(self, limit: int = 20) -> list[dict]:
        if not self.state_db:
            return []
        await self._ensure_state()
        return await self.state_db.recent_runs(limit)

    async def last_successes(self) -> dict[str, Optional[str]]:
        """finished_at of the last successful run per job name."""
        if not self.state_db:
            return {}
        await self._ensure_state()
        return {job: await self.state_db.last_success(job) for job in (MOVEMENTS, ITEMS, ALL)}

    def _movements(self):
        return run_movements_job(self.gateway_factory, self.session_factory, self.exporter)

    def _items(self):
        return run_items_job(self.gateway_factory, self.session_factory, self.exporter)

    async def _all(self) -> None:
        await self._movements()
        await self._items()

    async def run_movements(self) -> RunResult:
        return await self.run_exclusive(MOVEMENTS, self._movements)

    async def run_items(self) -> RunResult:
        return await self.run_exclusive(ITEMS, self._items)

    async def run_all(self) -> RunResult:
        return await self.run_exclusive(ALL, self._all, timeout=config.RUN_ALL_TIMEOUT)

    def status(self) -> dict:
        holder = self.lock.holder()
        return {
            "current_job": holder[0] if holder else None,
            "running_for": format_elapsed(holder[1]) if holder else None,
        }


runner = JobRunner(state_db=RunStateDB(), exporter=MetricsExporter())


async def run_movements() -> RunResult:
    return await runner.run_movements()


async def run_items() -> RunResult:
    return await runner.run_items()


async def run_all() -> RunResult:
    return await runner.run_all()
