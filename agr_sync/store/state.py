"""SQLite state database for tracking job runs."""
import aiosqlite
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from agr_sync.config import STATE_DB

logger = logging.getLogger(__name__)


class RunStateDB:
    """SQLite database recording the outcome of every job trigger."""

    def __init__(self, db_path: Path = STATE_DB):
        self.db_path = db_path

    async def initialize(self) -> None:
        """Create tables if they don't exist."""
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS job_runs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    job TEXT NOT NULL,
                    status TEXT NOT NULL,
                    started_at TIMESTAMP NOT NULL,
                    finished_at TIMESTAMP,
                    error TEXT
                )
                """
            )
            await db.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_job_runs_job ON job_runs(job, started_at)
                """
            )
            await db.commit()
            logger.info(f"State database initialized at {self.db_path}")

    async def record_run(
        self,
        job: str,
        started_at: datetime,
        finished_at: datetime,
        ok: bool,
        skipped: bool = False,
        error: Optional[str] = None,
    ) -> None:
        """Store one run outcome (ok, failed or skipped)."""
        status = "skipped" if skipped else ("ok" if ok else "failed")
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                INSERT INTO job_runs (job, status, started_at, finished_at, error)
                VALUES (?, ?, ?, ?, ?)
                """,
                (job, status, started_at.isoformat(), finished_at.isoformat(), error[:500] if error else None),
            )
            await db.commit()

    async def recent_runs(self, limit: int = 20) -> list[dict]:
        """Most recent runs first."""
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                """
                SELECT job, status, started_at, finished_at, error FROM job_runs
                ORDER BY id DESC LIMIT ?
                """,
                (limit,),
            )
            return [dict(row) for row in await cursor.fetchall()]

    async def last_success(self, job: str) -> Optional[str]:
        """finished_at of the last successful run of a job."""
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                """
                SELECT finished_at FROM job_runs
                WHERE job = ? AND status = 'ok'
                ORDER BY id DESC LIMIT 1
                """,
                (job,),
            )
            row = await cursor.fetchone()
            return row[0] if row else None
