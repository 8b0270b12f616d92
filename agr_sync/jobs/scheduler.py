"""Cron schedule for the scraper jobs."""
import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from agr_sync.config import config
from agr_sync.jobs.runner import JobRunner, runner as default_runner

logger = logging.getLogger(__name__)

MOVEMENTS_CRON = "*/30 * * * *"
ITEMS_CRON = "5 * * * *"


def build_scheduler(job_runner: Optional[JobRunner] = None, timezone: Optional[str] = None) -> AsyncIOScheduler:
    """Movements every 30 minutes, items hourly at minute 5; both go through the runner lock."""
    job_runner = job_runner or default_runner
    tz = timezone or config.CRON_TZ
    scheduler = AsyncIOScheduler(timezone=tz) if tz else AsyncIOScheduler()

    async def movements_tick() -> None:
        logger.info("[CRON] Movements (every 30 min)...")
        result = await job_runner.run_movements()
        if result.skipped:
            logger.info(f"[CRON] Movements SKIP: {result.running} already running")

    async def items_tick() -> None:
        logger.info("[CRON] Items (hourly)...")
        result = await job_runner.run_items()
        if result.skipped:
            logger.info(f"[CRON] Items SKIP: {result.running} already running")

    scheduler.add_job(
        movements_tick,
        CronTrigger.from_crontab(MOVEMENTS_CRON, timezone=tz),
        id="movements",
        max_instances=1,
        coalesce=True,
    )
    scheduler.add_job(
        items_tick,
        CronTrigger.from_crontab(ITEMS_CRON, timezone=tz),
        id="items",
        max_instances=1,
        coalesce=True,
    )
    return scheduler
