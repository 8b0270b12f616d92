"""Main entry point with CLI."""
import argparse
import asyncio
import logging
import sys

from agr_sync.config import config, Config
from agr_sync.logging_conf import setup_logging
from agr_sync.jobs.runner import ALL, ITEMS, MOVEMENTS, runner

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="AGR Cloud scraper")

    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument(
        "--job",
        choices=[MOVEMENTS, ITEMS, ALL],
        help="Run one job once and exit",
    )
    mode.add_argument(
        "--serve",
        action="store_true",
        help="Start the HTTP API and the cron schedule",
    )

    parser.add_argument(
        "--no-schedule",
        action="store_true",
        help="With --serve: expose the API without the cron schedule",
    )
    parser.add_argument(
        "--headful",
        action="store_true",
        help="Show the browser window (debugging)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help=f"API port (default: {config.PORT})",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help=f"Log level (default: {config.LOG_LEVEL})",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(args.log_level)

    if args.headful:
        config.HEADLESS = False
    if args.no_schedule:
        config.SCHEDULER_ENABLED = False

    try:
        Config.validate()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    if args.serve:
        import uvicorn

        from agr_sync.api.main import app

        logger.info(f"Serving on :{args.port or config.PORT} (GET /healthz, /status, /run-movements, /run-items, /run-all)")
        uvicorn.run(app, host="0.0.0.0", port=args.port or config.PORT)
        return

    logger.info("=" * 60)
    logger.info(f"AGR Sync: running job '{args.job}'")
    logger.info("=" * 60)

    jobs = {MOVEMENTS: runner.run_movements, ITEMS: runner.run_items, ALL: runner.run_all}
    try:
        result = asyncio.run(jobs[args.job]())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(1)

    if not result.ok:
        logger.error(f"Job '{args.job}' failed: {result.error}")
        sys.exit(1)


if __name__ == "__main__":
    main()
