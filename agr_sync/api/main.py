"""FastAPI trigger surface: health, status and manual job runs."""
import logging
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import PlainTextResponse
from fastapi.security import APIKeyHeader

from agr_sync.config import config, Config
from agr_sync.jobs.runner import runner, format_elapsed
from agr_sync.jobs.scheduler import build_scheduler
from agr_sync.logging_conf import setup_logging
from agr_sync.parse.models import RunResult
from agr_sync.store.supabase_store import supabase_connected

logger = logging.getLogger(__name__)

app = FastAPI(title="AGR Sync API", version="0.1.0")

# API Key security (if configured)
API_KEY_HEADER = APIKeyHeader(name="X-API-KEY", auto_error=False)

scheduler = None


def verify_api_key(api_key: Optional[str] = Depends(API_KEY_HEADER)) -> bool:
    """Verify API key if configured."""
    if config.API_KEY:
        if not api_key or api_key != config.API_KEY:
            raise HTTPException(status_code=403, detail="Invalid API key")
    return True


@app.on_event("startup")
async def startup():
    """Start the cron schedule."""
    global scheduler
    setup_logging()
    if not await supabase_connected():
        logger.warning("Supabase connection test failed, but continuing...")
    if config.SCHEDULER_ENABLED:
        scheduler = build_scheduler(runner)
        scheduler.start()
        logger.info("Scheduler started (movements */30, items at minute 5)")


@app.on_event("shutdown")
async def shutdown():
    if scheduler and scheduler.running:
        scheduler.shutdown(wait=False)


def _respond(result: RunResult, success_text: str, failure_text: str) -> PlainTextResponse:
    if result.skipped:
        running_for = format_elapsed(result.running_for_seconds or 0)
        return PlainTextResponse(f"Busy: {result.running} running for {running_for}", status_code=409)
    if result.ok:
        return PlainTextResponse(success_text, status_code=200)
    return PlainTextResponse(f"{failure_text}: {result.error}", status_code=500)


@app.get("/", response_class=PlainTextResponse)
@app.get("/healthz", response_class=PlainTextResponse)
async def health():
    """Health check endpoint (no auth required)."""
    return "ok"


@app.get("/status")
async def status(_: bool = Depends(verify_api_key)):
    """Current lock holder, last successes, recent runs and store reachability."""
    recent = await runner.recent_runs(limit=20)
    return {
        "ok": True,
        **runner.status(),
        "last_success": await runner.last_successes(),
        "recent_runs": recent,
        "supabase_connected": await supabase_connected(),
    }


@app.get("/run-movements")
async def run_movements_endpoint(_: bool = Depends(verify_api_key)):
    result = await runner.run_movements()
    return _respond(result, "Movements OK", "Error in movements")


@app.get("/run-items")
async def run_items_endpoint(_: bool = Depends(verify_api_key)):
    result = await runner.run_items()
    return _respond(result, "Items OK", "Error in items")


@app.get("/run-all")
async def run_all_endpoint(_: bool = Depends(verify_api_key)):
    result = await runner.run_all()
    return _respond(result, "Movements + Items OK", "Error running both")


if __name__ == "__main__":
    import uvicorn

    Config.validate()
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
