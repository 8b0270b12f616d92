"""Per-run metrics exported as JSONL for observability."""
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Optional
import aiofiles
import orjson

from agr_sync.config import DATA_DIR

METRICS_FILE = DATA_DIR / "metrics.jsonl"


@dataclass
class JobMetrics:
    """Counters collected while a job runs."""

    job: str
    month: Optional[str] = None
    pages: int = 0
    rows: int = 0
    coffee_aggregates: int = 0
    other_items: int = 0
    ledger_upserts: int = 0
    items: int = 0
    archived: dict[str, int] = field(default_factory=dict)
    start_time: float = field(default_factory=time.time)

    def elapsed(self) -> float:
        return time.time() - self.start_time


class MetricsExporter:
    """Appends one JSON line per finished job."""

    def __init__(self, metrics_file: Path = METRICS_FILE):
        self.metrics_file = metrics_file

    async def export(self, metrics: JobMetrics) -> None:
        """Export metrics to JSONL file."""
        data = asdict(metrics)
        data.pop("start_time")
        data["ts"] = time.time()
        data["elapsed_seconds"] = round(metrics.elapsed(), 2)

        line = orjson.dumps(data) + b"\n"
        async with aiofiles.open(self.metrics_file, "ab") as f:
            await f.write(line)
