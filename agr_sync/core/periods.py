"""Calendar helpers: month keys and the active scrape window."""
from datetime import datetime
from typing import NamedTuple, Optional
from zoneinfo import ZoneInfo

from agr_sync.config import config


class DateWindow(NamedTuple):
    start: datetime
    end: datetime

    @property
    def start_param(self) -> str:
        """Portal query value for startDate."""
        return self.start.strftime("%Y-%m-%d")

    @property
    def end_param(self) -> str:
        """Portal query value for endDate."""
        return self.end.strftime("%Y-%m-%dT%H:%M:%S")


def local_now() -> datetime:
    """Current local time, in TIMEZONE when configured (naive otherwise)."""
    if config.TIMEZONE:
        return datetime.now(ZoneInfo(config.TIMEZONE))
    return datetime.now()


def month_key(moment: Optional[datetime] = None) -> str:
    moment = moment or local_now()
    return f"{moment.year:04d}-{moment.month:02d}"


def date_window(now: Optional[datetime] = None) -> DateWindow:
    """First day of the current month at 00:00:00 through today at 23:59:59."""
    now = now or local_now()
    start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    end = now.replace(hour=23, minute=59, second=59, microsecond=0)
    return DateWindow(start, end)
