"""Single-flight coordination for scraper jobs."""
import logging
import time
from typing import Optional

logger = logging.getLogger(__name__)


class SingleFlight:
    """
    Fail-fast job lock.

    With exclusive=True (the default) all job names share one slot, so
    only one browser session runs in the process at a time. Otherwise each
    job name is locked independently. Acquisition never waits.
    """

    GLOBAL = "*"

    def __init__(self, exclusive: bool = True):
        self.exclusive = exclusive
        self._held: dict[str, tuple[str, float]] = {}

    def _slot(self, name: str) -> str:
        return self.GLOBAL if self.exclusive else name

    def try_acquire(self, name: str) -> bool:
        slot = self._slot(name)
        if slot in self._held:
            return False
        self._held[slot] = (name, time.monotonic())
        logger.info(f"[LOCK] START {name}")
        return True

    def release(self, name: str) -> None:
        slot = self._slot(name)
        held = self._held.get(slot)
        if held and held[0] == name:
            del self._held[slot]

    def holder(self, name: Optional[str] = None) -> Optional[tuple[str, float]]:
        """(job, seconds running) for the slot name would use, or any held slot."""
        if name is not None:
            held = self._held.get(self._slot(name))
        else:
            held = next(iter(self._held.values()), None)
        if not held:
            return None
        return held[0], time.monotonic() - held[1]

    def current(self) -> list[str]:
        return [job for job, _ in self._held.values()]
