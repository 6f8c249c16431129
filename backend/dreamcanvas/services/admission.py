"""Admission control: single in-flight generation gate and soft per-caller daily quota."""
import logging
import threading
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable, Optional

logger = logging.getLogger(__name__)

MAX_IN_FLIGHT = 1


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


@dataclass
class QuotaEntry:
    day: date
    used: int = 0
    reserved: int = 0


class AdmissionController:
    """Process-wide admission state, owned by the GenerationService.

    The in-flight gate rejects rather than queues: a second request arriving
    while a generation is active fails immediately.

    Quota reservations count against the allowance while a generation runs;
    ``commit_quota`` turns a reservation into usage on success and
    ``release_quota`` hands it back on failure. Entries from a previous UTC day
    are dropped the first time any caller is seen on a new day.

    Args:
        daily_quota: Generations per caller per UTC day. ``0`` disables the quota.
        today: Clock returning the current UTC date (injectable for tests).
    """

    def __init__(self, daily_quota: int = 0, today: Callable[[], date] = utc_today) -> None:
        self.daily_quota = daily_quota
        self._today = today
        self._lock = threading.Lock()
        self._in_flight = 0
        self._quota: dict[str, QuotaEntry] = {}
        self._day: Optional[date] = None

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @property
    def quota_enabled(self) -> bool:
        return self.daily_quota > 0

    def try_acquire(self) -> bool:
        with self._lock:
            if self._in_flight >= MAX_IN_FLIGHT:
                return False
            self._in_flight += 1
            return True

    def release(self) -> None:
        with self._lock:
            if self._in_flight > 0:
                self._in_flight -= 1

    def _entry(self, caller: str) -> QuotaEntry:
        today = self._today()
        if today != self._day:
            # New UTC day: every existing entry is stale.
            self._quota.clear()
            self._day = today
        entry = self._quota.get(caller)
        if entry is None:
            entry = QuotaEntry(day=today)
            self._quota[caller] = entry
        return entry

    def try_acquire_quota(self, caller: str) -> bool:
        if not self.quota_enabled:
            return True
        with self._lock:
            entry = self._entry(caller)
            if entry.used + entry.reserved >= self.daily_quota:
                logger.info("Quota exhausted for caller=%s (%d/day)", caller, self.daily_quota)
                return False
            entry.reserved += 1
            return True

    def commit_quota(self, caller: str) -> None:
        if not self.quota_enabled:
            return
        with self._lock:
            entry = self._entry(caller)
            if entry.reserved > 0:
                entry.reserved -= 1
            entry.used += 1

    def release_quota(self, caller: str) -> None:
        if not self.quota_enabled:
            return
        with self._lock:
            entry = self._quota.get(caller)
            if entry is not None and entry.reserved > 0:
                entry.reserved -= 1

    def usage(self, caller: str) -> int:
        """Committed generations for ``caller`` today."""
        with self._lock:
            entry = self._quota.get(caller)
            if entry is None or entry.day != self._today():
                return 0
            return entry.used
