"""Presentation-side status poller and interval-gated history log.

Independent from the monitor: it reads the device directly on its own
cadence and shares nothing with the monitor but the poll interval cell.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from pulsarbattery.config import PollInterval
from pulsarbattery.core.reader import BatteryReader
from pulsarbattery.core.types import BatteryReading, BatteryStatus
from pulsarbattery.history import MAX_ENTRIES, HistoryStore

log = logging.getLogger(__name__)

STATUS_READING = "Reading battery status..."
STATUS_NO_DEVICE = "No device found"
STATUS_UPDATED = "Updated"


def _now() -> datetime:
    return datetime.now().astimezone()


class HistoryLog:
    """In-memory newest-first history, logged at most once per interval."""

    def __init__(self, store: Optional[HistoryStore] = None,
                 log_interval_minutes: float = 5.0,
                 max_entries: int = MAX_ENTRIES):
        self._store = store
        self.log_interval = timedelta(minutes=log_interval_minutes)
        self.max_entries = max_entries
        self._entries: List[BatteryReading] = []
        self._last_logged: Optional[datetime] = None
        self._loaded = False
        self._save_lock = threading.Lock()

    @property
    def entries(self) -> List[BatteryReading]:
        return list(self._entries)

    def load(self) -> None:
        """Load persisted history once; later calls do nothing."""
        if self._loaded:
            return
        self._loaded = True
        if self._store is None:
            return
        self._entries.extend(self._store.load())
        del self._entries[self.max_entries:]

    def should_log(self, now: datetime) -> bool:
        if self._last_logged is None:
            return True
        return now - self._last_logged >= self.log_interval

    def add(self, status: BatteryStatus, now: Optional[datetime] = None) -> bool:
        """Log a status if the interval allows; True when it was logged."""
        now = now or _now()
        if not self.should_log(now):
            return False
        self._last_logged = now
        self._entries.insert(0, BatteryReading.from_status(status, now))
        del self._entries[self.max_entries:]
        return True

    def save(self) -> bool:
        """Persist a snapshot; skipped when a save is already running."""
        if not self._loaded or self._store is None:
            return False
        if not self._save_lock.acquire(blocking=False):
            return False
        try:
            return self._store.save(list(self._entries))
        finally:
            self._save_lock.release()


class StatusPoller:
    """What the tray shows: last status, status text, and history."""

    def __init__(self, reader: BatteryReader, poll_interval: PollInterval,
                 history: Optional[HistoryLog] = None,
                 clock: Callable[[], datetime] = _now):
        self._reader = reader
        self._poll_interval = poll_interval
        self.history = history or HistoryLog()
        self._clock = clock
        self.last_status: Optional[BatteryStatus] = None
        self.last_updated: Optional[datetime] = None
        self.status_text = ""

    @property
    def poll_interval_minutes(self) -> float:
        return self._poll_interval.minutes

    def set_poll_interval(self, minutes: float) -> None:
        self._poll_interval.minutes = minutes
        log.debug("Poll interval set to %.2f min", self._poll_interval.minutes)

    def poll(self) -> Optional[BatteryStatus]:
        self.status_text = STATUS_READING
        status = self._reader.read_battery_status()
        if status is None:
            self.status_text = STATUS_NO_DEVICE
            return None

        now = self._clock()
        self.last_status = status
        self.last_updated = now
        self.status_text = STATUS_UPDATED
        self.history.add(status, now)
        return status
