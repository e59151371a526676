"""Battery monitor - lock-aware polling loop with edge-triggered alerts."""

import logging
import threading
import time
from typing import Callable, Optional

from pulsarbattery.config import PollInterval
from pulsarbattery.core.reader import BatteryReader
from pulsarbattery.core.types import (
    BatteryReading,
    BatteryStatus,
    CachedStatus,
    MonitorState,
    Thresholds,
)

log = logging.getLogger(__name__)

LOCK_DEBOUNCE_SECONDS = 2.0
GRACE_WINDOW_SECONDS = 10.0
LOOP_DELAY_SECONDS = 5.0
CACHE_TTL_SECONDS = 10 * 60.0


class BatteryMonitor(threading.Thread):
    """Background poller that raises battery notifications.

    The monitor thread is the only writer of the cached status and the
    last notified percentage. Cancellation is checked at every sleep;
    a poll already in progress runs to completion.

    Args:
        reader: Source of fresh battery statuses.
        notifier: Object with ``notify_level_changed(previous, current,
            is_charging, model)``.
        poll_interval: Shared cell holding the unlocked poll interval.
        thresholds: Low-battery thresholds for unlocked and locked sessions.
        lock_probe: Returns True while the session is locked.
        clock: Monotonic seconds.
        beeper: Audible alert, called on low battery.
        history: Optional sink with ``append(BatteryReading)``.
    """

    def __init__(self, reader: BatteryReader, notifier,
                 poll_interval: Optional[PollInterval] = None,
                 thresholds: Optional[Thresholds] = None,
                 lock_probe: Optional[Callable[[], bool]] = None,
                 clock: Callable[[], float] = time.monotonic,
                 beeper: Optional[Callable[[], None]] = None,
                 history=None):
        super().__init__(name="battery-monitor")
        self.daemon = True

        if lock_probe is None:
            from pulsarbattery.lockstate import is_session_locked
            lock_probe = is_session_locked

        self._reader = reader
        self._notifier = notifier
        self._poll_interval = poll_interval or PollInterval()
        self.thresholds = thresholds or Thresholds()
        self._lock_probe = lock_probe
        self._clock = clock
        self._beeper = beeper
        self._history = history

        self._stopped = threading.Event()
        self._cache: Optional[CachedStatus] = None
        self._last_notified: Optional[int] = None
        self._last_unlocked: Optional[float] = None
        self._last_check: Optional[float] = None

    # --- Lifecycle ---

    @property
    def alive(self) -> bool:
        return self.is_alive() and not self._stopped.is_set()

    def stop(self) -> None:
        """Ask the loop to exit at its next sleep checkpoint."""
        self._stopped.set()

    def run(self) -> None:
        log.debug("started (thresholds unlocked=%d locked=%d)",
                  self.thresholds.unlocked, self.thresholds.locked)
        while not self._stopped.is_set():
            if self.run_cycle() is None:
                break
            if self._wait(LOOP_DELAY_SECONDS):
                break
        log.debug("stopped")

    def _wait(self, seconds: float) -> bool:
        """Sleep unless stopped; True means the monitor was stopped."""
        return self._stopped.wait(seconds)

    # --- State ---

    @property
    def poll_interval(self) -> PollInterval:
        return self._poll_interval

    @property
    def cached(self) -> Optional[CachedStatus]:
        return self._cache

    @property
    def last_notified_percentage(self) -> Optional[int]:
        return self._last_notified

    def _sample_locked(self) -> bool:
        try:
            return bool(self._lock_probe())
        except Exception:
            log.exception("Lock state probe failed")
            return False

    def run_cycle(self) -> Optional[MonitorState]:
        """One pass of the loop, without the trailing delay.

        Returns the state the cycle ran in, or None if stopped while
        debouncing the lock state.
        """
        locked = self._sample_locked()
        if self._wait(LOCK_DEBOUNCE_SECONDS):
            return None
        locked = locked and self._sample_locked()

        now = self._clock()
        if locked:
            # Keep checking shortly after locking so a lock right after use still gets a check.
            if self._last_unlocked is not None and now - self._last_unlocked < GRACE_WINDOW_SECONDS:
                self.check_battery(self.thresholds.locked)
                return MonitorState.RECENTLY_LOCKED
            return MonitorState.LOCKED

        self._last_unlocked = now
        interval = self._poll_interval.seconds
        if self._last_check is None or now - self._last_check >= interval:
            self._last_check = now
            self.check_battery(self.thresholds.unlocked)
        return MonitorState.UNLOCKED

    # --- Polling ---

    def read_battery_status(self) -> Optional[BatteryStatus]:
        """Fresh status, or the cached one while it is within the TTL."""
        status = self._reader.read_battery_status()
        now = self._clock()
        if status is not None:
            self._cache = CachedStatus(timestamp=now, status=status)
            self._record(status)
            return status

        if self._cache is None:
            return None
        if self._cache.is_fresh(now, CACHE_TTL_SECONDS):
            log.debug("Using cached battery status (%.0fs old)", self._cache.age(now))
            return self._cache.status
        return None

    def check_battery(self, threshold: int) -> None:
        status = self.read_battery_status()
        if status is None:
            log.debug("Battery status not available")
            return

        battery = status.percentage
        charging = status.is_charging

        if self._last_notified is None:
            self._last_notified = battery
        elif self._last_notified != battery:
            previous = self._last_notified
            self._last_notified = battery
            self._notify(previous, battery, charging, status.model)

        if charging:
            log.debug("Battery %d%% charging", battery)
            return

        log.debug("Battery %d%% not charging, threshold %d", battery, threshold)
        if battery < threshold:
            log.warning("Battery level %d%% is below threshold %d and not charging", battery, threshold)
            self._notify(battery, battery, charging, status.model)
            self._beep()

    def _notify(self, previous: int, current: int, charging: bool, model: str) -> None:
        try:
            self._notifier.notify_level_changed(previous, current, charging, model)
        except Exception:
            log.exception("Battery notification failed")

    def _beep(self) -> None:
        if self._beeper is None:
            return
        try:
            self._beeper()
        except Exception:
            log.debug("Audible alert failed", exc_info=True)

    def _record(self, status: BatteryStatus) -> None:
        if self._history is None:
            return
        try:
            self._history.append(BatteryReading.from_status(status))
        except Exception:
            log.exception("Could not record battery reading")
