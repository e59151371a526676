"""Battery history - a bounded, newest-first JSON log."""

import json
import logging
import os
import threading
from pathlib import Path
from typing import List, Optional, Sequence

from pulsarbattery.core.types import BatteryReading

log = logging.getLogger(__name__)

MAX_ENTRIES = 500


class HistoryStore:
    """Atomic JSON persistence for battery readings.

    Load and save are serialized by a lock since the tray's periodic save
    and an explicit save on shutdown can overlap.
    """

    def __init__(self, path: Optional[Path] = None, max_entries: int = MAX_ENTRIES):
        if path is None:
            from pulsarbattery.config import get_config_dir
            path = get_config_dir() / "history.json"
        self.path = Path(path)
        self.max_entries = max_entries
        self._lock = threading.Lock()

    def load(self) -> List[BatteryReading]:
        with self._lock:
            return self._load_unlocked()

    def _load_unlocked(self) -> List[BatteryReading]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return [BatteryReading.from_dict(item) for item in data]
        except (OSError, ValueError, KeyError, TypeError) as e:
            log.warning("Could not load history from %s: %s", self.path, e)
            return []

    def save(self, readings: Sequence[BatteryReading]) -> bool:
        with self._lock:
            return self._save_unlocked(readings)

    def _save_unlocked(self, readings: Sequence[BatteryReading]) -> bool:
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump([r.to_dict() for r in readings], f, separators=(",", ":"))
            os.replace(tmp, self.path)
            return True
        except OSError:
            log.exception("Could not save history to %s", self.path)
            return False

    def append(self, reading: BatteryReading) -> None:
        """Insert a reading at the front and drop the oldest past the cap."""
        with self._lock:
            readings = self._load_unlocked()
            readings.insert(0, reading)
            del readings[self.max_entries:]
            self._save_unlocked(readings)
