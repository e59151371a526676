"""Abstract base class for device battery backends."""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from pulsarbattery.core.types import BatteryStatus, ReadResult

log = logging.getLogger(__name__)


class HidBackend(ABC):
    """A protocol adapter for one device firmware family.

    Backends are stateless: every read opens, uses, and releases its own
    device handle.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend name, e.g., 'pulsar_x2_crazylight'."""
        ...

    @property
    @abstractmethod
    def model(self) -> str:
        """Human-readable device name reported with each status."""
        ...

    @abstractmethod
    def match(self, info: dict) -> bool:
        """Return True if this backend handles the given hidapi info dict."""
        ...

    @abstractmethod
    def list_candidates(self) -> List[dict]:
        """Return the hidapi info dicts this backend would try, in order."""
        ...

    @abstractmethod
    def read_result(self, debug: bool = False) -> ReadResult:
        """Query the device and report the status or the failure kind."""
        ...

    def read_battery_status(self, debug: bool = False) -> Optional[BatteryStatus]:
        """Read the battery, mapping every failure to None.

        Never raises; callers rely on this to fall through to the next
        backend.
        """
        try:
            result = self.read_result(debug)
        except Exception:
            log.debug("Backend %s raised during read", self.name, exc_info=True)
            return None
        if not result:
            log.debug("Backend %s: %s %s", self.name,
                      result.error.name if result.error else "no status", result.detail)
            return None
        return result.status

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"
