"""Battery reader - one "read current status or fail" call over all backends."""

import logging
from typing import Dict, List, Optional, Sequence

from pulsarbattery.core.types import BatteryStatus
from pulsarbattery.drivers import get_backends
from pulsarbattery.drivers.base import HidBackend

log = logging.getLogger(__name__)


class BatteryReader:
    """Tries backends in a fixed priority order; the first status wins.

    No retries here. Retry and staleness policy belong to the monitor.
    """

    def __init__(self, backends: Optional[Sequence[HidBackend]] = None):
        self._backends: List[HidBackend] = list(get_backends() if backends is None else backends)

    @property
    def backends(self) -> List[HidBackend]:
        return list(self._backends)

    def read_battery_status(self, debug: bool = False) -> Optional[BatteryStatus]:
        for backend in self._backends:
            status = backend.read_battery_status(debug)
            if status is not None:
                return status
        log.debug("No backend returned a battery status")
        return None

    def list_devices(self) -> Dict[str, List[dict]]:
        """Candidate HID interfaces per backend name."""
        result = {}
        for backend in self._backends:
            try:
                result[backend.name] = backend.list_candidates()
            except Exception:
                log.debug("Listing failed for backend %s", backend.name, exc_info=True)
                result[backend.name] = []
        return result
