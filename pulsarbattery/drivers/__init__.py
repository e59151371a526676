"""HID backend registry for vendor battery protocols."""

from typing import Dict, List, Optional, Sequence

from pulsarbattery.drivers.base import HidBackend

# Priority order, first success wins. Reordering is a change here only.
BACKEND_ORDER: List[str] = [
    "pulsar_x2_crazylight",
    "pulsar_x2_v1",
]

_registry: Dict[str, HidBackend] = {}


def register_backend(backend: HidBackend) -> None:
    """Register a backend instance under its name."""
    _registry.setdefault(backend.name, backend)


def get_backend(name: str) -> Optional[HidBackend]:
    return _registry.get(name)


def get_backends(order: Optional[Sequence[str]] = None) -> List[HidBackend]:
    """Return registered backends in priority order.

    Names not in the order list are appended after it, in registration order.
    """
    order = BACKEND_ORDER if order is None else list(order)
    ranked = [_registry[name] for name in order if name in _registry]
    extra = [b for name, b in _registry.items() if name not in order]
    return ranked + extra


# Auto-register built-in backends on import.
from pulsarbattery.drivers.pulsar import X2CrazylightBackend, X2V1Backend  # noqa: E402
register_backend(X2CrazylightBackend())
register_backend(X2V1Backend())
