"""Core data types shared by backends, reader, monitor, and poller."""

from pulsarbattery.core.types import (
    BatteryReading,
    BatteryStatus,
    CachedStatus,
    MonitorState,
    ReadError,
    ReadResult,
    Thresholds,
)

__all__ = [
    "BatteryReading",
    "BatteryStatus",
    "CachedStatus",
    "MonitorState",
    "ReadError",
    "ReadResult",
    "Thresholds",
]
