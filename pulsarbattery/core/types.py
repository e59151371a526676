"""Core data types for Pulsar battery monitoring."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum, auto
from typing import Optional


class ReadError(Enum):
    """Why a backend could not produce a battery status."""
    DEVICE_ABSENT = auto()
    TRANSPORT_FAULT = auto()
    MALFORMED_RESPONSE = auto()


class MonitorState(Enum):
    """Lock-dependent state of the monitor for one cycle."""
    UNLOCKED = auto()
    RECENTLY_LOCKED = auto()
    LOCKED = auto()


@dataclass(frozen=True)
class BatteryStatus:
    """A single battery status as reported by the device."""
    percentage: int
    is_charging: bool
    model: str


@dataclass(frozen=True)
class ReadResult:
    """Outcome of one backend read: a status or the reason there is none."""
    status: Optional[BatteryStatus] = None
    error: Optional[ReadError] = None
    detail: str = ""

    @classmethod
    def ok(cls, status: BatteryStatus) -> "ReadResult":
        return cls(status=status)

    @classmethod
    def fail(cls, error: ReadError, detail: str = "") -> "ReadResult":
        return cls(error=error, detail=detail)

    def __bool__(self) -> bool:
        return self.status is not None


@dataclass(frozen=True)
class CachedStatus:
    """Last successful read, stamped with the monitor clock."""
    timestamp: float
    status: BatteryStatus

    def age(self, now: float) -> float:
        return now - self.timestamp

    def is_fresh(self, now: float, ttl: float) -> bool:
        return self.age(now) <= ttl


@dataclass(frozen=True)
class Thresholds:
    """Low-battery alert thresholds for unlocked and locked sessions."""
    unlocked: int = 5
    locked: int = 30


@dataclass(frozen=True)
class BatteryReading:
    """A history entry: a status observed at a wall-clock time."""
    timestamp: datetime
    percentage: int
    is_charging: bool
    model: str

    @classmethod
    def from_status(cls, status: BatteryStatus,
                    timestamp: Optional[datetime] = None) -> "BatteryReading":
        if timestamp is None:
            timestamp = datetime.now().astimezone()
        return cls(
            timestamp=timestamp,
            percentage=status.percentage,
            is_charging=status.is_charging,
            model=status.model,
        )

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp.isoformat(),
            "percentage": self.percentage,
            "isCharging": self.is_charging,
            "model": self.model,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BatteryReading":
        return cls(
            timestamp=datetime.fromisoformat(data["timestamp"]),
            percentage=int(data["percentage"]),
            is_charging=bool(data.get("isCharging", False)),
            model=data.get("model") or "",
        )
