"""HID transport helpers - enumerate, send, read and drain vendor reports.

Thin layer over the ``hid`` module (hidapi). Handles are scoped to a
single read attempt: open, exchange, close.
"""

import logging
from enum import Enum
from typing import Callable, Iterator, Optional

import hid

log = logging.getLogger(__name__)

DEFAULT_READ_TIMEOUT_MS = 1000
WRITE_TIMEOUT_MS = 500
DRAIN_TIMEOUT_MS = 1


class TransportError(IOError):
    """Raised when a report cannot be exchanged with an opened device."""


class Transport(str, Enum):
    """Channel used to send a command report."""
    FEATURE = "feature"
    OUTPUT = "output"
    AUTO = "auto"


def enumerate_devices(vendor_id: int,
                      predicate: Optional[Callable[[dict], bool]] = None) -> Iterator[dict]:
    """Yield hidapi info dicts for a vendor, optionally filtered.

    Every call enumerates afresh; nothing is retained between calls.
    """
    try:
        found = hid.enumerate(vendor_id)
    except Exception:
        log.debug("HID enumeration failed for vendor 0x%04x", vendor_id)
        return
    for info in found:
        if predicate is None or predicate(info):
            yield info


def format_path(path) -> str:
    if isinstance(path, bytes):
        return path.decode(errors="replace")
    return str(path)


class HidStream:
    """An opened HID handle with stream-like read/write timeouts.

    hidapi takes the read timeout per call, so the stream keeps the
    current value and applies it on every read.
    """

    def __init__(self, dev, max_feature_report_length: int = 0,
                 read_timeout: int = DEFAULT_READ_TIMEOUT_MS):
        self._dev = dev
        self.max_feature_report_length = max_feature_report_length
        self.read_timeout = read_timeout
        self.write_timeout = WRITE_TIMEOUT_MS

    @classmethod
    def open(cls, info: dict, max_feature_report_length: int = 0) -> "HidStream":
        path = info["path"]
        if isinstance(path, str):
            path = path.encode()
        dev = hid.device()
        try:
            dev.open_path(path)
            dev.set_nonblocking(False)
        except (OSError, ValueError) as e:
            raise TransportError(f"cannot open {format_path(path)}: {e}") from e
        return cls(dev, max_feature_report_length=max_feature_report_length)

    @property
    def is_open(self) -> bool:
        return self._dev is not None

    def read(self, max_length: int) -> bytes:
        if self._dev is None:
            raise TransportError("stream is closed")
        data = self._dev.read(max_length, timeout_ms=self.read_timeout)
        return bytes(data) if data else b""

    def write(self, payload: bytes) -> None:
        if self._dev is None:
            raise TransportError("stream is closed")
        # hidapi writes have no per-call timeout; the OS bounds the transfer.
        result = self._dev.write(payload)
        if isinstance(result, int) and result < 0:
            raise TransportError("HID write failed")

    def set_feature(self, payload: bytes) -> None:
        if self._dev is None:
            raise TransportError("stream is closed")
        result = self._dev.send_feature_report(payload)
        if isinstance(result, int) and result < 0:
            raise TransportError("HID feature report failed")

    def close(self) -> None:
        if self._dev is not None:
            try:
                self._dev.close()
            except Exception:
                log.debug("Error closing HID handle", exc_info=True)
            self._dev = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def send_report(stream: HidStream, payload: bytes, transport: Transport) -> None:
    """Send a command report (payload starts with the report id).

    ``auto`` uses a feature report when the device advertises one,
    otherwise a timed output-report write.
    """
    transport = Transport(transport)
    use_feature = transport is Transport.FEATURE or (
        transport is Transport.AUTO and stream.max_feature_report_length > 0
    )
    try:
        if use_feature:
            stream.set_feature(bytes(payload))
            return
        stream.write_timeout = WRITE_TIMEOUT_MS
        stream.write(bytes(payload))
    except TransportError:
        raise
    except (OSError, ValueError) as e:
        raise TransportError(str(e)) from e


def read_with_timeout(stream: HidStream, max_length: int, timeout_ms: int) -> Optional[bytes]:
    """Read one report, or None on timeout, empty read or any I/O fault."""
    try:
        stream.read_timeout = timeout_ms
        data = stream.read(max_length)
    except Exception as e:
        log.debug("HID read failed: %s", e)
        return None
    if not data:
        return None
    return data


def drain_input(stream: HidStream, attempts: int, max_length: int) -> None:
    """Discard stale buffered reports before a fresh query."""
    original_timeout = stream.read_timeout
    try:
        stream.read_timeout = DRAIN_TIMEOUT_MS
        for _ in range(attempts):
            if not stream.read(max_length):
                break
    except Exception as e:
        log.debug("Drain aborted: %s", e)
    finally:
        stream.read_timeout = original_timeout
