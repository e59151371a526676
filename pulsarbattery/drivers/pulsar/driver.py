"""Pulsar X2 family HID backends.

Both supported dongles speak the same "command 0x04" battery query and
answer with the same 8-byte layout; they differ in USB ids, the channel
the command goes out on, and the model label.
"""

import logging
from typing import List, Tuple

from pulsarbattery.core.types import BatteryStatus, ReadError, ReadResult
from pulsarbattery.drivers.base import HidBackend
from pulsarbattery.drivers.pulsar.protocol import (
    PACKET_SIZE,
    build_battery_packet,
    normalize_input_report,
    parse_cmd04_payload,
)
from pulsarbattery.transport import (
    HidStream,
    Transport,
    TransportError,
    drain_input,
    enumerate_devices,
    format_path,
    read_with_timeout,
    send_report,
)

log = logging.getLogger(__name__)

DRAIN_ATTEMPTS = 6
READ_TIMEOUT_MS = 1000

# Vendor usage pages seen on Pulsar dongles, most responsive first
_VENDOR_PAGE_RANK = {0xFF02: 0, 0xFF01: 1, 0xFF03: 2, 0xFF04: 3}


def _candidate_sort_key(info: dict):
    iface = info.get("interface_number")
    page = info.get("usage_page")
    is_vendor_page = isinstance(page, int) and page >= 0xFF00
    return (
        0 if iface == 1 else 1,
        0 if is_vendor_page else 1,
        _VENDOR_PAGE_RANK.get(page, 99),
        format_path(info.get("path", b"")),
    )


class PulsarBackend(HidBackend):
    """Shared command 0x04 flow for Pulsar dongles.

    Subclasses only set the class attributes describing the variant.
    """

    NAME = ""
    MODEL = ""
    VENDOR_ID = 0
    PRODUCT_IDS: Tuple[int, ...] = ()
    USAGE_PAGE = None
    TRANSPORT = Transport.AUTO
    FEATURE_REPORT_LENGTH = 0
    COMMAND = build_battery_packet()

    @property
    def name(self) -> str:
        return self.NAME

    @property
    def model(self) -> str:
        return self.MODEL

    def match(self, info: dict) -> bool:
        if info.get("vendor_id") != self.VENDOR_ID:
            return False
        if info.get("product_id") not in self.PRODUCT_IDS:
            return False
        return self.USAGE_PAGE is None or info.get("usage_page") == self.USAGE_PAGE

    def list_candidates(self) -> List[dict]:
        return sorted(enumerate_devices(self.VENDOR_ID, self.match), key=_candidate_sort_key)

    def read_result(self, debug: bool = False) -> ReadResult:
        candidates = self.list_candidates()
        if not candidates:
            return ReadResult.fail(ReadError.DEVICE_ABSENT)

        info = candidates[0]
        try:
            stream = HidStream.open(info, max_feature_report_length=self.FEATURE_REPORT_LENGTH)
        except TransportError as e:
            return ReadResult.fail(ReadError.TRANSPORT_FAULT, str(e))

        with stream:
            drain_input(stream, DRAIN_ATTEMPTS, PACKET_SIZE)
            try:
                send_report(stream, self.COMMAND, self.TRANSPORT)
            except TransportError as e:
                return ReadResult.fail(ReadError.TRANSPORT_FAULT, f"send failed: {e}")
            response = read_with_timeout(stream, PACKET_SIZE, READ_TIMEOUT_MS)

        if response is None:
            return ReadResult.fail(ReadError.TRANSPORT_FAULT, "no response")

        payload = normalize_input_report(response)
        parsed = parse_cmd04_payload(payload)
        if parsed is None:
            return ReadResult.fail(ReadError.MALFORMED_RESPONSE, payload.hex())

        if debug:
            log.info("%s cmd04 raw=%d charging=%s data=%s",
                     self.NAME, parsed.percent, parsed.is_charging, payload.hex())

        return ReadResult.ok(BatteryStatus(
            percentage=parsed.percent,
            is_charging=parsed.is_charging,
            model=self.MODEL,
        ))


class X2CrazylightBackend(PulsarBackend):
    """Pulsar X2 CrazyLight dongle (VID 0x3710)."""

    NAME = "pulsar_x2_crazylight"
    MODEL = "Pulsar X2 CrazyLight"
    VENDOR_ID = 0x3710
    PRODUCT_IDS = (0x5406, 0x3414)  # wireless dongle, wired cable
    TRANSPORT = Transport.AUTO
    FEATURE_REPORT_LENGTH = 17


class X2V1Backend(PulsarBackend):
    """Pulsar X2 V1 dongle (VID 0x25A7); no feature reports."""

    NAME = "pulsar_x2_v1"
    MODEL = "Pulsar X2"
    VENDOR_ID = 0x25A7
    PRODUCT_IDS = (0xFA7C, 0xFA7B)
    TRANSPORT = Transport.OUTPUT
