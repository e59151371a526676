"""Pulsar dongle protocol constants, packet builders, and response parsers.

The dongles expose vendor HID collections. Battery is queried with
report 0x08 command 0x04; the answer arrives as an input report
(0x08 or 0x09) with the percentage at byte 6 and the charging flag at
byte 7.

This module is pure-data with no I/O operations. All HID communication
is handled by driver.py.
"""

from typing import NamedTuple, Optional

# =============================================================================
# PROTOCOL CONSTANTS
# =============================================================================

PACKET_SIZE = 64
MIN_RESPONSE_LENGTH = 8

OUTPUT_REPORT_ID = 0x08
INPUT_REPORT_IDS = (0x08, 0x09)
DEFAULT_INPUT_REPORT_ID = 0x09

CMD_BATTERY = 0x04

OFFSET_COMMAND = 1
OFFSET_BATTERY = 6
OFFSET_CHARGING = 7

# Command bytes some hidapi backends leave in front when they strip the report id
_KNOWN_COMMANDS = (0x01, 0x02, 0x03, 0x04, 0x08, 0x0E)


class Cmd04Status(NamedTuple):
    """Parsed battery response."""
    percent: int
    is_charging: bool


# =============================================================================
# PACKET BUILDERS
# =============================================================================

def build_command_packet(command: int, checksum: int) -> bytes:
    """Build a 17-byte vendor command: report id, command, 14 zeros, checksum."""
    return bytes([OUTPUT_REPORT_ID, command] + [0x00] * 14 + [checksum])


def build_battery_packet() -> bytes:
    return build_command_packet(CMD_BATTERY, 0x49)


# =============================================================================
# RESPONSE PARSERS
# =============================================================================

def normalize_input_report(data: bytes) -> bytes:
    """Re-insert the input report id when the backend dropped it.

    A 16-byte read starting with a known command byte has lost its
    leading report id; prepend the default one so offsets line up.
    """
    data = bytes(data)
    if len(data) == 16 and data[0] in _KNOWN_COMMANDS:
        return bytes([DEFAULT_INPUT_REPORT_ID]) + data
    return data


def parse_cmd04_payload(payload: bytes) -> Optional[Cmd04Status]:
    """Parse a battery response.

    Returns None for payloads shorter than 8 bytes. The percentage byte
    is passed through without range checks.
    """
    if len(payload) < MIN_RESPONSE_LENGTH:
        return None
    return Cmd04Status(
        percent=payload[OFFSET_BATTERY],
        is_charging=payload[OFFSET_CHARGING] != 0x00,
    )
