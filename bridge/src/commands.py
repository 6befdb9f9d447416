"""
Builders for the read-holding-registers requests sent to the inverter.

The inverter answers two request shapes: a 95-register device-info block
starting at address 0 and a 50-register battery-cell block starting at 250.

CHANGELOG:
- 2026-10-05: Initial creation (STORY-002)

TODO:
- None
"""

from __future__ import annotations

from dataclasses import dataclass

from bridge.src.checksum import crc16_modbus

DEVICE_ADDRESS: int = 0x01
FUNCTION_READ_HOLDING: int = 0x03


@dataclass(frozen=True, slots=True)
class ReadRequest:
    """A register range to request from the inverter.

    Attributes:
        name: Short identifier used in log lines.
        start_address: First holding register to read.
        count: Number of 16-bit registers to read.
    """

    name: str
    start_address: int
    count: int

    def to_bytes(self) -> bytes:
        """Return the sealed 8-byte request frame."""
        return build_read_command(self.start_address, self.count)


DEVICE_INFO_REQUEST = ReadRequest(name="device_info", start_address=0, count=95)
BATTERY_CELL_REQUEST = ReadRequest(name="battery_cells", start_address=250, count=50)

REFRESH_REQUESTS: tuple[ReadRequest, ...] = (DEVICE_INFO_REQUEST, BATTERY_CELL_REQUEST)
"""Requests published on every refresh, in publish order."""


def build_read_command(start_address: int, count: int) -> bytes:
    """Build a read-holding-registers request frame.

    Layout: ``[0x01, 0x03, start_hi, start_lo, count_hi, count_lo, crc_lo,
    crc_hi]``.  Both arguments are masked to 16 bits.

    Args:
        start_address: First register address.
        count: Number of registers to read.

    Returns:
        The 8-byte frame.
    """
    body = bytes(
        [
            DEVICE_ADDRESS,
            FUNCTION_READ_HOLDING,
            (start_address >> 8) & 0xFF,
            start_address & 0xFF,
            (count >> 8) & 0xFF,
            count & 0xFF,
        ]
    )
    return body + bytes(crc16_modbus(body))


def refresh_commands() -> list[bytes]:
    """Return the device-info and battery-cell request frames, in that order."""
    return [request.to_bytes() for request in REFRESH_REQUESTS]
