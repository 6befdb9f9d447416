"""
CRC-16/Modbus checksum used to seal outgoing read-request frames.

CHANGELOG:
- 2026-10-05: Initial creation (STORY-002)

TODO:
- None
"""

from __future__ import annotations

from collections.abc import Iterable

CRC_SEED: int = 0xFFFF
"""Initial accumulator value."""

CRC_POLYNOMIAL: int = 0xA001
"""Reflected form of the Modbus polynomial 0x8005."""


def crc16_modbus(data: Iterable[int]) -> tuple[int, int]:
    """Compute the Modbus CRC-16 of *data*.

    Bitwise, table-free variant: each byte is XORed into the accumulator,
    then the accumulator is shifted right eight times, XORing in the
    polynomial whenever the bit shifted out was set.

    Args:
        data: Byte values (``bytes``, ``bytearray`` or any iterable of ints
            in ``0..255``).

    Returns:
        ``(low_byte, high_byte)`` -- the order in which Modbus RTU appends
        the checksum to a frame.  An empty input returns ``(0xFF, 0xFF)``.
    """
    crc = CRC_SEED
    for byte in data:
        crc ^= byte & 0xFF
        for _ in range(8):
            if crc & 0x0001:
                crc = (crc >> 1) ^ CRC_POLYNOMIAL
            else:
                crc >>= 1
    return crc & 0xFF, crc >> 8
