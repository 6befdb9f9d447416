"""
Recover Modbus response frames from raw MQTT payloads.

The cloud relay prefixes responses with transport noise terminated by a
``++++`` marker (``2b2b2b2b`` in hex).  Everything after the first marker is
the candidate frame; a successful holding-register read echoes ``01 03``.

Frame kind is inferred from length: the relay carries no request id, so a
response cannot be matched to the request that triggered it.  Battery-cell
responses (50 registers) are well under 150 bytes, device-info responses
(95 registers) well over.  Changing either request size breaks this.

CHANGELOG:
- 2026-10-07: Accept mixed-case hex input
- 2026-10-06: Initial creation (STORY-003)

TODO:
- None
"""

from __future__ import annotations

import enum
import logging

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

PREAMBLE_MARKER: str = "2b2b2b2b"
"""Hex form of the ``++++`` separator emitted by the relay."""

READ_RESPONSE_PREFIX: str = "0103"
"""Device address 0x01 + function code 0x03 echoed by a successful read."""

DEVICE_FRAME_MIN_HEX_LENGTH: int = 300
"""Frames with at least this many hex characters are device telemetry."""


class FrameKind(enum.StrEnum):
    """Message kind carried by a response frame."""

    DEVICE = "device"
    BATTERY_CELLS = "battery_cells"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def payload_to_hex(payload: bytes) -> str:
    """Render a raw transport payload as lowercase hex."""
    return payload.hex()


def extract_frame(hex_payload: str) -> str | None:
    """Strip relay noise and return the response frame, if any.

    Args:
        hex_payload: Payload rendered as hex, in any letter case.

    Returns:
        The lowercase frame starting with ``0103``, or ``None`` when the
        candidate carries any other prefix (including Modbus error echoes).
    """
    candidate = hex_payload.lower()
    if PREAMBLE_MARKER in candidate:
        _, _, candidate = candidate.partition(PREAMBLE_MARKER)

    if not candidate.startswith(READ_RESPONSE_PREFIX):
        logger.warning("Dropping payload without read response prefix: %s", candidate[:64])
        return None
    return candidate


def classify_frame(frame: str) -> FrameKind:
    """Classify a frame by its hex length (see module docstring)."""
    if len(frame) < DEVICE_FRAME_MIN_HEX_LENGTH:
        return FrameKind.BATTERY_CELLS
    return FrameKind.DEVICE
