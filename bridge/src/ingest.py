"""
Inbound message pipeline: MQTT payload -> frame -> snapshot -> store.

``process_payload`` is the single-message step (easily testable, clock
injectable).  ``MessageHandler`` wraps it for the transport thread and
never lets an exception escape into paho's network loop.

CHANGELOG:
- 2026-10-11: Initial creation (STORY-009)

TODO:
- None
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from bridge.src.decoder import decode_battery_cells, decode_device
from bridge.src.frames import FrameKind, classify_frame, extract_frame, payload_to_hex
from bridge.src.models import BatteryCellSnapshot, DeviceSnapshot
from bridge.src.registers import DEVICE_REGISTER_MAP, RegisterMap
from bridge.src.store import SnapshotStore

logger = logging.getLogger(__name__)


def device_id_from_topic(topic: str) -> str:
    """Return the trailing path segment of *topic*."""
    return topic.rsplit("/", 1)[-1]


def process_payload(
    topic: str,
    payload: bytes,
    *,
    store: SnapshotStore,
    ts: datetime | None = None,
    register_map: RegisterMap = DEVICE_REGISTER_MAP,
) -> DeviceSnapshot | BatteryCellSnapshot | None:
    """Decode one inbound payload and record the result.

    Args:
        topic: Topic the payload arrived on; its last segment is the device id.
        payload: Raw message bytes.
        store: Receives the snapshot on success.
        ts: Capture time; defaults to now (UTC).
        register_map: Offset table for device-info frames.

    Returns:
        The stored snapshot, or ``None`` when the payload carried no usable
        frame.
    """
    hex_payload = payload_to_hex(payload)
    logger.debug("Received message on %s: %s", topic, hex_payload)

    frame = extract_frame(hex_payload)
    if frame is None:
        return None

    device_id = device_id_from_topic(topic)
    if ts is None:
        ts = datetime.now(tz=UTC)

    kind = classify_frame(frame)
    if kind is FrameKind.BATTERY_CELLS:
        cells = decode_battery_cells(frame, device_id=device_id, ts=ts)
        if cells is None:
            return None
        store.add_battery_cells(cells)
        logger.info(
            "Battery cells updated: device=%s cells=%d avg=%.3fV spread=%.3fV",
            device_id,
            cells.number_of_cells,
            cells.average_voltage,
            cells.voltage_difference,
        )
        return cells

    device = decode_device(frame, device_id=device_id, ts=ts, register_map=register_map)
    if device is None:
        return None
    store.add_device(device)
    logger.info(
        "Device data updated: device=%s fields=%d",
        device_id,
        len(device.model_fields_set) - 2,
    )
    return device


class MessageHandler:
    """Transport callback that feeds payloads into a :class:`SnapshotStore`.

    Args:
        store: Destination for decoded snapshots.
        register_map: Offset table for device-info frames.
    """

    def __init__(
        self,
        store: SnapshotStore,
        register_map: RegisterMap = DEVICE_REGISTER_MAP,
    ) -> None:
        self._store = store
        self._register_map = register_map

    def __call__(self, topic: str, payload: bytes) -> None:
        try:
            process_payload(
                topic,
                payload,
                store=self._store,
                register_map=self._register_map,
            )
        except Exception:
            logger.error("Message handling error on topic %s", topic, exc_info=True)
