"""
Thread-safe in-memory holder for the latest snapshots and their history.

MQTT messages are decoded on the paho network thread while HTTP handlers
read from the API's worker threads, so every access goes through one lock.
Readers get tuples, never the live deques.

History is appended in arrival order.  Each kind keeps at most
``retention`` entries, oldest evicted first; ``0`` keeps everything.

CHANGELOG:
- 2026-10-13: Add per-kind retention limit (STORY-008)
- 2026-10-10: Initial creation (STORY-007)

TODO:
- None
"""

from __future__ import annotations

import threading
from collections import deque
from datetime import date

from bridge.src.aggregation import (
    BATTERY_AGGREGATE_FIELDS,
    DEVICE_AGGREGATE_FIELDS,
    daily_aggregates,
    daily_energy,
    filter_day,
)
from bridge.src.frames import FrameKind
from bridge.src.models import BatteryCellSnapshot, DeviceSnapshot

DEFAULT_RETENTION: int = 20_000
"""Entries kept per kind: roughly two weeks at one refresh per minute."""


class SnapshotStore:
    """Latest-snapshot slots plus per-kind history.

    Args:
        retention: Maximum history entries per kind; ``0`` for unbounded.
    """

    def __init__(self, retention: int = DEFAULT_RETENTION) -> None:
        if retention < 0:
            raise ValueError("retention must be >= 0")
        maxlen = retention or None
        self._lock = threading.Lock()
        self._latest_device: DeviceSnapshot | None = None
        self._latest_battery_cells: BatteryCellSnapshot | None = None
        self._device_history: deque[DeviceSnapshot] = deque(maxlen=maxlen)
        self._battery_cell_history: deque[BatteryCellSnapshot] = deque(maxlen=maxlen)

    @property
    def retention(self) -> int:
        """Configured per-kind history limit (``0`` = unbounded)."""
        return self._device_history.maxlen or 0

    # -- Writers ------------------------------------------------------------

    def add_device(self, snapshot: DeviceSnapshot) -> None:
        """Make *snapshot* the latest device snapshot and append it to history."""
        with self._lock:
            self._latest_device = snapshot
            self._device_history.append(snapshot)

    def add_battery_cells(self, snapshot: BatteryCellSnapshot) -> None:
        """Make *snapshot* the latest battery-cell snapshot and append it to history."""
        with self._lock:
            self._latest_battery_cells = snapshot
            self._battery_cell_history.append(snapshot)

    # -- Readers ------------------------------------------------------------

    def latest_device(self) -> DeviceSnapshot | None:
        with self._lock:
            return self._latest_device

    def latest_battery_cells(self) -> BatteryCellSnapshot | None:
        with self._lock:
            return self._latest_battery_cells

    def all_history(
        self, kind: FrameKind
    ) -> tuple[DeviceSnapshot, ...] | tuple[BatteryCellSnapshot, ...]:
        """Return every retained snapshot of *kind* in arrival order."""
        with self._lock:
            if kind is FrameKind.DEVICE:
                return tuple(self._device_history)
            return tuple(self._battery_cell_history)

    def history(
        self, kind: FrameKind, day: date | str
    ) -> list[DeviceSnapshot] | list[BatteryCellSnapshot]:
        """Return the snapshots of *kind* captured on the UTC *day*.

        Raises:
            ValueError: If *day* is a string that is not ``YYYY-MM-DD``.
        """
        return filter_day(self.all_history(kind), day)

    # -- Statistics ---------------------------------------------------------

    def daily_energy(self, day: date | str) -> float:
        """Home-load energy in Wh for the UTC *day*."""
        return daily_energy(self.all_history(FrameKind.DEVICE), day)

    def daily_aggregates(
        self,
        kind: FrameKind,
        day: date | str,
        fields: tuple[str, ...] | None = None,
    ) -> dict[str, dict[str, float]]:
        """Min/max/avg for *fields* (default set per kind) on the UTC *day*."""
        if fields is None:
            fields = (
                DEVICE_AGGREGATE_FIELDS
                if kind is FrameKind.DEVICE
                else BATTERY_AGGREGATE_FIELDS
            )
        return daily_aggregates(self.all_history(kind), fields, day)
