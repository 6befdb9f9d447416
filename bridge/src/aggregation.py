"""
Daily statistics over in-memory snapshot history.

All date-scoped queries use the half-open UTC calendar day
``[00:00, next 00:00)``.  Values are rounded half away from zero.  Energy is
integrated with the trapezoidal rule over real timestamp deltas because
snapshots arrive whenever the inverter answers, not on a fixed cadence.

CHANGELOG:
- 2026-10-19: Half-open day window; half-up rounding
- 2026-10-12: Accept ISO date strings as well as date objects
- 2026-10-10: Initial creation (STORY-006)

TODO:
- None
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from datetime import UTC, date, datetime, time, timedelta
from typing import TypeVar

from bridge.src.models import BatteryCellSnapshot, DeviceSnapshot
from bridge.src.rounding import round_half_up

SnapshotT = TypeVar("SnapshotT", DeviceSnapshot, BatteryCellSnapshot)

# ---------------------------------------------------------------------------
# Default field sets for the daily statistics view
# ---------------------------------------------------------------------------

DEVICE_AGGREGATE_FIELDS: tuple[str, ...] = (
    "temperature_celsius",
    "ac_output_voltage",
    "ac_input_voltage",
    "home_load",
    "total_pv_power",
    "grid_power",
)

BATTERY_AGGREGATE_FIELDS: tuple[str, ...] = (
    "average_voltage",
    "minimum_voltage",
    "maximum_voltage",
    "voltage_difference",
)

ENERGY_FIELD: str = "home_load"
"""Power field integrated into daily consumption."""

_SECONDS_PER_HOUR: float = 3600.0

# ---------------------------------------------------------------------------
# Day window
# ---------------------------------------------------------------------------


def parse_day(day: date | str) -> date:
    """Return *day* as a date, parsing ``YYYY-MM-DD`` strings.

    Raises:
        ValueError: If a string is not a valid ISO calendar date.
    """
    if isinstance(day, datetime):
        return day.date()
    if isinstance(day, date):
        return day
    return date.fromisoformat(day)


def day_window(day: date | str) -> tuple[datetime, datetime]:
    """Return the half-open UTC bounds ``[start, next midnight)`` of *day*.

    Consecutive days share a boundary, so every timestamp, whatever its
    sub-millisecond part, belongs to exactly one day.
    """
    start = datetime.combine(parse_day(day), time.min, tzinfo=UTC)
    return start, start + timedelta(days=1)


def filter_day(history: Iterable[SnapshotT], day: date | str) -> list[SnapshotT]:
    """Return the snapshots whose timestamp falls inside *day*, in input order."""
    start, end = day_window(day)
    return [item for item in history if start <= item.timestamp < end]


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------


def _is_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def daily_aggregates(
    history: Iterable[DeviceSnapshot | BatteryCellSnapshot],
    fields: Sequence[str],
    day: date | str,
) -> dict[str, dict[str, float]]:
    """Compute per-field min/max/average for one UTC day.

    Args:
        history: Snapshots of a single kind, any order.
        fields: Snapshot attribute names to aggregate.
        day: The calendar day to aggregate.

    Returns:
        ``{field: {"min": ..., "max": ..., "avg": ...}}`` rounded to three
        decimals.  Fields with no present numeric value that day are
        omitted.
    """
    in_day = filter_day(history, day)
    aggregates: dict[str, dict[str, float]] = {}
    for field_name in fields:
        values = [
            value
            for value in (getattr(item, field_name, None) for item in in_day)
            if _is_number(value)
        ]
        if not values:
            continue
        aggregates[field_name] = {
            "min": round_half_up(min(values), 3),
            "max": round_half_up(max(values), 3),
            "avg": round_half_up(sum(values) / len(values), 3),
        }
    return aggregates


def daily_energy(history: Iterable[DeviceSnapshot], day: date | str) -> float:
    """Integrate home load over one UTC day into watt-hours.

    Snapshots without a numeric load are skipped.  The rest are sorted by
    timestamp and each adjacent pair contributes the mean of its two
    readings times the elapsed hours between them.

    Args:
        history: Device snapshots, any order.
        day: The calendar day to integrate.

    Returns:
        Energy in Wh rounded to two decimals; ``0.0`` with fewer than two
        qualifying snapshots.
    """
    points = sorted(
        (
            item
            for item in filter_day(history, day)
            if _is_number(getattr(item, ENERGY_FIELD, None))
        ),
        key=lambda item: item.timestamp,
    )
    if len(points) < 2:
        return 0.0

    total_wh = 0.0
    for prev, curr in zip(points, points[1:]):
        hours = (curr.timestamp - prev.timestamp).total_seconds() / _SECONDS_PER_HOUR
        avg_power = (getattr(prev, ENERGY_FIELD) + getattr(curr, ENERGY_FIELD)) / 2
        total_wh += avg_power * hours
    return round_half_up(total_wh, 2)
