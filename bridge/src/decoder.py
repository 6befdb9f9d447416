"""
Pure decoder that turns a response frame into a DeviceSnapshot or a
BatteryCellSnapshot.

A frame is the hex text of a Modbus read-holding-registers response::

    01 03 <byte count> <data ...> <crc lo> <crc hi>

The data section is sliced into 2-byte register cells (the register table).
Device fields are then read by offset according to a
:class:`~bridge.src.registers.RegisterMap`; a field is present only when the
table is long enough to hold every cell it reads.

Nothing here raises on malformed telemetry.  A bad prefix or length byte
yields ``None``; an unparsable cell or an out-of-range enumeration degrades
to an absent field or a diagnostic label.  Like the normalizer it replaces,
this module does no I/O and reads no clock: device id and timestamp are
passed in by the caller.

CHANGELOG:
- 2026-10-19: Round half away from zero
- 2026-10-09: Decode through RegisterMap instead of inline offsets
- 2026-10-07: Battery-cell decode (STORY-005)
- 2026-10-06: Initial creation (STORY-004)

TODO:
- None
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from bridge.src.frames import READ_RESPONSE_PREFIX
from bridge.src.models import BatteryCellSnapshot, DeviceSnapshot
from bridge.src.registers import (
    BATTERY_CELL_FILTER,
    DEVICE_REGISTER_MAP,
    CellFilter,
    FieldDef,
    RegisterMap,
)
from bridge.src.rounding import round_half_up

logger = logging.getLogger(__name__)

HEADER_HEX_LENGTH: int = 6
"""Address, function code and byte count: 3 bytes."""

CELL_HEX_LENGTH: int = 4
"""One 16-bit register rendered as hex."""


# ---------------------------------------------------------------------------
# Register table
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RegisterTable:
    """Ordered register cells from one response's data section.

    Cells are kept as their hex text so version fields can report the raw
    register; :meth:`value` gives the unsigned integer.
    """

    cells: tuple[str, ...]

    def __len__(self) -> int:
        return len(self.cells)

    def __iter__(self) -> Iterator[str]:
        return iter(self.cells)

    def has(self, index: int) -> bool:
        """Return True when the table holds a cell at *index*."""
        return 0 <= index < len(self.cells)

    def raw(self, index: int) -> str:
        """Return the hex text of the cell at *index*."""
        return self.cells[index]

    def value(self, index: int) -> int | None:
        """Return the unsigned value at *index*, or ``None`` if not hex."""
        try:
            return int(self.cells[index], 16)
        except ValueError:
            logger.warning("Register %d: unparsable cell %r", index, self.cells[index])
            return None


def to_signed16(value: int) -> int:
    """Interpret a raw 16-bit value as signed (two's complement)."""
    value &= 0xFFFF
    if value > 0x7FFF:
        value -= 0x10000
    return value


def hex_to_ascii(hex_text: str) -> str:
    """Decode hex-encoded ASCII, mapping NUL to space and trimming.

    Bytes above 0x7F keep only their low seven bits.  Malformed hex returns
    ``"(Invalid hex: <text>)"`` instead of raising.
    """
    try:
        data = bytes.fromhex(hex_text)
    except ValueError:
        return f"(Invalid hex: {hex_text})"
    text = bytes(b & 0x7F for b in data).decode("ascii")
    return text.replace("\0", " ").strip()


def parse_register_table(frame: str) -> RegisterTable | None:
    """Slice a response frame's data section into register cells.

    The byte count (hex chars 4-5) bounds the data section; a trailing
    partial cell is dropped.  Whatever follows the data section (the CRC)
    is ignored.

    Args:
        frame: Lowercase hex text beginning with ``0103``.

    Returns:
        The register table, or ``None`` if the prefix or byte count is bad.
    """
    if not frame.startswith(READ_RESPONSE_PREFIX):
        logger.warning("Invalid response frame: %s", frame[:64])
        return None

    try:
        data_length = int(frame[4:HEADER_HEX_LENGTH], 16)
    except ValueError:
        logger.warning("Invalid byte count in response frame: %s", frame[:64])
        return None

    data = frame[HEADER_HEX_LENGTH : HEADER_HEX_LENGTH + data_length * 2]
    cells = tuple(
        data[i : i + CELL_HEX_LENGTH]
        for i in range(0, len(data) - CELL_HEX_LENGTH + 1, CELL_HEX_LENGTH)
    )
    return RegisterTable(cells)


# ---------------------------------------------------------------------------
# Per-kind field decoders
# ---------------------------------------------------------------------------

_FieldDecoder = Callable[[FieldDef, RegisterTable, dict[str, Any]], dict[str, Any]]


def _scale(raw: int, field_def: FieldDef) -> int | float:
    if field_def.decimals is None:
        return raw
    return round_half_up(raw / field_def.divisor, field_def.decimals)


def _decode_u16(field_def: FieldDef, table: RegisterTable, _: dict[str, Any]) -> dict[str, Any]:
    raw = table.value(field_def.offset)
    if raw is None:
        return {}
    return {field_def.name: _scale(raw, field_def)}


def _decode_s16(field_def: FieldDef, table: RegisterTable, _: dict[str, Any]) -> dict[str, Any]:
    raw = table.value(field_def.offset)
    if raw is None:
        return {}
    return {field_def.name: _scale(to_signed16(raw), field_def)}


def _decode_abs_s16(
    field_def: FieldDef, table: RegisterTable, _: dict[str, Any]
) -> dict[str, Any]:
    raw = table.value(field_def.offset)
    if raw is None:
        return {}
    return {field_def.name: abs(_scale(to_signed16(raw), field_def))}


def _decode_hex(field_def: FieldDef, table: RegisterTable, _: dict[str, Any]) -> dict[str, Any]:
    return {field_def.name: table.raw(field_def.offset)}


def _decode_ascii(field_def: FieldDef, table: RegisterTable, _: dict[str, Any]) -> dict[str, Any]:
    hex_name, ascii_name = field_def.output_names
    start = field_def.offset
    hex_text = "".join(table.cells[start : start + field_def.word_count])
    return {hex_name: hex_text, ascii_name: hex_to_ascii(hex_text)}


def _decode_enum(field_def: FieldDef, table: RegisterTable, _: dict[str, Any]) -> dict[str, Any]:
    index = table.value(field_def.offset)
    if index is None:
        return {}
    if 0 <= index < len(field_def.labels):
        label = field_def.labels[index]
    else:
        label = field_def.unknown_label.format(index)
    return {field_def.name: label}


def _decode_flag(field_def: FieldDef, table: RegisterTable, _: dict[str, Any]) -> dict[str, Any]:
    raw = table.value(field_def.offset)
    if raw is None:
        return {}
    return {field_def.name: raw == field_def.match}


def _decode_match_label(
    field_def: FieldDef, table: RegisterTable, _: dict[str, Any]
) -> dict[str, Any]:
    raw = table.value(field_def.offset)
    if raw is None:
        return {}
    matched, other = field_def.labels
    return {field_def.name: matched if raw == field_def.match else other}


def _decode_temperature(
    field_def: FieldDef, table: RegisterTable, _: dict[str, Any]
) -> dict[str, Any]:
    raw = table.value(field_def.offset)
    if raw is None:
        return {}
    celsius_name, fahrenheit_name = field_def.output_names
    celsius = (raw - field_def.bias) / field_def.divisor
    return {
        celsius_name: round_half_up(celsius, field_def.decimals or 0),
        fahrenheit_name: round_half_up(celsius * 1.8 + 32, field_def.decimals or 0),
    }


def _decode_grid_power(
    field_def: FieldDef, table: RegisterTable, _: dict[str, Any]
) -> dict[str, Any]:
    raw = table.value(field_def.offset)
    if raw is None:
        return {}
    power_name, status_name = field_def.output_names
    power = to_signed16(raw)
    return {
        power_name: power,
        status_name: "Importing" if power > 0 else "Exporting",
    }


def _decode_battery_power(
    field_def: FieldDef, table: RegisterTable, _: dict[str, Any]
) -> dict[str, Any]:
    raw = table.value(field_def.offset)
    if raw is None:
        return {}
    power_name, status_name = field_def.output_names
    power = to_signed16(raw)
    return {
        power_name: abs(power),
        status_name: "Charging" if power < 0 else "Discharging",
    }


def _decode_pv2(
    field_def: FieldDef, table: RegisterTable, decoded: dict[str, Any]
) -> dict[str, Any]:
    (power_offset,) = field_def.extra_offsets
    voltage = table.value(field_def.offset)
    power = table.value(power_offset)
    if voltage is None or power is None:
        return {}
    voltage_name, power_name, total_name = field_def.output_names
    pv1_power = decoded.get("pv1_power", 0)
    if voltage > 0:
        return {
            voltage_name: voltage,
            power_name: power,
            total_name: pv1_power + power,
        }
    return {total_name: pv1_power}


_DECODERS: dict[str, _FieldDecoder] = {
    "U16": _decode_u16,
    "S16": _decode_s16,
    "ABS_S16": _decode_abs_s16,
    "HEX": _decode_hex,
    "ASCII": _decode_ascii,
    "ENUM": _decode_enum,
    "FLAG": _decode_flag,
    "MATCH_LABEL": _decode_match_label,
    "TEMPERATURE": _decode_temperature,
    "GRID_POWER": _decode_grid_power,
    "BATTERY_POWER": _decode_battery_power,
    "PV2": _decode_pv2,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def decode_device_fields(
    table: RegisterTable,
    register_map: RegisterMap = DEVICE_REGISTER_MAP,
) -> dict[str, Any]:
    """Decode every field the table is long enough to hold.

    Args:
        table: Register cells of a device-info response.
        register_map: Offset table to decode with.

    Returns:
        Mapping of DeviceSnapshot attribute name to decoded value.  Fields
        whose cells lie beyond the table are omitted.
    """
    decoded: dict[str, Any] = {}
    for field_def in register_map.fields:
        if len(table) < field_def.required_length:
            continue
        decoded.update(_DECODERS[field_def.kind](field_def, table, decoded))
    return decoded


def decode_device(
    frame: str,
    *,
    device_id: str,
    ts: datetime,
    register_map: RegisterMap = DEVICE_REGISTER_MAP,
) -> DeviceSnapshot | None:
    """Decode a device-info response frame into a DeviceSnapshot.

    Args:
        frame: Lowercase hex text beginning with ``0103``.
        device_id: Device identifier to embed in the snapshot.
        ts: Capture timestamp to embed in the snapshot.
        register_map: Offset table to decode with.

    Returns:
        The snapshot, or ``None`` if the frame header is malformed.  A
        short frame still yields a snapshot carrying only the fields it
        covers.
    """
    table = parse_register_table(frame)
    if table is None:
        return None
    fields = decode_device_fields(table, register_map)
    return DeviceSnapshot(device_id=device_id, timestamp=ts, **fields)


def decode_battery_cells(
    frame: str,
    *,
    device_id: str,
    ts: datetime,
    cell_filter: CellFilter = BATTERY_CELL_FILTER,
) -> BatteryCellSnapshot | None:
    """Decode a battery-cell response frame into a BatteryCellSnapshot.

    Every register is a candidate cell.  Registers rejected by
    *cell_filter* are skipped, not zero-filled; included cells keep their
    1-based position among all registers as key.

    Args:
        frame: Lowercase hex text beginning with ``0103``.
        device_id: Device identifier to embed in the snapshot.
        ts: Capture timestamp to embed in the snapshot.
        cell_filter: Plausibility band and scaling for cell registers.

    Returns:
        The snapshot, or ``None`` if the frame is malformed or no register
        passes the filter.
    """
    table = parse_register_table(frame)
    if table is None:
        return None

    decimals = cell_filter.decimals
    cell_voltages: dict[int, float] = {}
    volts: list[float] = []
    for index in range(len(table)):
        raw = table.value(index)
        if raw is None or not cell_filter.accepts(raw):
            continue
        voltage = raw / cell_filter.divisor
        cell_voltages[index + 1] = round_half_up(voltage, decimals)
        volts.append(voltage)

    if not volts:
        logger.info("Battery-cell frame from %s holds no plausible cells", device_id)
        return None

    minimum = min(volts)
    maximum = max(volts)
    return BatteryCellSnapshot(
        device_id=device_id,
        timestamp=ts,
        cell_voltages=cell_voltages,
        number_of_cells=len(volts),
        average_voltage=round_half_up(sum(volts) / len(volts), decimals),
        minimum_voltage=round_half_up(minimum, decimals),
        maximum_voltage=round_half_up(maximum, decimals),
        voltage_difference=round_half_up(maximum - minimum, decimals),
    )
