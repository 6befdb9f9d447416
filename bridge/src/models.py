"""
Pydantic models for decoded inverter snapshots.

A DeviceSnapshot holds whatever the device-info response was long enough to
contain: every measurement is optional and ``None`` means "not in this
frame", never zero.  Serialised output omits absent fields and uses the
camelCase keys of the vendor app (``deviceModelHex``, ``pv1Power``, ...).

Both models are frozen; a new decode produces a new snapshot.

CHANGELOG:
- 2026-10-09: Add ups_mode and master_slave_status
- 2026-10-06: Initial creation (STORY-004)

TODO:
- None
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

_SNAPSHOT_CONFIG = ConfigDict(
    frozen=True,
    alias_generator=to_camel,
    populate_by_name=True,
)


class _Snapshot(BaseModel):
    """Fields and serialisation shared by both snapshot kinds."""

    model_config = _SNAPSHOT_CONFIG

    device_id: str
    timestamp: datetime

    @field_validator("timestamp")
    @classmethod
    def timestamp_must_be_utc(cls, v: datetime) -> datetime:
        """Normalise to UTC; naive timestamps are taken as UTC already."""
        if v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v.astimezone(UTC)

    def to_api(self) -> dict[str, Any]:
        """Return a JSON-ready dict with camelCase keys and absent fields omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class DeviceSnapshot(_Snapshot):
    """One decoded device-info response.

    Attributes:
        device_id: Trailing segment of the topic the frame arrived on.
        timestamp: Capture time (UTC), injected by the caller.
        device_model_hex: Raw hex of the five model registers.
        device_model_ascii: Model name decoded from ``device_model_hex``.
        firmware_version: Firmware register as hex text.
        controller_version: Controller register as hex text.
        temperature_celsius: Device temperature in degrees Celsius.
        temperature_fahrenheit: Same temperature in Fahrenheit.
        battery_voltage: Battery voltage in volts.
        battery_current: Battery current magnitude in amperes.
        battery_charge_percentage: State of charge (0-100).
        battery_power: Battery power magnitude in watts.
        battery_status: ``"Charging"`` or ``"Discharging"``.
        battery_type: ``"Present"`` or ``"No Battery"``.
        battery_mode: Battery configuration mode label.
        ac_output_voltage: Inverter output voltage in volts.
        ac_output_frequency: Output frequency in hertz.
        ac_output_power: Output active power in watts.
        ac_output_apparent_power: Output apparent power in VA.
        ac_input_voltage: Grid voltage in volts.
        ac_input_frequency: Grid frequency in hertz.
        ac_input_power: Grid input power in watts.
        grid_power: Signed grid power in watts. Positive = importing.
        grid_status: ``"Importing"`` or ``"Exporting"``.
        home_load: Household consumption in watts.
        pv1_voltage: PV string 1 voltage.
        pv1_power: PV string 1 power in watts.
        pv2_voltage: PV string 2 voltage (only when nonzero).
        pv2_power: PV string 2 power in watts (only when pv2_voltage > 0).
        total_pv_power: Sum of both strings' power in watts.
        ups_mode: True when UPS mode is active.
        master_slave_status: Parallel operation status code.
        work_mode: Operating mode label.
        beep_mode: Buzzer setting label.
        backlight_mode: Backlight setting label.
    """

    device_model_hex: str | None = None
    device_model_ascii: str | None = None
    firmware_version: str | None = None
    controller_version: str | None = None
    temperature_celsius: float | None = None
    temperature_fahrenheit: float | None = None
    battery_voltage: float | None = None
    battery_current: float | None = None
    battery_charge_percentage: int | None = None
    battery_power: int | None = None
    battery_status: str | None = None
    battery_type: str | None = None
    battery_mode: str | None = None
    ac_output_voltage: float | None = None
    ac_output_frequency: float | None = None
    ac_output_power: int | None = None
    ac_output_apparent_power: int | None = None
    ac_input_voltage: float | None = None
    ac_input_frequency: float | None = None
    ac_input_power: int | None = None
    grid_power: int | None = None
    grid_status: str | None = None
    home_load: int | None = None
    pv1_voltage: int | None = None
    pv1_power: int | None = None
    pv2_voltage: int | None = None
    pv2_power: int | None = None
    total_pv_power: int | None = None
    ups_mode: bool | None = None
    master_slave_status: int | None = None
    work_mode: str | None = None
    beep_mode: str | None = None
    backlight_mode: str | None = None


class BatteryCellSnapshot(_Snapshot):
    """One decoded battery-cell response.

    Attributes:
        device_id: Trailing segment of the topic the frame arrived on.
        timestamp: Capture time (UTC), injected by the caller.
        cell_voltages: 1-based register position -> cell voltage in volts.
            Positions whose register failed the plausibility filter are
            missing, so keys need not be contiguous.
        number_of_cells: Count of included cells.
        average_voltage: Mean cell voltage.
        minimum_voltage: Lowest cell voltage.
        maximum_voltage: Highest cell voltage.
        voltage_difference: ``maximum_voltage - minimum_voltage``.
    """

    cell_voltages: dict[int, float]
    number_of_cells: int
    average_voltage: float
    minimum_voltage: float
    maximum_voltage: float
    voltage_difference: float
