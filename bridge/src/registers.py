"""
Lumentree hybrid inverter register map -- single source of truth.

Maps every DeviceSnapshot field to its position in the device-info response
(holding registers read from address 0), together with how the raw 16-bit
cell is turned into an engineering value.  Offsets are indices into the
response's register table, not Modbus addresses.

The map is an explicit, versioned object handed to the decoder so a second
inverter model can ship its own table without touching decode code.

References:
    - Register offsets reverse-engineered from the vendor Android app
      traffic on the ``reportApp/<device>`` topic.

CHANGELOG:
- 2026-10-09: Add UPS-mode and master/slave status fields
- 2026-10-08: Add settings block (beep/backlight) and battery/work mode enums
- 2026-10-06: Initial creation (STORY-004)

TODO:
- None
"""

from __future__ import annotations

from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Data definitions
# ---------------------------------------------------------------------------

FIELD_KINDS: frozenset[str] = frozenset(
    {
        "U16",  # unsigned, optionally divided and rounded
        "S16",  # two's complement, optionally divided and rounded
        "ABS_S16",  # magnitude of a signed value, divided and rounded
        "HEX",  # raw cell text (version strings)
        "ASCII",  # consecutive cells holding hex-encoded ASCII
        "ENUM",  # index into ``labels``
        "FLAG",  # raw == ``match``
        "MATCH_LABEL",  # labels[0] if raw == ``match`` else labels[1]
        "TEMPERATURE",  # (raw - bias) / divisor in Celsius, plus Fahrenheit
        "GRID_POWER",  # signed power with import/export label
        "BATTERY_POWER",  # signed power reported as magnitude + direction label
        "PV2",  # second PV string + summed total
    }
)


@dataclass(frozen=True, slots=True)
class FieldDef:
    """Definition of one decoded DeviceSnapshot field (or field group).

    Attributes:
        name: DeviceSnapshot attribute written by single-output kinds; a
            group label for multi-output kinds.
        offset: Index of the first register cell used.
        kind: Decode kind, one of :data:`FIELD_KINDS`.
        divisor: Raw value is divided by this before rounding.
        decimals: Decimal places kept after division.  ``None`` keeps the
            raw integer.
        labels: Ordered labels for ``ENUM`` / ``MATCH_LABEL``.
        unknown_label: Format string used when an ``ENUM`` index has no
            label; receives the raw index.
        match: Comparison value for ``FLAG`` / ``MATCH_LABEL``.
        bias: Subtracted from the raw value before division
            (``TEMPERATURE``).
        word_count: Consecutive cells starting at *offset* (``ASCII``).
        extra_offsets: Further cells consulted by multi-register kinds.
        outputs: Attribute names written by multi-output kinds.
        description: Free-text description.
    """

    name: str
    offset: int
    kind: str
    divisor: int = 1
    decimals: int | None = None
    labels: tuple[str, ...] = ()
    unknown_label: str = "Unknown mode ({})"
    match: int | None = None
    bias: int = 0
    word_count: int = 1
    extra_offsets: tuple[int, ...] = ()
    outputs: tuple[str, ...] = ()
    description: str = ""

    def __post_init__(self) -> None:  # noqa: D105
        if self.kind not in FIELD_KINDS:
            msg = f"Field '{self.name}': unsupported kind '{self.kind}'"
            raise ValueError(msg)
        if self.kind in ("ENUM", "MATCH_LABEL") and not self.labels:
            msg = f"Field '{self.name}': kind '{self.kind}' needs labels"
            raise ValueError(msg)
        if self.kind in ("FLAG", "MATCH_LABEL") and self.match is None:
            msg = f"Field '{self.name}': kind '{self.kind}' needs a match value"
            raise ValueError(msg)

    @property
    def last_offset(self) -> int:
        """Highest register index this field reads."""
        return max(self.offset + self.word_count - 1, *self.extra_offsets, self.offset)

    @property
    def required_length(self) -> int:
        """Minimum register-table length for the field to be present."""
        return self.last_offset + 1

    @property
    def output_names(self) -> tuple[str, ...]:
        """Every DeviceSnapshot attribute this definition can populate."""
        return self.outputs or (self.name,)


@dataclass(frozen=True, slots=True)
class RegisterMap:
    """A versioned, ordered set of field definitions for one device model.

    Attributes:
        model: Inverter family the map describes.
        version: Map revision, bumped whenever an offset or scale changes.
        fields: Field definitions in decode order.
    """

    model: str
    version: str
    fields: tuple[FieldDef, ...]

    def field(self, name: str) -> FieldDef:
        """Look up a definition by name or by one of its outputs.

        Raises:
            KeyError: If no definition produces *name*.
        """
        for field_def in self.fields:
            if field_def.name == name or name in field_def.outputs:
                return field_def
        raise KeyError(name)


@dataclass(frozen=True, slots=True)
class CellFilter:
    """Rules for turning battery-cell registers into cell voltages.

    Attributes:
        min_raw: Raw values at or below this are absent-cell markers.
        max_raw: Raw values at or above this are noise.
        divisor: Raw millivolts to volts.
        decimals: Decimal places kept on voltages and statistics.
    """

    min_raw: int = 10
    max_raw: int = 50000
    divisor: int = 1000
    decimals: int = 3

    def accepts(self, raw: int) -> bool:
        """Return True when *raw* is a plausible cell voltage."""
        return self.min_raw < raw < self.max_raw


# ---------------------------------------------------------------------------
# Label tables
# ---------------------------------------------------------------------------

WORK_MODES: tuple[str, ...] = (
    "Uninterruptible Power Mode (UPS)",
    "Save Money Mode",
    "Sell Mode",
    "Smart Meter Mode",
    "WIFI CT Mode",
    "MESH CT Mode",
)

BATTERY_MODES: tuple[str, ...] = (
    "User Defined",
    "Special Battery Pack",
    "No Battery",
)

BEEP_MODES: tuple[str, ...] = ("Off", "Auto Off", "Always On")

BACKLIGHT_MODES: tuple[str, ...] = ("Auto Off", "Always On")

# ---------------------------------------------------------------------------
# Device-info register map (request: start 0, count 95)
# ---------------------------------------------------------------------------

_DEVICE_FIELDS: tuple[FieldDef, ...] = (
    # System information
    FieldDef(
        name="firmware_version",
        offset=2,
        kind="HEX",
        description="Firmware version, raw register text",
    ),
    FieldDef(
        name="device_model",
        offset=3,
        kind="ASCII",
        word_count=5,
        outputs=("device_model_hex", "device_model_ascii"),
        description="Model name, 10 ASCII chars in 5 words",
    ),
    FieldDef(
        name="controller_version",
        offset=8,
        kind="HEX",
        description="Controller version, raw register text",
    ),
    # Battery
    FieldDef(
        name="battery_voltage",
        offset=11,
        kind="U16",
        divisor=100,
        decimals=2,
        description="Battery voltage (V)",
    ),
    FieldDef(
        name="battery_current",
        offset=12,
        kind="ABS_S16",
        divisor=100,
        decimals=2,
        description="Battery current magnitude (A)",
    ),
    # AC output / input
    FieldDef(
        name="ac_output_voltage",
        offset=13,
        kind="U16",
        divisor=10,
        decimals=1,
        description="AC output voltage (V)",
    ),
    FieldDef(
        name="ac_input_voltage",
        offset=15,
        kind="U16",
        divisor=10,
        decimals=1,
        description="AC input (grid) voltage (V)",
    ),
    FieldDef(
        name="ac_output_frequency",
        offset=16,
        kind="U16",
        divisor=100,
        decimals=2,
        description="AC output frequency (Hz)",
    ),
    FieldDef(
        name="ac_input_frequency",
        offset=17,
        kind="U16",
        divisor=100,
        decimals=2,
        description="AC input frequency (Hz)",
    ),
    FieldDef(
        name="ac_output_power",
        offset=18,
        kind="U16",
        description="AC output active power (W)",
    ),
    # PV string 1
    FieldDef(name="pv1_voltage", offset=20, kind="U16", description="PV1 voltage (V)"),
    FieldDef(name="pv1_power", offset=22, kind="U16", description="PV1 power (W)"),
    # Thermal
    FieldDef(
        name="temperature",
        offset=24,
        kind="TEMPERATURE",
        bias=1000,
        divisor=10,
        decimals=1,
        outputs=("temperature_celsius", "temperature_fahrenheit"),
        description="Device temperature, raw = C * 10 + 1000",
    ),
    FieldDef(
        name="battery_type",
        offset=37,
        kind="MATCH_LABEL",
        match=2,
        labels=("No Battery", "Present"),
        description="Battery presence (2 = no battery)",
    ),
    FieldDef(
        name="battery_charge_percentage",
        offset=50,
        kind="U16",
        description="Battery state of charge (%)",
    ),
    FieldDef(
        name="ac_input_power",
        offset=53,
        kind="U16",
        description="AC input active power (W)",
    ),
    FieldDef(
        name="ac_output_apparent_power",
        offset=58,
        kind="U16",
        description="AC output apparent power (VA)",
    ),
    FieldDef(
        name="grid",
        offset=59,
        kind="GRID_POWER",
        outputs=("grid_power", "grid_status"),
        description="Grid power. Positive = importing, otherwise exporting.",
    ),
    FieldDef(
        name="battery",
        offset=61,
        kind="BATTERY_POWER",
        outputs=("battery_power", "battery_status"),
        description="Battery power. Negative = charging, otherwise discharging.",
    ),
    FieldDef(name="home_load", offset=67, kind="U16", description="Home load power (W)"),
    FieldDef(
        name="ups_mode",
        offset=68,
        kind="FLAG",
        match=0,
        description="UPS mode enabled when the register is 0",
    ),
    FieldDef(
        name="master_slave_status",
        offset=70,
        kind="U16",
        description="Parallel master/slave status code",
    ),
    FieldDef(
        name="pv2",
        offset=72,
        kind="PV2",
        extra_offsets=(74,),
        outputs=("pv2_voltage", "pv2_power", "total_pv_power"),
        description="PV2 voltage (72) and power (74); total includes PV1",
    ),
    FieldDef(
        name="battery_mode",
        offset=100,
        kind="ENUM",
        labels=BATTERY_MODES,
        description="Battery configuration mode",
    ),
    FieldDef(
        name="work_mode",
        offset=150,
        kind="ENUM",
        labels=WORK_MODES,
        description="Inverter operating mode",
    ),
    FieldDef(
        name="beep_mode",
        offset=167,
        kind="ENUM",
        labels=BEEP_MODES,
        unknown_label="Unknown ({})",
        description="Buzzer setting",
    ),
    FieldDef(
        name="backlight_mode",
        offset=168,
        kind="ENUM",
        labels=BACKLIGHT_MODES,
        unknown_label="Unknown ({})",
        description="Display backlight setting",
    ),
)

DEVICE_REGISTER_MAP = RegisterMap(
    model="lumentree-hybrid",
    version="3",
    fields=_DEVICE_FIELDS,
)
"""Default device-info map."""

BATTERY_CELL_FILTER = CellFilter()
"""Default battery-cell rules."""
