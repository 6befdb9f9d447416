"""
Tests for the device-info register map definitions.

Verifies that every field definition is well formed, that each output maps
onto a DeviceSnapshot attribute, and that the documented offsets hold.

CHANGELOG:
- 2026-10-09: Cover RegisterMap lookups by output name
- 2026-10-06: Initial creation (STORY-004)

TODO:
- None
"""

from __future__ import annotations

import pytest

from bridge.src.models import DeviceSnapshot
from bridge.src.registers import (
    BATTERY_CELL_FILTER,
    DEVICE_REGISTER_MAP,
    FIELD_KINDS,
    WORK_MODES,
    CellFilter,
    FieldDef,
)

# ===========================================================================
# FieldDef validation
# ===========================================================================


class TestFieldDefValidation:
    """FieldDef rejects inconsistent definitions at construction time."""

    def test_unknown_kind_rejected(self) -> None:
        with pytest.raises(ValueError, match="unsupported kind"):
            FieldDef(name="x", offset=0, kind="FLOAT32")

    def test_enum_without_labels_rejected(self) -> None:
        with pytest.raises(ValueError, match="needs labels"):
            FieldDef(name="x", offset=0, kind="ENUM")

    def test_flag_without_match_rejected(self) -> None:
        with pytest.raises(ValueError, match="needs a match value"):
            FieldDef(name="x", offset=0, kind="FLAG")

    def test_match_label_needs_both(self) -> None:
        with pytest.raises(ValueError):
            FieldDef(name="x", offset=0, kind="MATCH_LABEL", labels=("a", "b"))

    def test_frozen(self) -> None:
        field_def = FieldDef(name="x", offset=0, kind="U16")
        with pytest.raises(AttributeError):
            field_def.offset = 3  # type: ignore[misc]


class TestFieldDefGeometry:
    """last_offset / required_length cover every cell a field reads."""

    def test_single_cell(self) -> None:
        field_def = FieldDef(name="x", offset=11, kind="U16")
        assert field_def.last_offset == 11
        assert field_def.required_length == 12

    def test_multi_word(self) -> None:
        field_def = FieldDef(name="x", offset=3, kind="ASCII", word_count=5)
        assert field_def.last_offset == 7

    def test_extra_offsets(self) -> None:
        field_def = FieldDef(name="x", offset=72, kind="PV2", extra_offsets=(74,))
        assert field_def.required_length == 75

    def test_output_names_default_to_name(self) -> None:
        assert FieldDef(name="x", offset=0, kind="U16").output_names == ("x",)


# ===========================================================================
# Device register map
# ===========================================================================


class TestDeviceRegisterMap:
    """The shipped map is consistent with DeviceSnapshot."""

    def test_kinds_are_supported(self) -> None:
        for field_def in DEVICE_REGISTER_MAP.fields:
            assert field_def.kind in FIELD_KINDS

    def test_every_output_is_a_snapshot_field(self) -> None:
        snapshot_fields = set(DeviceSnapshot.model_fields)
        for field_def in DEVICE_REGISTER_MAP.fields:
            for name in field_def.output_names:
                assert name in snapshot_fields, name

    def test_outputs_are_unique(self) -> None:
        names = [n for f in DEVICE_REGISTER_MAP.fields for n in f.output_names]
        assert len(names) == len(set(names))

    def test_pv1_decoded_before_pv2_total(self) -> None:
        order = [f.name for f in DEVICE_REGISTER_MAP.fields]
        assert order.index("pv1_power") < order.index("pv2")

    @pytest.mark.parametrize(
        ("name", "offset"),
        [
            ("firmware_version", 2),
            ("device_model_ascii", 3),
            ("controller_version", 8),
            ("battery_voltage", 11),
            ("battery_current", 12),
            ("ac_output_voltage", 13),
            ("ac_input_voltage", 15),
            ("ac_output_frequency", 16),
            ("ac_input_frequency", 17),
            ("ac_output_power", 18),
            ("pv1_voltage", 20),
            ("pv1_power", 22),
            ("temperature_celsius", 24),
            ("battery_type", 37),
            ("battery_charge_percentage", 50),
            ("ac_input_power", 53),
            ("ac_output_apparent_power", 58),
            ("grid_power", 59),
            ("battery_status", 61),
            ("home_load", 67),
            ("ups_mode", 68),
            ("master_slave_status", 70),
            ("pv2_voltage", 72),
            ("battery_mode", 100),
            ("work_mode", 150),
            ("beep_mode", 167),
            ("backlight_mode", 168),
        ],
    )
    def test_documented_offsets(self, name: str, offset: int) -> None:
        assert DEVICE_REGISTER_MAP.field(name).offset == offset

    def test_lookup_unknown_name_raises(self) -> None:
        with pytest.raises(KeyError):
            DEVICE_REGISTER_MAP.field("does_not_exist")

    def test_model_and_version(self) -> None:
        assert DEVICE_REGISTER_MAP.model == "lumentree-hybrid"
        assert DEVICE_REGISTER_MAP.version

    def test_work_mode_labels(self) -> None:
        assert DEVICE_REGISTER_MAP.field("work_mode").labels == WORK_MODES
        assert WORK_MODES[0] == "Uninterruptible Power Mode (UPS)"
        assert len(WORK_MODES) == 6


# ===========================================================================
# Battery-cell filter
# ===========================================================================


class TestCellFilter:
    """Plausibility band is exclusive at both ends."""

    @pytest.mark.parametrize(
        ("raw", "accepted"),
        [(0, False), (10, False), (11, True), (3300, True), (49999, True), (50000, False)],
    )
    def test_default_band(self, raw: int, accepted: bool) -> None:
        assert BATTERY_CELL_FILTER.accepts(raw) is accepted

    def test_custom_band(self) -> None:
        cell_filter = CellFilter(min_raw=2000, max_raw=4500)
        assert not cell_filter.accepts(1999)
        assert cell_filter.accepts(3000)
        assert not cell_filter.accepts(4500)
