"""
Shared test fixtures for bridge tests.

Provides environment variable fixtures for BridgeSettings, plus builders for
synthetic Modbus response frames.  All bridge env vars are cleaned before
each test to ensure isolation.

CHANGELOG:
- 2026-10-06: Add frame builders (STORY-004)
- 2026-10-05: Initial creation (STORY-001)

TODO:
- None
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

import pytest

from bridge.src.checksum import crc16_modbus

# All BridgeSettings environment variable names, used for cleanup.
_ALL_BRIDGE_ENV_VARS = (
    "MQTT_HOST",
    "MQTT_PORT",
    "MQTT_USERNAME",
    "MQTT_PASSWORD",
    "DEVICE_ID",
    "USER_ID",
    "REPORT_TOPIC_PREFIX",
    "COMMAND_TOPIC_PREFIX",
    "REQUEST_ON_CONNECT",
    "API_HOST",
    "API_PORT",
    "HISTORY_RETENTION",
    "LOG_LEVEL",
)

FrameBuilder = Callable[..., str]


@pytest.fixture(autouse=True)
def _clean_bridge_env(monkeypatch: pytest.MonkeyPatch, tmp_path: str) -> None:
    """Remove all bridge env vars and isolate from .env files before each test.

    Changes working directory to tmp_path so no .env file is accidentally
    loaded by Pydantic BaseSettings.
    """
    for var in _ALL_BRIDGE_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def env_vars_full(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set all required and optional environment variables for BridgeSettings."""
    env = {
        "MQTT_HOST": "broker.example.com",
        "MQTT_PORT": "1883",
        "MQTT_USERNAME": "appuser",
        "MQTT_PASSWORD": "s3cret-pass",
        "DEVICE_ID": "H250326002",
        "USER_ID": "777",
        "REPORT_TOPIC_PREFIX": "reportTest",
        "COMMAND_TOPIC_PREFIX": "listenTest",
        "REQUEST_ON_CONNECT": "false",
        "API_HOST": "127.0.0.1",
        "API_PORT": "8080",
        "HISTORY_RETENTION": "500",
        "LOG_LEVEL": "debug",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env


@pytest.fixture()
def env_vars_required_only(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set only the required environment variables (no optional ones)."""
    env = {
        "MQTT_HOST": "broker.example.com",
        "DEVICE_ID": "H250326002",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env


# ---------------------------------------------------------------------------
# Frame builders
# ---------------------------------------------------------------------------


def _build_frame(registers: Sequence[int], byte_count: int | None = None) -> str:
    """Return the hex text of a read-holding-registers response.

    Args:
        registers: Register values (masked to 16 bits).
        byte_count: Override for the header's byte count; defaults to
            ``2 * len(registers)``.
    """
    if byte_count is None:
        byte_count = 2 * len(registers)
    body = bytes([0x01, 0x03, byte_count & 0xFF]) + b"".join(
        (value & 0xFFFF).to_bytes(2, "big") for value in registers
    )
    return (body + bytes(crc16_modbus(body))).hex()


@pytest.fixture()
def build_frame() -> FrameBuilder:
    """Builder for response frames from a list of register values."""
    return _build_frame


DEVICE_REGISTERS: dict[int, int] = {
    2: 0x0102,  # firmware
    3: 0x5355,  # "SU"
    4: 0x4E54,  # "NT"
    5: 0x344B,  # "4K"
    6: 0x4842,  # "HB"
    7: 0x0000,  # NUL NUL
    8: 0x0203,  # controller
    11: 5230,  # 52.30 V
    12: 0xFE0C,  # -500 -> 5.00 A
    13: 2301,  # 230.1 V
    15: 2284,  # 228.4 V
    16: 5001,  # 50.01 Hz
    17: 4998,  # 49.98 Hz
    18: 850,
    20: 320,
    22: 1200,
    24: 1350,  # 35.0 C
    37: 0,
    50: 87,
    53: 300,
    58: 900,
    59: 0xFF9C,  # -100 W
    61: 0xFF38,  # -200 W
    67: 750,
    68: 0,
    70: 1,
    72: 310,
    74: 800,
}
"""Sparse register values of a realistic 95-register device-info response."""


def _device_registers(count: int = 95, **overrides: int) -> list[int]:
    """Return *count* registers from DEVICE_REGISTERS, zero elsewhere.

    Overrides use ``r<index>`` keys, e.g. ``r72=0``.
    """
    values = dict(DEVICE_REGISTERS)
    values.update({int(key[1:]): value for key, value in overrides.items()})
    return [values.get(i, 0) for i in range(count)]


@pytest.fixture()
def make_device_registers() -> Callable[..., list[int]]:
    """Builder for device-info register lists (see _device_registers)."""
    return _device_registers


@pytest.fixture()
def device_frame(build_frame: FrameBuilder) -> str:
    """A realistic 95-register device-info response frame."""
    return build_frame(_device_registers())


BATTERY_CELL_REGISTERS: list[int] = [3300, 3305, 3310, 3321] + [0] * 46
"""Four plausible cells followed by absent-cell markers (50 registers)."""


@pytest.fixture()
def battery_frame(build_frame: FrameBuilder) -> str:
    """A 50-register battery-cell response frame with four cells."""
    return build_frame(BATTERY_CELL_REGISTERS)
