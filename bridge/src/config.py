"""
Bridge configuration loaded from environment variables.

Uses Pydantic BaseSettings for automatic env var loading and validation.
All configuration values come from environment variables or .env files;
no hardcoded broker hosts or credentials.

CHANGELOG:
- 2026-10-13: Add HISTORY_RETENTION (STORY-008)
- 2026-10-05: Initial creation (STORY-001)

TODO:
- None
"""

import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings

_TOPIC_WILDCARDS = ("/", "+", "#")


class BridgeSettings(BaseSettings):
    """Configuration for the inverter telemetry bridge.

    All values are loaded from environment variables. Required variables
    must be set; optional variables have sensible defaults.

    Attributes:
        mqtt_host: Relay broker hostname.
        mqtt_port: Relay broker port (default 1886).
        mqtt_username: Broker username.
        mqtt_password: Broker password.
        device_id: Inverter serial used in report/command topics.
        user_id: App user id embedded in the MQTT client id.
        report_topic_prefix: Topic prefix the inverter reports on.
        command_topic_prefix: Topic prefix read commands are published to.
        request_on_connect: Publish both refresh commands after subscribing.
        api_host: HTTP API bind address.
        api_port: HTTP API port.
        history_retention: Snapshots kept per kind (0 = unbounded).
        log_level: Root log level name.
    """

    mqtt_host: str
    mqtt_port: int = 1886
    mqtt_username: str = ""
    mqtt_password: str = ""
    device_id: str
    user_id: str = "123456"
    report_topic_prefix: str = "reportApp"
    command_topic_prefix: str = "listenApp"
    request_on_connect: bool = True
    api_host: str = "0.0.0.0"
    api_port: int = 3000
    history_retention: int = 20_000
    log_level: str = "INFO"

    @property
    def report_topic(self) -> str:
        """Topic the inverter publishes responses on."""
        return f"{self.report_topic_prefix}/{self.device_id}"

    @property
    def command_topic(self) -> str:
        """Topic read commands are published to."""
        return f"{self.command_topic_prefix}/{self.device_id}"

    @field_validator("mqtt_host")
    @classmethod
    def mqtt_host_must_not_be_blank(cls, v: str) -> str:
        """Reject an empty or whitespace-only broker host."""
        if not v.strip():
            raise ValueError("MQTT_HOST must not be empty")
        return v.strip()

    @field_validator("device_id")
    @classmethod
    def device_id_must_be_topic_safe(cls, v: str) -> str:
        """Validate DEVICE_ID can be used as a single topic segment."""
        if not v or any(ch in v for ch in _TOPIC_WILDCARDS):
            raise ValueError("DEVICE_ID must be non-empty and contain no '/', '+' or '#'")
        return v

    @field_validator("mqtt_port", "api_port")
    @classmethod
    def port_must_be_valid(cls, v: int) -> int:
        """Validate TCP port is in valid range."""
        if v < 1 or v > 65535:
            raise ValueError("port must be between 1 and 65535")
        return v

    @field_validator("history_retention")
    @classmethod
    def history_retention_must_be_non_negative(cls, v: int) -> int:
        """Validate retention is non-negative (0 disables the limit)."""
        if v < 0:
            raise ValueError("HISTORY_RETENTION must be >= 0")
        return v

    @field_validator("log_level")
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        """Validate LOG_LEVEL names a standard logging level."""
        level = v.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"LOG_LEVEL '{v}' is not a logging level name")
        return level

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}
