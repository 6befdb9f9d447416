"""
Bridge entrypoint: logging, configuration, and the HTTP server.

Loads BridgeSettings, installs structured JSON logging on the root logger,
logs a config summary without secrets, then serves the API with uvicorn.
The API's lifespan owns the MQTT transport, so stopping the server also
disconnects from the broker.

CHANGELOG:
- 2026-10-17: Route uvicorn logs through the JSON handler
- 2026-10-15: Initial creation (STORY-011)

TODO:
- None
"""

from __future__ import annotations

import hashlib
import json
import logging
import sys
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import uvicorn

if TYPE_CHECKING:
    from bridge.src.config import BridgeSettings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Structured JSON logging setup
# ---------------------------------------------------------------------------


class JsonFormatter(logging.Formatter):
    """Minimal JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


def configure_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging for the bridge.

    Sets up the root logger with a JSON-formatted handler writing to stderr.

    Args:
        level: Root log level name.
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def _masked_secret(value: str | None) -> str:
    """Return a short non-reversible fingerprint for diagnostics."""
    if not value:
        return "empty"
    digest = hashlib.sha256(value.encode("utf-8")).hexdigest()[:10]
    return f"len={len(value)} sha256={digest}"


# ---------------------------------------------------------------------------
# Startup config logging
# ---------------------------------------------------------------------------


def log_config_summary(settings: BridgeSettings) -> None:
    """Log a config summary at startup, excluding secrets.

    The MQTT password is replaced by a fingerprint.

    Args:
        settings: The loaded BridgeSettings.
    """
    logger.info(
        "Bridge starting with config: "
        "mqtt_host=%s, mqtt_port=%s, mqtt_username=%s, device_id=%s, "
        "report_topic=%s, command_topic=%s, request_on_connect=%s, "
        "api_host=%s, api_port=%s, history_retention=%s, log_level=%s, "
        "mqtt_password_masked=%s",
        settings.mqtt_host,
        settings.mqtt_port,
        settings.mqtt_username,
        settings.device_id,
        settings.report_topic,
        settings.command_topic,
        settings.request_on_connect,
        settings.api_host,
        settings.api_port,
        settings.history_retention,
        settings.log_level,
        _masked_secret(settings.mqtt_password),
    )


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def main() -> None:
    """Synchronous entrypoint for the bridge."""
    from bridge.src.api.main import create_app
    from bridge.src.config import BridgeSettings

    settings = BridgeSettings()
    configure_logging(settings.log_level)
    log_config_summary(settings)

    app = create_app(settings)
    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
