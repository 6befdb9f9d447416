"""
MQTT transport for the vendor relay broker (paho-mqtt v2).

Subscribes to the inverter's report topic, hands every inbound payload to
the ingest callback, and publishes read commands to the command topic.
paho runs its network loop on a background thread and reconnects on its own
with a delay that grows from RECONNECT_MIN_DELAY_S to RECONNECT_MAX_DELAY_S.

CHANGELOG:
- 2026-10-14: Raise PublishError instead of returning False (STORY-010)
- 2026-10-11: Initial creation (STORY-009)

TODO:
- None
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import paho.mqtt.client as mqtt

from bridge.src.commands import REFRESH_REQUESTS
from bridge.src.exceptions import PublishError, TransportNotConnectedError

if TYPE_CHECKING:
    from bridge.src.config import BridgeSettings

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

QOS: int = 1
"""QoS used for the subscription and every command publish."""

KEEPALIVE_S: int = 60

RECONNECT_MIN_DELAY_S: int = 5
"""First reconnect attempt after a dropped connection."""

RECONNECT_MAX_DELAY_S: int = 60
"""Cap for paho's exponential reconnect delay."""

PayloadCallback = Callable[[str, bytes], None]


def build_client_id(user_id: str, now_ms: int | None = None) -> str:
    """Return the client id the vendor app uses: ``android-<user>-<epoch ms>``."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"android-{user_id}-{now_ms}"


class MqttTransport:
    """Relay-broker connection for a single inverter.

    Args:
        settings: Broker credentials and topic configuration.
        on_payload: Called with ``(topic, payload)`` for every inbound message,
            on paho's network thread.
        client: Pre-built paho client (tests); created from *settings* when
            omitted.
    """

    def __init__(
        self,
        settings: BridgeSettings,
        on_payload: PayloadCallback,
        *,
        client: mqtt.Client | None = None,
    ) -> None:
        self._settings = settings
        self._on_payload = on_payload
        self._client = client or mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=build_client_id(settings.user_id),
            clean_session=True,
        )
        if settings.mqtt_username:
            self._client.username_pw_set(settings.mqtt_username, settings.mqtt_password)
        self._client.reconnect_delay_set(
            min_delay=RECONNECT_MIN_DELAY_S,
            max_delay=RECONNECT_MAX_DELAY_S,
        )
        self._client.on_connect = self._handle_connect
        self._client.on_disconnect = self._handle_disconnect
        self._client.on_message = self._handle_message

    # -- Lifecycle ----------------------------------------------------------

    def start(self) -> None:
        """Begin connecting in the background and start the network loop."""
        logger.info(
            "Connecting to MQTT broker %s:%d",
            self._settings.mqtt_host,
            self._settings.mqtt_port,
        )
        self._client.connect_async(
            self._settings.mqtt_host,
            self._settings.mqtt_port,
            keepalive=KEEPALIVE_S,
        )
        self._client.loop_start()

    def stop(self) -> None:
        """Disconnect and stop the network loop."""
        self._client.disconnect()
        self._client.loop_stop()
        logger.info("MQTT transport stopped")

    def is_connected(self) -> bool:
        return self._client.is_connected()

    # -- Publishing ---------------------------------------------------------

    def publish_command(self, command: bytes) -> None:
        """Publish one command frame to the command topic.

        Raises:
            TransportNotConnectedError: If the broker connection is down.
            PublishError: If paho refuses to queue the message.
        """
        if not self.is_connected():
            raise TransportNotConnectedError("MQTT client not connected")
        topic = self._settings.command_topic
        info = self._client.publish(topic, command, qos=QOS)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise PublishError(topic, info.rc)
        logger.info("Published command to %s: %s", topic, command.hex())

    def request_refresh(self) -> list[bytes]:
        """Publish the device-info and battery-cell read requests.

        Returns:
            The command frames published, in publish order.

        Raises:
            TransportNotConnectedError: If the broker connection is down.
            PublishError: If paho refuses to queue either message.
        """
        commands = []
        for request in REFRESH_REQUESTS:
            command = request.to_bytes()
            self.publish_command(command)
            commands.append(command)
        return commands

    # -- paho callbacks -----------------------------------------------------

    def _handle_connect(
        self,
        client: mqtt.Client,
        userdata: Any,
        flags: Any,
        reason_code: Any,
        properties: Any,
    ) -> None:
        if reason_code.is_failure:
            logger.warning("MQTT connect refused: %s", reason_code)
            return
        logger.info("Connected to MQTT broker")

        topic = self._settings.report_topic
        result, _ = client.subscribe(topic, qos=QOS)
        if result != mqtt.MQTT_ERR_SUCCESS:
            logger.error("Subscription to %s failed (rc=%s)", topic, result)
            return
        logger.info("Subscribed to %s", topic)

        if self._settings.request_on_connect:
            try:
                self.request_refresh()
            except Exception:
                logger.error("Initial refresh request failed", exc_info=True)

    def _handle_disconnect(
        self,
        client: mqtt.Client,
        userdata: Any,
        flags: Any,
        reason_code: Any,
        properties: Any,
    ) -> None:
        logger.warning(
            "Disconnected from MQTT broker (%s), reconnecting in >= %ds",
            reason_code,
            RECONNECT_MIN_DELAY_S,
        )

    def _handle_message(self, client: mqtt.Client, userdata: Any, message: Any) -> None:
        self._on_payload(message.topic, message.payload)
