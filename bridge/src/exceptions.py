"""
Exception hierarchy for bridge collaborators.

Decoding never raises for bad telemetry; these cover transport failures the
HTTP layer has to report.

CHANGELOG:
- 2026-10-14: Initial creation (STORY-010)

TODO:
- None
"""


class BridgeError(Exception):
    """Base class for bridge errors."""


class TransportNotConnectedError(BridgeError):
    """The MQTT client is not connected to the broker."""


class PublishError(BridgeError):
    """The MQTT client refused to queue a publish."""

    def __init__(self, topic: str, rc: int) -> None:
        super().__init__(f"Publish to {topic} failed (rc={rc})")
        self.topic = topic
        self.rc = rc
