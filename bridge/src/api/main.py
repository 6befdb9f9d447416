"""
FastAPI application factory for the bridge API.

``create_app`` wires a SnapshotStore and an MQTT transport onto
``app.state``.  The transport is started on application startup and
stopped on shutdown, so running the app runs the whole bridge.

CHANGELOG:
- 2026-10-16: Register stats route (STORY-012)
- 2026-10-15: Initial creation (STORY-011)
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from bridge.src.api.deps import CommandPublisher
from bridge.src.api.device import router as device_router
from bridge.src.api.health import router as health_router
from bridge.src.config import BridgeSettings
from bridge.src.ingest import MessageHandler
from bridge.src.store import SnapshotStore
from bridge.src.transport import MqttTransport

logger = logging.getLogger(__name__)


def create_app(
    settings: BridgeSettings | None = None,
    *,
    store: SnapshotStore | None = None,
    transport: CommandPublisher | None = None,
) -> FastAPI:
    """Build the bridge application.

    Args:
        settings: Bridge configuration.  Required unless both *store* and
            *transport* are supplied.
        store: Snapshot store; built from ``settings.history_retention``
            when omitted.
        transport: Command publisher; an :class:`MqttTransport` feeding
            *store* is built when omitted.

    Returns:
        FastAPI: The configured application.

    Raises:
        ValueError: If *settings* is missing and something must be built
            from it.
    """
    if settings is None and (store is None or transport is None):
        raise ValueError("settings are required to build the store or transport")

    if store is None:
        store = SnapshotStore(retention=settings.history_retention)
    if transport is None:
        transport = MqttTransport(settings, MessageHandler(store))

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Start the transport on startup, stop it on shutdown."""
        if isinstance(transport, MqttTransport):
            transport.start()
        logger.info("Bridge API ready")
        yield
        if isinstance(transport, MqttTransport):
            transport.stop()
        logger.info("Bridge API shutting down")

    app = FastAPI(
        title="Lumentree Bridge API",
        description="Inverter telemetry decoded from the vendor MQTT relay.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.store = store
    app.state.transport = transport

    app.include_router(health_router)
    app.include_router(device_router)
    return app
