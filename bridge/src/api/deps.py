"""
FastAPI dependency providers.

Route handlers reach the shared SnapshotStore and MQTT transport through
``app.state``; these aliases inject them via FastAPI's Depends().

CHANGELOG:
- 2026-10-15: Initial creation (STORY-011)
"""

from typing import Annotated, Protocol

from fastapi import Depends, Request

from bridge.src.store import SnapshotStore


class CommandPublisher(Protocol):
    """What the routes need from the MQTT transport."""

    def is_connected(self) -> bool: ...

    def request_refresh(self) -> list[bytes]: ...


def get_store(request: Request) -> SnapshotStore:
    """Return the SnapshotStore attached to the application."""
    return request.app.state.store


def get_transport(request: Request) -> CommandPublisher:
    """Return the MQTT transport attached to the application."""
    return request.app.state.transport


# Usage in route handlers:
#   async def my_route(store: Store):
#       latest = store.latest_device()
Store = Annotated[SnapshotStore, Depends(get_store)]
Transport = Annotated[CommandPublisher, Depends(get_transport)]
