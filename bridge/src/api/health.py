"""
Health check endpoint for the bridge API.

Provides GET /health returning service liveness plus the broker connection
state, for Docker HEALTHCHECK and internal monitoring.

CHANGELOG:
- 2026-10-15: Initial creation (STORY-011)

TODO:
- None
"""

from fastapi import APIRouter

from bridge.src.api.deps import Transport

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(transport: Transport) -> dict[str, object]:
    """Return a simple health status.

    Returns:
        dict: ``{"status": "ok", "mqttConnected": bool}``.
    """
    return {"status": "ok", "mqttConnected": transport.is_connected()}
