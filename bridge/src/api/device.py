"""
Device endpoints: latest snapshots, refresh requests, history and daily stats.

All snapshot payloads use the camelCase keys of the vendor app and omit
fields the inverter did not report.

CHANGELOG:
- 2026-10-16: Add GET /device/stats (STORY-012)
- 2026-10-15: Initial creation (STORY-011)

TODO:
- None
"""

import logging
import re
from datetime import date
from typing import Annotated

from fastapi import APIRouter, HTTPException, Query
from pydantic.alias_generators import to_camel

from bridge.src.aggregation import parse_day
from bridge.src.api.deps import Store, Transport
from bridge.src.exceptions import BridgeError, TransportNotConnectedError
from bridge.src.frames import FrameKind

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/device", tags=["device"])

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_INVALID_DATE_DETAIL = "Invalid or missing date parameter. Use YYYY-MM-DD format."


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _require_day(value: str | None) -> date:
    """Parse the ``date`` query parameter or raise 400."""
    if value is None or not _DATE_PATTERN.match(value):
        raise HTTPException(status_code=400, detail=_INVALID_DATE_DETAIL)
    try:
        return parse_day(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=_INVALID_DATE_DETAIL) from None


def _camel_keys(aggregates: dict[str, dict[str, float]]) -> dict[str, dict[str, float]]:
    """Rename snapshot attribute keys to their API spelling."""
    return {to_camel(name): values for name, values in aggregates.items()}


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.get("")
async def latest(store: Store) -> dict:
    """Return the latest device and battery-cell snapshots.

    Raises:
        HTTPException: 404 if nothing has been decoded yet.
    """
    device = store.latest_device()
    cells = store.latest_battery_cells()
    if device is None and cells is None:
        raise HTTPException(
            status_code=404,
            detail="No data available. Try requesting data first.",
        )
    return {
        "deviceData": device.to_api() if device is not None else None,
        "batteryCellData": cells.to_api() if cells is not None else None,
    }


@router.post("/request")
async def request_refresh(transport: Transport) -> dict[str, str]:
    """Publish the device-info and battery-cell read commands.

    Raises:
        HTTPException: 503 if the broker is not connected, 500 if a publish
            is refused.
    """
    if not transport.is_connected():
        raise HTTPException(status_code=503, detail="MQTT client not connected.")
    try:
        transport.request_refresh()
    except TransportNotConnectedError:
        raise HTTPException(status_code=503, detail="MQTT client not connected.") from None
    except BridgeError:
        logger.error("Refresh request publish failed", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to publish request.") from None
    return {"message": "Device and battery info requests sent successfully."}


@router.get("/history")
async def history(
    store: Store,
    date_param: Annotated[str | None, Query(alias="date")] = None,
) -> dict:
    """Return the snapshots captured on a UTC day plus its energy total."""
    day = _require_day(date_param)
    return {
        "deviceData": [item.to_api() for item in store.history(FrameKind.DEVICE, day)],
        "batteryCellData": [
            item.to_api() for item in store.history(FrameKind.BATTERY_CELLS, day)
        ],
        "totalDailyEnergyConsumptionWh": store.daily_energy(day),
    }


@router.get("/stats")
async def stats(
    store: Store,
    date_param: Annotated[str | None, Query(alias="date")] = None,
) -> dict:
    """Return min/max/avg of the headline fields and the energy total for a day."""
    day = _require_day(date_param)
    return {
        "date": day.isoformat(),
        "deviceAggregates": _camel_keys(store.daily_aggregates(FrameKind.DEVICE, day)),
        "batteryAggregates": _camel_keys(
            store.daily_aggregates(FrameKind.BATTERY_CELLS, day)
        ),
        "totalDailyEnergyConsumptionWh": store.daily_energy(day),
    }
