"""
Unit tests for the bridge HTTP API.

The app is built with an in-memory SnapshotStore and a MagicMock transport,
so no broker connection is made.

Tests verify:
- GET /health reports liveness and broker state.
- GET /device returns 404 until something is decoded, then camelCase data.
- POST /device/request maps transport failures to 503/500.
- GET /device/history and /device/stats validate the date parameter.

CHANGELOG:
- 2026-10-16: Stats endpoint (STORY-012)
- 2026-10-15: Initial creation (STORY-011)

TODO:
- None
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from bridge.src.api.main import create_app
from bridge.src.config import BridgeSettings
from bridge.src.exceptions import PublishError, TransportNotConnectedError
from bridge.src.models import BatteryCellSnapshot, DeviceSnapshot
from bridge.src.store import SnapshotStore
from bridge.src.transport import MqttTransport

_MIDNIGHT = datetime(2026, 10, 15, tzinfo=UTC)

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def store() -> SnapshotStore:
    return SnapshotStore()


@pytest.fixture()
def transport() -> MagicMock:
    mock = MagicMock()
    mock.is_connected.return_value = True
    return mock


@pytest.fixture()
def client(store: SnapshotStore, transport: MagicMock) -> TestClient:
    return TestClient(create_app(store=store, transport=transport))


def _device(hours: float, home_load: int) -> DeviceSnapshot:
    return DeviceSnapshot(
        device_id="H1",
        timestamp=_MIDNIGHT + timedelta(hours=hours),
        home_load=home_load,
        total_pv_power=1000,
    )


def _cells(hours: float) -> BatteryCellSnapshot:
    return BatteryCellSnapshot(
        device_id="H1",
        timestamp=_MIDNIGHT + timedelta(hours=hours),
        cell_voltages={1: 3.3, 2: 3.31},
        number_of_cells=2,
        average_voltage=3.305,
        minimum_voltage=3.3,
        maximum_voltage=3.31,
        voltage_difference=0.01,
    )


# ===========================================================================
# App factory
# ===========================================================================


class TestCreateApp:
    """create_app wiring."""

    def test_settings_required_without_collaborators(self) -> None:
        with pytest.raises(ValueError, match="settings"):
            create_app(store=SnapshotStore())

    def test_builds_from_settings(self, env_vars_required_only: dict[str, str]) -> None:
        app = create_app(BridgeSettings(history_retention=7))
        assert app.state.store.retention == 7
        assert isinstance(app.state.transport, MqttTransport)

    def test_lifespan_ignores_non_mqtt_transport(
        self, store: SnapshotStore, transport: MagicMock
    ) -> None:
        with TestClient(create_app(store=store, transport=transport)) as client:
            assert client.get("/health").status_code == 200
        transport.start.assert_not_called()


# ===========================================================================
# Health
# ===========================================================================


class TestHealth:
    """GET /health."""

    def test_connected(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "mqttConnected": True}

    def test_disconnected(self, client: TestClient, transport: MagicMock) -> None:
        transport.is_connected.return_value = False
        assert client.get("/health").json()["mqttConnected"] is False


# ===========================================================================
# Latest
# ===========================================================================


class TestLatest:
    """GET /device."""

    def test_no_data(self, client: TestClient) -> None:
        response = client.get("/device")
        assert response.status_code == 404
        assert response.json()["detail"] == "No data available. Try requesting data first."

    def test_device_only(self, client: TestClient, store: SnapshotStore) -> None:
        store.add_device(_device(1, 750))
        body = client.get("/device").json()
        assert body["deviceData"]["homeLoad"] == 750
        assert body["deviceData"]["deviceId"] == "H1"
        assert "pv2Voltage" not in body["deviceData"]
        assert body["batteryCellData"] is None

    def test_both(self, client: TestClient, store: SnapshotStore) -> None:
        store.add_device(_device(1, 750))
        store.add_battery_cells(_cells(1))
        body = client.get("/device").json()
        assert body["batteryCellData"]["cellVoltages"] == {"1": 3.3, "2": 3.31}
        assert body["batteryCellData"]["numberOfCells"] == 2


# ===========================================================================
# Refresh request
# ===========================================================================


class TestRequestRefresh:
    """POST /device/request."""

    def test_success(self, client: TestClient, transport: MagicMock) -> None:
        response = client.post("/device/request")
        assert response.status_code == 200
        assert response.json() == {
            "message": "Device and battery info requests sent successfully."
        }
        transport.request_refresh.assert_called_once()

    def test_not_connected(self, client: TestClient, transport: MagicMock) -> None:
        transport.is_connected.return_value = False
        response = client.post("/device/request")
        assert response.status_code == 503
        assert response.json()["detail"] == "MQTT client not connected."
        transport.request_refresh.assert_not_called()

    def test_connection_lost_mid_request(
        self, client: TestClient, transport: MagicMock
    ) -> None:
        transport.request_refresh.side_effect = TransportNotConnectedError("gone")
        assert client.post("/device/request").status_code == 503

    def test_publish_refused(self, client: TestClient, transport: MagicMock) -> None:
        transport.request_refresh.side_effect = PublishError("listenApp/H1", 4)
        response = client.post("/device/request")
        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to publish request."


# ===========================================================================
# History and stats
# ===========================================================================


class TestHistory:
    """GET /device/history."""

    @pytest.mark.parametrize("query", ["", "?date=", "?date=15-10-2026", "?date=2026-02-30"])
    def test_invalid_date(self, client: TestClient, query: str) -> None:
        response = client.get(f"/device/history{query}")
        assert response.status_code == 400
        assert response.json()["detail"] == (
            "Invalid or missing date parameter. Use YYYY-MM-DD format."
        )

    def test_day_contents(self, client: TestClient, store: SnapshotStore) -> None:
        store.add_device(_device(0, 100))
        store.add_device(_device(1, 200))
        store.add_device(_device(30, 9999))
        store.add_battery_cells(_cells(2))
        body = client.get("/device/history?date=2026-10-15").json()
        assert [d["homeLoad"] for d in body["deviceData"]] == [100, 200]
        assert len(body["batteryCellData"]) == 1
        assert body["totalDailyEnergyConsumptionWh"] == 150.0

    def test_empty_day(self, client: TestClient) -> None:
        body = client.get("/device/history?date=2026-01-01").json()
        assert body == {
            "deviceData": [],
            "batteryCellData": [],
            "totalDailyEnergyConsumptionWh": 0.0,
        }


class TestStats:
    """GET /device/stats."""

    def test_invalid_date(self, client: TestClient) -> None:
        assert client.get("/device/stats?date=tomorrow").status_code == 400

    def test_aggregates(self, client: TestClient, store: SnapshotStore) -> None:
        store.add_device(_device(0, 100))
        store.add_device(_device(1, 200))
        store.add_battery_cells(_cells(2))
        body = client.get("/device/stats?date=2026-10-15").json()
        assert body["date"] == "2026-10-15"
        assert body["deviceAggregates"]["homeLoad"] == {"min": 100, "max": 200, "avg": 150}
        assert body["deviceAggregates"]["totalPvPower"]["avg"] == 1000
        assert "averageVoltage" in body["batteryAggregates"]
        assert body["totalDailyEnergyConsumptionWh"] == 150.0
