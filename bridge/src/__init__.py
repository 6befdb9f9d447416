"""
Lumentree inverter telemetry bridge.

Subscribes to the inverter's MQTT report topic, decodes Modbus-style register
frames into device and battery-cell snapshots, keeps an in-memory history,
and serves latest values and daily statistics over a JSON HTTP API.

CHANGELOG:
- 2026-10-05: Initial creation (STORY-001)

TODO:
- None
"""
