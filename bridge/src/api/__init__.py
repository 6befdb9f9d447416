"""
HTTP API for the inverter telemetry bridge.

CHANGELOG:
- 2026-10-15: Initial creation (STORY-011)

TODO:
- None
"""
