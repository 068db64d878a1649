"""
LifeBeacon telemetry server.

Ingests SOS alerts and sensor readings. Every write lands in the primary
store (DuckDB) first and is then mirrored to an append-only SQL recovery
log that can rebuild the store from empty.
"""

__version__ = "0.1.0"
__author__ = "LifeBeacon Team"
