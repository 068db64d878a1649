"""
Pytest configuration and fixtures.

Shared fixtures for all tests.
"""

import pytest
import os
from datetime import datetime, timedelta

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["TELEMETRY_CONFIG"] = "config/does-not-exist.yaml"


@pytest.fixture
def duckdb_store(tmp_path):
    """DuckDB primary store in a temp file."""
    from src.storage.duckdb_store import DuckDBStore

    store = DuckDBStore(str(tmp_path / "telemetry.duckdb"))
    yield store
    store.close()


@pytest.fixture
def recovery_log(tmp_path):
    """Recovery log writer under a not-yet-existing directory."""
    from src.storage.recovery_log import RecoveryLogWriter

    return RecoveryLogWriter(str(tmp_path / "recovery" / "recovery.sql"))


class StepClock:
    """Deterministic clock: each call advances by one second."""

    def __init__(self, start: datetime = datetime(2026, 1, 1, 12, 0, 0)):
        self.current = start
        self.calls = 0

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + timedelta(seconds=1)
        self.calls += 1
        return value


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def ingestion_service(duckdb_store, recovery_log, clock):
    """Ingestion service wired to temp storage and a step clock."""
    from src.ingestion.service import IngestionService

    return IngestionService(duckdb_store, recovery_log, clock=clock)
