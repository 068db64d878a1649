"""
Tests for the SOS listing service.
"""

import random
from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest

from src.exceptions import PersistenceError
from src.ingestion.listing import ListingService
from src.ingestion.service import IngestionService


class ShuffledClock:
    """Returns pre-shuffled timestamps so inserts arrive out of time order."""

    def __init__(self, timestamps):
        self.timestamps = list(timestamps)

    def __call__(self):
        return self.timestamps.pop(0)


class TestListSos:
    """Tests for list_sos."""

    def test_empty_store(self, duckdb_store):
        assert ListingService(duckdb_store).list_sos() == []

    def test_most_recent_first(self, ingestion_service, duckdb_store):
        for message in ["first", "second", "third"]:
            ingestion_service.ingest_sos({"message": message})

        events = ListingService(duckdb_store).list_sos()

        assert [e.message for e in events] == ["third", "second", "first"]
        assert all(e.id is not None for e in events)

    def test_sorted_for_any_insertion_order(self, duckdb_store, recovery_log):
        base = datetime(2026, 1, 1)
        stamps = [base + timedelta(minutes=i) for i in range(25)]
        random.Random(7).shuffle(stamps)
        service = IngestionService(duckdb_store, recovery_log, clock=ShuffledClock(stamps))

        for i in range(25):
            service.ingest_sos({"message": f"m{i}"})

        created = [e.created_at for e in ListingService(duckdb_store).list_sos()]

        assert len(created) == 25
        assert all(a >= b for a, b in zip(created, created[1:]))

    def test_listing_does_not_touch_recovery_log(self, duckdb_store, recovery_log):
        ListingService(duckdb_store).list_sos()

        assert not recovery_log.log_path.exists()

    def test_store_failure_propagates(self):
        store = MagicMock()
        store.query.side_effect = PersistenceError("unreachable")

        with pytest.raises(PersistenceError):
            ListingService(store).list_sos()
