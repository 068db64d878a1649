"""
Listing service: SOS alerts, newest first.

Reads straight from the primary store and never touches the recovery log.
"""

import structlog

from src.ingestion.models import SosEvent
from src.storage.duckdb_store import DuckDBStore

logger = structlog.get_logger(__name__)

# Ties on created_at come back in whatever order DuckDB picks.
LIST_SOS_SQL = """
    SELECT id, message, lat, lng, created_at
    FROM sos
    ORDER BY created_at DESC
"""


class ListingService:
    """Read-only view of stored SOS alerts."""

    def __init__(self, store: DuckDBStore):
        self.store = store

    def list_sos(self) -> list[SosEvent]:
        """
        All SOS alerts ordered by created_at descending.

        Raises:
            PersistenceError: If the primary store is unreachable
        """
        records = self.store.query(LIST_SOS_SQL)
        logger.debug("sos_listed", count=len(records))
        return [SosEvent.from_record(record) for record in records]
