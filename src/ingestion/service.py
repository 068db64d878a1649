"""
Ingestion service: the dual-persistence write path.

For every accepted event:
1. One timestamp is assigned for the whole request
2. Rows are written to the primary store (DuckDB)
3. Matching INSERT statements are mirrored to the recovery log

Step 2 failing aborts the request with PersistenceError and step 3 is
never attempted, so the log can lag the primary store but never lead it.
Step 3 failing is logged and counted, and the caller still gets success.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional, Sequence
import structlog

from src.exceptions import RecoveryLogError
from src.ingestion.models import (
    Acknowledgment,
    SosEvent,
    sensor_readings_from_payload,
)
from src.monitoring.log_health import RecoveryLogHealth
from src.storage.duckdb_store import DuckDBStore, SENSOR_TABLE, SOS_TABLE
from src.storage.recovery_log import RecoveryLogWriter
from src.storage.statements import build_insert

logger = structlog.get_logger(__name__)

SOS_COLUMNS = ("message", "lat", "lng", "created_at")
SENSOR_COLUMNS = ("key_name", "value", "created_at")


def utc_now() -> datetime:
    """Naive UTC timestamp, matching the store's TIMESTAMP columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _insert_sql(table: str, columns: Sequence[str]) -> str:
    placeholders = ", ".join("?" for _ in columns)
    return f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})"


class IngestionService:
    """
    Accepts SOS alerts and sensor readings.

    Requests are independent: the service holds no per-request state, so
    concurrent requests only meet at the store and the log.
    """

    def __init__(
        self,
        store: DuckDBStore,
        recovery_log: RecoveryLogWriter,
        clock: Optional[Callable[[], datetime]] = None,
        health: Optional[RecoveryLogHealth] = None,
    ):
        """
        Initialize ingestion service.

        Args:
            store: Primary store, the system of record
            recovery_log: Best-effort replayable mirror
            clock: Timestamp source (defaults to UTC now)
            health: Collector for mirror outcomes
        """
        self.store = store
        self.recovery_log = recovery_log
        self.clock = clock or utc_now
        self.health = health or RecoveryLogHealth()

    def ingest_sos(self, payload: Mapping[str, Any]) -> Acknowledgment:
        """
        Ingest one SOS alert.

        A missing or null message becomes "SOS"; lat/lng pass through,
        nulls included.

        Raises:
            ValidationError: If lat/lng are not numbers
            PersistenceError: If the primary store rejects the write
        """
        created_at = self.clock()
        event = SosEvent.from_payload(payload, created_at)
        values = [event.message, event.lat, event.lng, event.created_at]

        self.store.execute(_insert_sql(SOS_TABLE, SOS_COLUMNS), values)

        logger.info(
            "sos_ingested",
            message=event.message,
            lat=event.lat,
            lng=event.lng,
        )

        self._mirror([build_insert(SOS_TABLE, SOS_COLUMNS, values)], kind="sos")
        return Acknowledgment()

    def ingest_sensor(self, payload: Mapping[str, Any]) -> Acknowledgment:
        """
        Ingest a batch of sensor key/value pairs.

        Each pair becomes its own row; all rows share one created_at.
        An empty payload is a successful no-op.

        Raises:
            ValidationError: If a key or value is not valid unicode text
            PersistenceError: If the primary store rejects the write
        """
        created_at = self.clock()
        readings = sensor_readings_from_payload(payload, created_at)

        if not readings:
            return Acknowledgment()

        rows = [[r.key_name, r.value, r.created_at] for r in readings]

        self.store.execute_many(_insert_sql(SENSOR_TABLE, SENSOR_COLUMNS), rows)

        logger.info(
            "sensor_ingested",
            count=len(rows),
            keys=[r.key_name for r in readings],
        )

        self._mirror(
            [build_insert(SENSOR_TABLE, SENSOR_COLUMNS, row) for row in rows],
            kind="sensor",
        )
        return Acknowledgment()

    def _mirror(self, statements: list[str], kind: str) -> bool:
        """Append statements to the recovery log; never raises."""
        try:
            self.recovery_log.append(statements)
        except RecoveryLogError as e:
            logger.error(
                "recovery_log_mirror_failed",
                kind=kind,
                statements=len(statements),
                error=str(e),
            )
            self.health.record_failure(str(e))
            return False

        self.health.record_success(len(statements))
        return True
