"""
DuckDB primary store for telemetry events.

This is the system of record: a write acknowledged here is the
durability guarantee offered to callers. The recovery log mirrors
writes made here, never the other way round.
"""

from pathlib import Path
from threading import Lock
from typing import Any, Optional, Sequence
import structlog

import duckdb

from src.exceptions import PersistenceError

logger = structlog.get_logger(__name__)

SOS_TABLE = "sos"
SENSOR_TABLE = "sensor_data"
TABLES = (SOS_TABLE, SENSOR_TABLE)

# The Python binding raises RuntimeError/UnicodeError for values it cannot cast
_DRIVER_ERRORS = (duckdb.Error, RuntimeError, UnicodeError)


class DuckDBStore:
    """
    DuckDB store for SOS events and sensor readings.

    Design principles:
    - Ingestion writes here first, the recovery log second
    - One connection, serialized with a lock (DuckDB connections are
      not safe for concurrent use from several threads)
    - Every driver error surfaces as PersistenceError
    """

    def __init__(self, db_path: str, read_only: bool = False):
        """
        Initialize DuckDB store.

        Args:
            db_path: Path to DuckDB file, or ":memory:"
            read_only: Open in read-only mode (listing only)
        """
        self.db_path = db_path
        self.read_only = read_only
        self._lock = Lock()

        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        try:
            self.conn = duckdb.connect(str(db_path), read_only=read_only)
        except _DRIVER_ERRORS as e:
            logger.error("duckdb_connect_failed", path=str(db_path), error=str(e))
            raise PersistenceError(f"Cannot open primary store at {db_path}: {e}") from e

        if not read_only:
            self._init_schema()

        logger.info(
            "duckdb_store_initialized",
            path=str(db_path),
            read_only=read_only,
        )

    def _init_schema(self) -> None:
        """Initialize database schema."""
        with self._lock:
            try:
                self.conn.execute("CREATE SEQUENCE IF NOT EXISTS sos_id_seq START 1")

                # SOS alerts, id assigned on insert
                self.conn.execute("""
                    CREATE TABLE IF NOT EXISTS sos (
                        id BIGINT PRIMARY KEY DEFAULT nextval('sos_id_seq'),
                        message VARCHAR,
                        lat DOUBLE,
                        lng DOUBLE,
                        created_at TIMESTAMP NOT NULL
                    )
                """)

                # Sensor readings, one row per submitted key
                self.conn.execute("""
                    CREATE TABLE IF NOT EXISTS sensor_data (
                        key_name VARCHAR NOT NULL,
                        value VARCHAR,
                        created_at TIMESTAMP NOT NULL
                    )
                """)
            except _DRIVER_ERRORS as e:
                raise PersistenceError(f"Schema initialization failed: {e}") from e

        logger.info("duckdb_schema_initialized")

    # =========================================================================
    # Statement execution
    # =========================================================================

    def execute(self, statement: str, params: Optional[Sequence[Any]] = None) -> None:
        """Execute a single write statement (autocommitted)."""
        with self._lock:
            try:
                if params:
                    self.conn.execute(statement, list(params))
                else:
                    self.conn.execute(statement)
            except _DRIVER_ERRORS as e:
                logger.error("duckdb_execute_failed", error=str(e))
                raise PersistenceError(str(e)) from e

    def execute_many(self, statement: str, rows: Sequence[Sequence[Any]]) -> int:
        """
        Execute one parameterized statement per row inside a single transaction.

        Either every row commits or none does.
        """
        if not rows:
            return 0

        with self._lock:
            try:
                self.conn.begin()
                self.conn.executemany(statement, [list(r) for r in rows])
                self.conn.commit()
            except _DRIVER_ERRORS as e:
                try:
                    self.conn.rollback()
                except _DRIVER_ERRORS:
                    logger.warning("duckdb_rollback_failed")
                logger.error("duckdb_execute_many_failed", rows=len(rows), error=str(e))
                raise PersistenceError(str(e)) from e

        return len(rows)

    def query(self, statement: str, params: Optional[Sequence[Any]] = None) -> list[dict]:
        """Run a read query and return rows as dictionaries."""
        with self._lock:
            try:
                if params:
                    cursor = self.conn.execute(statement, list(params))
                else:
                    cursor = self.conn.execute(statement)
                columns = [d[0] for d in cursor.description]
                rows = cursor.fetchall()
            except _DRIVER_ERRORS as e:
                logger.error("duckdb_query_failed", error=str(e))
                raise PersistenceError(str(e)) from e

        return [dict(zip(columns, row)) for row in rows]

    # =========================================================================
    # Utility Methods
    # =========================================================================

    def count(self, table: str) -> int:
        """Count rows in one of the known tables."""
        if table not in TABLES:
            raise ValueError(f"Unknown table: {table}")
        rows = self.query(f"SELECT COUNT(*) AS n FROM {table}")
        return int(rows[0]["n"])

    def is_empty(self) -> bool:
        """True when no table holds any rows."""
        return all(self.count(table) == 0 for table in TABLES)

    def ping(self) -> bool:
        """Check that the connection still answers."""
        try:
            self.query("SELECT 1 AS ok")
            return True
        except PersistenceError:
            return False

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            self.conn.close()
        logger.info("duckdb_store_closed", path=str(self.db_path))
