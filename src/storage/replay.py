"""
Replay of the recovery log into the primary store.

Used for disaster recovery: point a fresh DuckDB file at the log and
rebuild its content. Rows whose mirror failed at ingestion time are
not in the log and cannot be recovered from it. Reconciling a partially
populated store against the log is not attempted.
"""

import structlog

from src.exceptions import PersistenceError, ReplayError
from src.storage.duckdb_store import DuckDBStore, TABLES
from src.storage.recovery_log import RecoveryLogWriter
from src.storage.statements import is_complete_insert

logger = structlog.get_logger(__name__)


def _is_replayable(statement: str) -> bool:
    """Only whole single-line INSERTs into known tables are replayed.

    A torn tail left by a crash mid-write fails this check and is
    counted as an error rather than silently skipped.
    """
    return is_complete_insert(statement, TABLES)


class RecoveryLogReplayer:
    """
    Re-executes logged statements against a primary store.

    Statements are replayed in append order. A statement that fails is
    counted and skipped so one bad line does not block the rest.
    """

    def __init__(self, recovery_log: RecoveryLogWriter, store: DuckDBStore):
        """
        Initialize replayer.

        Args:
            recovery_log: Log to read statements from
            store: Primary store to replay into
        """
        self.recovery_log = recovery_log
        self.store = store

    def replay(self, require_empty: bool = True) -> dict:
        """
        Replay the whole log.

        Args:
            require_empty: Refuse to run against a store that already has rows

        Returns:
            Summary of replayed statements

        Raises:
            ReplayError: If the store is not empty and require_empty is set
        """
        if require_empty and not self.store.is_empty():
            raise ReplayError(
                "Primary store is not empty; replaying would duplicate rows"
            )

        statements = self.recovery_log.read_statements()

        summary = {
            "statements_read": len(statements),
            "statements_replayed": 0,
            "errors": 0,
        }

        logger.info("replay_starting", statements=len(statements))

        for index, statement in enumerate(statements):
            if not _is_replayable(statement):
                logger.error("replay_statement_rejected", index=index, line=statement[:80])
                summary["errors"] += 1
                continue

            try:
                self.store.execute(statement)
                summary["statements_replayed"] += 1
            except PersistenceError as e:
                logger.error("replay_statement_failed", index=index, error=str(e))
                summary["errors"] += 1

        logger.info("replay_complete", **summary)
        return summary
