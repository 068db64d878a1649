"""
Storage layer with separated concerns.

- DuckDBStore: Primary store, the system of record for reads
- RecoveryLogWriter: Append-only SQL mirror for disaster recovery
- RecoveryLogReplayer: Rebuilds an empty primary store from the log
"""

from src.storage.duckdb_store import DuckDBStore
from src.storage.recovery_log import RecoveryLogWriter
from src.storage.replay import RecoveryLogReplayer

__all__ = ["DuckDBStore", "RecoveryLogWriter", "RecoveryLogReplayer"]
