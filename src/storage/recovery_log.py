"""
Append-only recovery log.

Mirrors every primary-store write as a replayable SQL statement.
The log is best-effort redundancy for disaster recovery: it is written
after the primary store commits and its failures never reach callers.

Access discipline is append-only (no reads on the hot path, no rewrites),
so writes take no lock. Each append call goes out as a single write in
append mode, which keeps one call's statements contiguous.
"""

import os
from pathlib import Path
from typing import Any, Sequence
import structlog

from src.exceptions import RecoveryLogError
from src.storage.statements import split_statements

logger = structlog.get_logger(__name__)


class RecoveryLogWriter:
    """
    Writer for the SQL recovery log.

    Design principles:
    - Append-only: No updates, no deletes, no rotation
    - One statement per row and per line, each independently replayable
    - Directory and file are created on first append
    - Failures raise RecoveryLogError; callers decide whether to care
    """

    def __init__(self, log_path: str, encoding: str = "utf-8"):
        """
        Initialize recovery log writer.

        Nothing touches the filesystem until the first append.

        Args:
            log_path: Path to the log file
            encoding: Text encoding of the log
        """
        self.log_path = Path(log_path)
        self.encoding = encoding
        self._initialized = False

        logger.info("recovery_log_configured", path=str(self.log_path))

    def _ensure_exists(self) -> None:
        """Create the containing directory and the file if absent.

        Concurrent creators are fine: exist_ok and append mode both
        tolerate losing the race.
        """
        if self._initialized and self.log_path.exists():
            return

        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        self.log_path.touch(exist_ok=True)
        self._initialized = True

    def _ends_mid_line(self) -> bool:
        """True when the file's last byte is not a newline (a torn tail)."""
        if self.log_path.stat().st_size == 0:
            return False
        with open(self.log_path, "rb") as f:
            f.seek(-1, os.SEEK_END)
            return f.read(1) != b"\n"

    def append(self, statements: Sequence[str]) -> None:
        """
        Append statements to the log.

        All statements of one call land contiguously. Calls from
        concurrent requests may interleave between calls, never inside
        a statement. If an earlier write was cut short, the torn tail
        is closed off with a newline first so it cannot swallow the
        new statements.

        Raises:
            RecoveryLogError: If the log cannot be created or written
        """
        if not statements:
            return

        payload = "".join(f"{statement}\n" for statement in statements)

        try:
            self._ensure_exists()
            if self._ends_mid_line():
                logger.warning("recovery_log_torn_tail", path=str(self.log_path))
                payload = "\n" + payload
            with open(self.log_path, "a", encoding=self.encoding, newline="") as f:
                f.write(payload)
        except (OSError, UnicodeError) as e:
            self._initialized = False
            logger.error(
                "recovery_log_write_error",
                path=str(self.log_path),
                statements=len(statements),
                error=str(e),
            )
            raise RecoveryLogError(f"Cannot append to {self.log_path}: {e}") from e

        logger.debug("recovery_log_appended", count=len(statements))

    def read_statements(self) -> list[str]:
        """
        Read every non-blank line of the log, in append order.

        For replay and diagnostics only; ingestion never reads the log.
        """
        if not self.log_path.exists():
            return []

        try:
            with open(self.log_path, "r", encoding=self.encoding, newline="") as f:
                text = f.read()
        except (OSError, UnicodeError) as e:
            raise RecoveryLogError(f"Cannot read {self.log_path}: {e}") from e

        return split_statements(text)

    def get_stats(self) -> dict[str, Any]:
        """Get statistics about the log."""
        if not self.log_path.exists():
            return {"exists": False, "path": str(self.log_path), "size_bytes": 0}

        return {
            "exists": True,
            "path": str(self.log_path),
            "size_bytes": self.log_path.stat().st_size,
        }

    def close(self) -> None:
        """Close the log (for graceful shutdown).

        Each append opens and closes the file, so there is nothing to flush.
        """
        logger.info("recovery_log_closed", path=str(self.log_path))
