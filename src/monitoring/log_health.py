"""
Recovery log health tracking.

Mirror failures never reach callers, so they are counted here and
exposed through the health endpoint for operators. Health follows the
most recent mirror attempt: a log that failed once and has since
recovered reports healthy, with the failure still visible in the counters.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from threading import Lock
from typing import Optional


@dataclass
class RecoveryLogHealthSnapshot:
    """Point-in-time view of recovery log health."""
    statements_mirrored: int
    mirror_failures: int
    last_attempt_ok: Optional[bool]
    last_success_at: Optional[datetime]
    last_failure_at: Optional[datetime]
    last_failure_error: Optional[str]

    @property
    def healthy(self) -> bool:
        # No attempt yet counts as healthy
        return self.last_attempt_ok is not False

    def to_dict(self) -> dict:
        return {
            "healthy": self.healthy,
            "statements_mirrored": self.statements_mirrored,
            "mirror_failures": self.mirror_failures,
            "last_success_at": (
                self.last_success_at.isoformat() if self.last_success_at else None
            ),
            "last_failure_at": (
                self.last_failure_at.isoformat() if self.last_failure_at else None
            ),
            "last_failure_error": self.last_failure_error,
        }


class RecoveryLogHealth:
    """Thread-safe counters for recovery log mirroring."""

    def __init__(self):
        self._lock = Lock()
        self._mirrored = 0
        self._failures = 0
        self._last_attempt_ok: Optional[bool] = None
        self._last_success_at: Optional[datetime] = None
        self._last_failure_at: Optional[datetime] = None
        self._last_failure_error: Optional[str] = None

    def record_success(self, statement_count: int) -> None:
        with self._lock:
            self._mirrored += statement_count
            self._last_attempt_ok = True
            self._last_success_at = datetime.now(timezone.utc)

    def record_failure(self, error: str) -> None:
        with self._lock:
            self._failures += 1
            self._last_attempt_ok = False
            self._last_failure_at = datetime.now(timezone.utc)
            self._last_failure_error = error

    def snapshot(self) -> RecoveryLogHealthSnapshot:
        with self._lock:
            return RecoveryLogHealthSnapshot(
                statements_mirrored=self._mirrored,
                mirror_failures=self._failures,
                last_attempt_ok=self._last_attempt_ok,
                last_success_at=self._last_success_at,
                last_failure_at=self._last_failure_at,
                last_failure_error=self._last_failure_error,
            )
