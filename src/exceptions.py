"""
Error taxonomy for the telemetry server.

Only PersistenceError and ValidationError ever reach a caller.
RecoveryLogError is caught between the primary write and the log mirror.
"""


class TelemetryError(Exception):
    """Base class for all telemetry server errors."""


class ValidationError(TelemetryError):
    """Malformed ingestion request."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"{field}: {message}")


class PersistenceError(TelemetryError):
    """Primary store unreachable or rejected the write."""


class RecoveryLogError(TelemetryError):
    """Recovery log resource unreachable or unwritable."""


class ReplayError(TelemetryError):
    """Recovery log could not be replayed into the primary store."""
