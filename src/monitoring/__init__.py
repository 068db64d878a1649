"""Monitoring for the telemetry server."""

from src.monitoring.log_health import RecoveryLogHealth, RecoveryLogHealthSnapshot

__all__ = ["RecoveryLogHealth", "RecoveryLogHealthSnapshot"]
