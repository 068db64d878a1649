#!/usr/bin/env python3
"""
Rebuild the primary store from the recovery log.

Replays every logged INSERT into a DuckDB file. By default the target
must be empty; replaying twice would duplicate rows.

Usage:
    python scripts/replay_recovery_log.py

    # Into a fresh file
    python scripts/replay_recovery_log.py --duckdb-path data/restored.duckdb
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import structlog

from src.config import load_settings
from src.exceptions import TelemetryError
from src.storage.duckdb_store import DuckDBStore
from src.storage.recovery_log import RecoveryLogWriter
from src.storage.replay import RecoveryLogReplayer
from src.utils.logging_config import configure_logging

logger = structlog.get_logger(__name__)


def main():
    settings = load_settings()

    parser = argparse.ArgumentParser(description="Recovery log replay")
    parser.add_argument("--log-path", default=settings.recovery_log_path)
    parser.add_argument("--duckdb-path", default=settings.duckdb_path)
    parser.add_argument(
        "--allow-non-empty",
        action="store_true",
        help="Replay even if the target store already has rows",
    )

    args = parser.parse_args()

    configure_logging(settings.log_level, json_logs=True)

    logger.info("replay_requested", log_path=args.log_path, duckdb_path=args.duckdb_path)

    if not Path(args.log_path).exists():
        logger.error("recovery_log_not_found", path=args.log_path)
        sys.exit(1)

    try:
        store = DuckDBStore(args.duckdb_path)
        replayer = RecoveryLogReplayer(RecoveryLogWriter(args.log_path), store)
        summary = replayer.replay(require_empty=not args.allow_non_empty)
        store.close()
    except TelemetryError as e:
        logger.error("replay_failed", error=str(e))
        sys.exit(1)

    if summary["errors"]:
        sys.exit(2)


if __name__ == "__main__":
    main()
