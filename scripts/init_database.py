#!/usr/bin/env python3
"""
Create the primary store schema.

The API creates the schema on startup as well; this is for provisioning
a database file ahead of time.

Usage:
    python scripts/init_database.py --duckdb-path data/telemetry.duckdb
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import structlog

from src.config import load_settings
from src.exceptions import PersistenceError
from src.storage.duckdb_store import DuckDBStore, TABLES
from src.utils.logging_config import configure_logging

logger = structlog.get_logger(__name__)


def main():
    settings = load_settings()

    parser = argparse.ArgumentParser(description="Initialize primary store")
    parser.add_argument("--duckdb-path", default=settings.duckdb_path)
    args = parser.parse_args()

    configure_logging(settings.log_level, json_logs=True)

    try:
        store = DuckDBStore(args.duckdb_path)
        counts = {table: store.count(table) for table in TABLES}
        store.close()
    except PersistenceError as e:
        logger.error("database_init_failed", error=str(e))
        sys.exit(1)

    logger.info("database_ready", path=args.duckdb_path, **counts)


if __name__ == "__main__":
    main()
