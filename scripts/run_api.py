#!/usr/bin/env python3
"""
Start the telemetry API.

Usage:
    python scripts/run_api.py
    python scripts/run_api.py --port 9000 --workers 1
"""

import argparse
import os
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Change to project root so config/settings.yaml resolves
os.chdir(project_root)

import uvicorn

from src.config import load_settings


def main():
    settings = load_settings()

    parser = argparse.ArgumentParser(description="LifeBeacon telemetry API")
    parser.add_argument("--host", default=settings.api_host)
    parser.add_argument("--port", type=int, default=settings.api_port)
    parser.add_argument("--reload", action="store_true", help="Reload on code changes")
    args = parser.parse_args()

    # Single worker: DuckDB allows one writing process per file
    uvicorn.run(
        "api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
