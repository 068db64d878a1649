#!/usr/bin/env python3
"""
FastAPI backend for the LifeBeacon telemetry server.

Provides REST endpoints for:
- SOS alert ingestion and listing
- Sensor reading ingestion
- Health of the primary store and the recovery log

Handlers are plain functions, so FastAPI runs them on its threadpool and
a request blocked on DuckDB or the log file does not stall the others.
"""

import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional
from contextlib import asynccontextmanager

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from fastapi import FastAPI, HTTPException, Depends
from fastapi.middleware.cors import CORSMiddleware
import structlog

from src.config import Settings, load_settings
from src.exceptions import PersistenceError, ValidationError
from src.ingestion.listing import ListingService
from src.ingestion.service import IngestionService
from src.monitoring.log_health import RecoveryLogHealth
from src.storage.duckdb_store import DuckDBStore
from src.storage.recovery_log import RecoveryLogWriter
from src.utils.logging_config import configure_logging

settings: Settings = load_settings()
configure_logging(settings.log_level)

logger = structlog.get_logger(__name__)

# Global state
duckdb_store: Optional[DuckDBStore] = None
recovery_log: Optional[RecoveryLogWriter] = None
log_health: Optional[RecoveryLogHealth] = None
ingestion_service: Optional[IngestionService] = None
listing_service: Optional[ListingService] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle manager for FastAPI app."""
    global duckdb_store, recovery_log, log_health, ingestion_service, listing_service

    # Startup
    logger.info("api_starting")

    current = load_settings()

    # Recovery log file is created lazily on first append
    recovery_log = RecoveryLogWriter(current.recovery_log_path)
    log_health = RecoveryLogHealth()

    try:
        duckdb_store = DuckDBStore(current.duckdb_path)
        logger.info("duckdb_connected", path=current.duckdb_path)
    except PersistenceError as e:
        logger.error("duckdb_connection_failed", error=str(e))
        duckdb_store = None

    if duckdb_store is not None:
        ingestion_service = IngestionService(
            duckdb_store,
            recovery_log,
            health=log_health,
        )
        listing_service = ListingService(duckdb_store)

    logger.info("api_ready")

    yield

    # Shutdown
    logger.info("api_shutting_down")

    if duckdb_store:
        duckdb_store.close()
    recovery_log.close()

    duckdb_store = None
    ingestion_service = None
    listing_service = None

    logger.info("api_shutdown_complete")


app = FastAPI(
    title="LifeBeacon Telemetry API",
    description="SOS and sensor ingestion with a replayable recovery log",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware (the browser client is served from another origin)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Dependencies to get services
def get_ingestion() -> IngestionService:
    if ingestion_service is None:
        raise HTTPException(status_code=503, detail="Primary store not connected")
    return ingestion_service


def get_listing() -> ListingService:
    if listing_service is None:
        raise HTTPException(status_code=503, detail="Primary store not connected")
    return listing_service


# ============================================================================
# REST Endpoints
# ============================================================================

@app.get("/api/health")
def health_check():
    """System health check."""
    store_ok = duckdb_store is not None and duckdb_store.ping()
    return {
        "status": "healthy" if store_ok else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "duckdb": store_ok,
        "recovery_log": {
            **(log_health.snapshot().to_dict() if log_health else {}),
            **(recovery_log.get_stats() if recovery_log else {}),
        },
    }


@app.post("/api/sos")
def post_sos(
    payload: Dict[str, Any],
    service: IngestionService = Depends(get_ingestion),
):
    """Ingest an SOS alert."""
    try:
        return service.ingest_sos(payload).to_dict()
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except PersistenceError as e:
        logger.error("sos_ingest_error", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to persist SOS event")


@app.post("/api/sensor")
def post_sensor(
    payload: Dict[str, Any],
    service: IngestionService = Depends(get_ingestion),
):
    """Ingest sensor readings (one row per key)."""
    try:
        return service.ingest_sensor(payload).to_dict()
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except PersistenceError as e:
        logger.error("sensor_ingest_error", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to persist sensor readings")


@app.get("/api/sos")
def get_sos(service: ListingService = Depends(get_listing)) -> List[Dict[str, Any]]:
    """List SOS alerts, most recent first."""
    try:
        return [event.to_dict() for event in service.list_sos()]
    except PersistenceError as e:
        logger.error("sos_list_error", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to read SOS events")

