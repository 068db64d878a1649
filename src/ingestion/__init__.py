"""
Ingestion layer.

- IngestionService: writes to the primary store, then mirrors to the recovery log
- ListingService: reverse-chronological SOS listing from the primary store
"""

from src.ingestion.listing import ListingService
from src.ingestion.models import Acknowledgment, SensorReading, SosEvent
from src.ingestion.service import IngestionService

__all__ = [
    "Acknowledgment",
    "IngestionService",
    "ListingService",
    "SensorReading",
    "SosEvent",
]
