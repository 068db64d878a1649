"""
Event types accepted by the ingestion service.

Callers send loosely-typed JSON mappings. Values are narrowed to the
FieldValue tag (text, number or null) before they reach the store.
"""

import json
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional, Union

from src.exceptions import ValidationError

FieldValue = Union[str, int, float, None]

DEFAULT_SOS_MESSAGE = "SOS"


def require_encodable(field: str, text: str) -> str:
    """Reject text that cannot be stored as UTF-8 (lone surrogates)."""
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        raise ValidationError(field, "text is not valid unicode")
    return text


def coerce_text(value: Any, field: str = "value") -> Optional[str]:
    """
    Narrow a payload value to text.

    None stays None so that a null is never confused with an empty string.
    Numbers and booleans render the way they appeared in the JSON body,
    nested objects render as compact JSON.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return require_encodable(field, value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return json.dumps(value)
    return json.dumps(value, separators=(",", ":"), sort_keys=True)


def coerce_number(field: str, value: Any) -> Union[int, float, None]:
    """Narrow a payload value to a finite number (or None)."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValidationError(field, "expected a number, got a boolean")
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            raise ValidationError(field, f"expected a number, got {value!r}")
    if not isinstance(value, (int, float)):
        raise ValidationError(field, f"expected a number, got {type(value).__name__}")
    if isinstance(value, float) and not math.isfinite(value):
        raise ValidationError(field, "number must be finite")
    return value


@dataclass(frozen=True)
class SosEvent:
    """
    An emergency alert.

    The id is assigned by the primary store on insert; created_at is
    assigned by the service when the request is accepted.
    """
    message: Optional[str]
    lat: Optional[float]
    lng: Optional[float]
    created_at: datetime
    id: Optional[int] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], created_at: datetime) -> "SosEvent":
        message = coerce_text(payload.get("message"), "message")
        return cls(
            message=DEFAULT_SOS_MESSAGE if message is None else message,
            lat=coerce_number("lat", payload.get("lat")),
            lng=coerce_number("lng", payload.get("lng")),
            created_at=created_at,
        )

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "SosEvent":
        return cls(
            id=record["id"],
            message=record["message"],
            lat=record["lat"],
            lng=record["lng"],
            created_at=record["created_at"],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "message": self.message,
            "lat": self.lat,
            "lng": self.lng,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class SensorReading:
    """One key/value pair from a sensor request, stored as its own row."""
    key_name: str
    value: Optional[str]
    created_at: datetime


def sensor_readings_from_payload(
    payload: Mapping[str, Any],
    created_at: datetime,
) -> list[SensorReading]:
    """Flatten a sensor payload into readings, preserving payload order."""
    return [
        SensorReading(
            key_name=require_encodable("key_name", str(key)),
            value=coerce_text(value, str(key)),
            created_at=created_at,
        )
        for key, value in payload.items()
    ]


@dataclass(frozen=True)
class Acknowledgment:
    """Minimal success response returned once a request is fully processed."""
    status: str = "ok"

    def to_dict(self) -> dict[str, str]:
        return {"status": self.status}
