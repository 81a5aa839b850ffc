from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticCustomError

from shiptrack.core.entities.event import parse_timestamp
from shiptrack.core.entities.shipment import (
    DETAILS_MAX_LENGTH,
    LOCATION_MAX_LENGTH,
    QUERY_LIMIT_DEFAULT,
    QUERY_LIMIT_MAX,
    QUERY_LIMIT_MIN,
    SHIPMENT_ID_MAX_LENGTH,
    SHIPMENT_ID_MIN_LENGTH,
    VALID_SHIPMENT_STATUSES,
    ShipmentStatus,
)

SHIPMENT_ID_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"[A-Z]{2}\d{9}[A-Z]{2}", re.ASCII),  # Universal Postal Union: XX123456789XX
    re.compile(r"SHIP-\d{6,12}", re.ASCII),
    re.compile(r"[A-Z0-9_-]{5,50}", re.IGNORECASE | re.ASCII),
)

# UTC only: an offset suffix or a missing Z is rejected
ISO_UTC_TIMESTAMP = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d{1,6})?Z", re.ASCII)

MAX_FUTURE_SKEW = timedelta(minutes=5)
MAX_EVENT_AGE = timedelta(days=365)


class ValidationError(Exception):
    """Raise to map to HTTP 400 (one entry per violated field constraint)."""

    def __init__(self, errors: list[FieldError]) -> None:
        self.errors = list(errors)
        super().__init__(", ".join(str(e) for e in self.errors))


class MalformedBodyError(Exception):
    """Raise to map to HTTP 400 when the request body is missing or not JSON."""


@dataclass(frozen=True, slots=True)
class FieldError:
    field: str
    message: str

    def __str__(self) -> str:
        if not self.field:
            return self.message
        return f"{self.field}: {self.message}"


class CreateEventRequest(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    timestamp: str
    status: ShipmentStatus
    location: str | None = None
    details: str | None = None

    @field_validator("timestamp")
    @classmethod
    def _timestamp_is_iso_utc(cls, v: str) -> str:
        if not ISO_UTC_TIMESTAMP.fullmatch(v):
            raise PydanticCustomError("timestamp_format", "Timestamp must be in ISO 8601 format")
        try:
            parse_timestamp(v)
        except ValueError:
            raise PydanticCustomError("timestamp_format", "Timestamp must be in ISO 8601 format") from None
        return v

    @field_validator("status", mode="before")
    @classmethod
    def _status_is_known(cls, v: Any) -> Any:
        if not isinstance(v, str) or v not in VALID_SHIPMENT_STATUSES:
            raise PydanticCustomError(
                "status_enum",
                "Status must be one of: {allowed}",
                {"allowed": ", ".join(VALID_SHIPMENT_STATUSES)},
            )
        return v

    @field_validator("location")
    @classmethod
    def _location_length(cls, v: str | None) -> str | None:
        if v is not None and len(v) > LOCATION_MAX_LENGTH:
            raise PydanticCustomError(
                "location_length",
                "Location must be less than {max} characters",
                {"max": LOCATION_MAX_LENGTH},
            )
        return v

    @field_validator("details")
    @classmethod
    def _details_length(cls, v: str | None) -> str | None:
        if v is not None and len(v) > DETAILS_MAX_LENGTH:
            raise PydanticCustomError(
                "details_length",
                "Details must be less than {max} characters",
                {"max": DETAILS_MAX_LENGTH},
            )
        return v


class GetEventsQuery(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    limit: int = QUERY_LIMIT_DEFAULT
    start_key: str | None = None

    @field_validator("limit", mode="before")
    @classmethod
    def _limit_default(cls, v: Any) -> Any:
        if v is None or v == "":
            return QUERY_LIMIT_DEFAULT
        if isinstance(v, str):
            v = v.strip()
            if not re.fullmatch(r"[+-]?[0-9]+", v):
                raise PydanticCustomError("limit_type", "Limit must be an integer")
        return v

    @field_validator("limit")
    @classmethod
    def _limit_range(cls, v: int) -> int:
        if not QUERY_LIMIT_MIN <= v <= QUERY_LIMIT_MAX:
            raise PydanticCustomError(
                "limit_range",
                "Limit must be between {min} and {max}",
                {"min": QUERY_LIMIT_MIN, "max": QUERY_LIMIT_MAX},
            )
        return v


def _field_errors(exc: PydanticValidationError) -> list[FieldError]:
    errors: list[FieldError] = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err["loc"])
        message = "Required" if err["type"] == "missing" else err["msg"]
        errors.append(FieldError(field=field, message=message))
    return errors


def validate_shipment_id(shipment_id: str) -> bool:
    """True iff the id matches at least one accepted shipment-ID shape."""
    if not isinstance(shipment_id, str) or not shipment_id:
        return False
    return any(pattern.fullmatch(shipment_id) for pattern in SHIPMENT_ID_PATTERNS)


def validate_shipment_id_param(shipment_id: str | None) -> list[FieldError]:
    if not shipment_id or len(shipment_id) < SHIPMENT_ID_MIN_LENGTH:
        return [FieldError("shipmentId", "Shipment ID is required")]
    if len(shipment_id) > SHIPMENT_ID_MAX_LENGTH:
        return [FieldError("shipmentId", f"Shipment ID must be less than {SHIPMENT_ID_MAX_LENGTH} characters")]
    if not validate_shipment_id(shipment_id):
        return [FieldError("shipmentId", "Shipment ID format is invalid")]
    return []


def validate_event_timestamp(timestamp: str, now: datetime | None = None) -> bool:
    """
    True iff the timestamp parses and lies within [now - 365 days, now + 5 minutes], bounds inclusive.
    """
    try:
        event_time = parse_timestamp(timestamp)
    except (TypeError, ValueError, AttributeError):
        return False

    now = now or datetime.now(timezone.utc)
    return now - MAX_EVENT_AGE <= event_time <= now + MAX_FUTURE_SKEW


def validate_create_event_request(fields: Any) -> tuple[CreateEventRequest | None, list[FieldError]]:
    """
    Structural validation of a write request. Every violated constraint is reported,
    not just the first one.
    """
    try:
        return CreateEventRequest.model_validate(fields), []
    except PydanticValidationError as e:
        return None, _field_errors(e)


def validate_query_params(fields: Mapping[str, Any] | None) -> tuple[int, str | None, list[FieldError]]:
    fields = fields or {}
    try:
        query = GetEventsQuery.model_validate(
            {"limit": fields.get("limit"), "start_key": fields.get("startKey") or None}
        )
    except PydanticValidationError as e:
        return QUERY_LIMIT_DEFAULT, None, _field_errors(e)
    return query.limit, query.start_key, []


def parse_json_body(raw: bytes | str | None) -> Any:
    if raw is None or not raw.strip():
        raise MalformedBodyError("Request body is required")
    try:
        return json.loads(raw)
    except (UnicodeDecodeError, ValueError) as e:
        raise MalformedBodyError("Invalid JSON in request body") from e
