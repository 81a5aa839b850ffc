from __future__ import annotations

from typing import Any, Mapping

from sqlalchemy.orm import Session

from shiptrack.core.entities.event import ShipmentEvent as CoreShipmentEvent
from shiptrack.core.repositories.event_repository import EventRepository
from shiptrack.core.use_cases.get_event_history import GetEventHistoryUseCase
from shiptrack.core.use_cases.get_latest_event import GetLatestEventUseCase
from shiptrack.core.use_cases.record_event import RecordEventUseCase
from shiptrack.core.validators.event_validator import (
    FieldError,
    ValidationError,
    parse_json_body,
    validate_create_event_request,
    validate_query_params,
    validate_shipment_id_param,
)
from shiptrack.infrastructure.repositories.event_repository_jsonl_impl import JsonlEventRepositoryImpl
from shiptrack.infrastructure.repositories.event_repository_sql_impl import SqlEventRepositoryImpl
from shiptrack.schemas.models import EventHistory, ShipmentEvent


def _event_repository(db: Session) -> EventRepository:
    from shiptrack.infrastructure.config import settings

    if settings.event_store == "jsonl":
        return JsonlEventRepositoryImpl(file_path=settings.event_log_path)
    return SqlEventRepositoryImpl(db)


def _to_schema(event: CoreShipmentEvent) -> ShipmentEvent:
    """
    Translate core ShipmentEvent entity -> API schema ShipmentEvent.
    """
    return ShipmentEvent(
        id=event.id,
        shipment_id=event.shipment_id,
        timestamp=event.timestamp,
        status=event.status.value,
        location=event.location,
        details=event.details,
        created_at=event.created_at,
    )


def _require_valid_shipment_id(shipment_id: str) -> None:
    if validate_shipment_id_param(shipment_id):
        raise ValidationError([FieldError("", "Invalid shipment ID")])


def record_event_service(shipment_id: str, raw_body: bytes | str | None, db: Session) -> ShipmentEvent:
    """
    Validate a write request and append it to the shipment's event log.

    Raises:
      - ValidationError for an invalid shipment id or request fields
      - MalformedBodyError for a missing or non-JSON body
      - EventTimestampOutOfRangeError, DuplicateEventError, and store errors from the use case
    """
    _require_valid_shipment_id(shipment_id)

    body = parse_json_body(raw_body)
    request, errors = validate_create_event_request(body)
    if errors:
        raise ValidationError(errors)

    use_case = RecordEventUseCase(event_repo=_event_repository(db))
    event = use_case.execute(shipment_id=shipment_id, request=request)
    return _to_schema(event)


def get_latest_event_service(shipment_id: str, db: Session) -> ShipmentEvent:
    _require_valid_shipment_id(shipment_id)

    use_case = GetLatestEventUseCase(event_repo=_event_repository(db))
    return _to_schema(use_case.execute(shipment_id=shipment_id))


def get_event_history_service(shipment_id: str, params: Mapping[str, Any], db: Session) -> EventHistory:
    _require_valid_shipment_id(shipment_id)

    limit, start_key, errors = validate_query_params(params)
    if errors:
        raise ValidationError(errors)

    use_case = GetEventHistoryUseCase(event_repo=_event_repository(db))
    page = use_case.execute(shipment_id=shipment_id, limit=limit, start_key=start_key)

    return EventHistory(
        events=[_to_schema(e) for e in page.events],
        has_more=page.has_more,
        next_key=page.next_key,
    )
