from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable
from uuid import uuid4

import structlog

from shiptrack.core.entities.event import ShipmentEvent, format_timestamp, parse_timestamp
from shiptrack.core.entities.shipment import STATUS_DESCRIPTIONS
from shiptrack.core.repositories.event_repository import EventRepository
from shiptrack.core.validators.event_validator import (
    CreateEventRequest,
    MAX_FUTURE_SKEW,
    validate_event_timestamp,
)

logger = structlog.get_logger(__name__)


class DuplicateEventError(Exception):
    """Raise to map to HTTP 409 (same shipment, status and timestamp already recorded)."""


class EventTimestampOutOfRangeError(Exception):
    """Raise to map to HTTP 400 (timestamp too far in the future or the past)."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_event_id() -> str:
    return str(uuid4())


class RecordEventUseCase:
    """
    Appends a new event to a shipment's log.

    The duplicate check and the write are two separate store calls: two writers racing
    with the same (shipment_id, status, timestamp) can both succeed.
    """

    def __init__(
        self,
        *,
        event_repo: EventRepository,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = _new_event_id,
    ) -> None:
        self._event_repo = event_repo
        self._clock = clock
        self._id_factory = id_factory

    def execute(self, *, shipment_id: str, request: CreateEventRequest) -> ShipmentEvent:
        now = self._clock()
        if not validate_event_timestamp(request.timestamp, now=now):
            if parse_timestamp(request.timestamp) > now + MAX_FUTURE_SKEW:
                raise EventTimestampOutOfRangeError("Event timestamp cannot be in the future")
            raise EventTimestampOutOfRangeError("Event timestamp cannot be more than one year in the past")

        if self._event_repo.exists(shipment_id, request.status, request.timestamp):
            logger.info(
                "duplicate_event_rejected",
                shipment_id=shipment_id,
                status=request.status.value,
                timestamp=request.timestamp,
            )
            raise DuplicateEventError("Event with this shipment ID, status and timestamp already exists")

        event = ShipmentEvent(
            id=self._id_factory(),
            shipment_id=shipment_id,
            timestamp=request.timestamp,
            status=request.status,
            location=request.location,
            details=request.details or STATUS_DESCRIPTIONS[request.status],
            created_at=format_timestamp(now),
        )
        self._event_repo.add(event)

        logger.info("event_recorded", shipment_id=shipment_id, event_id=event.id, status=event.status.value)
        return event
