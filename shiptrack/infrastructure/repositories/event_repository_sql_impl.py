from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Mapping

import structlog
from sqlalchemy import insert, select
from sqlalchemy.exc import DataError, DBAPIError, DisconnectionError, IntegrityError, InterfaceError
from sqlalchemy.orm import Session

from shiptrack.core.entities.event import ShipmentEvent
from shiptrack.core.entities.shipment import ShipmentStatus
from shiptrack.core.repositories.event_repository import (
    EventAlreadyExistsError,
    EventPage,
    EventRepository,
    EventStoreUnavailableError,
    InvalidQueryError,
)
from shiptrack.infrastructure.models.models import ShipmentEventModel

logger = structlog.get_logger(__name__)

_UNAVAILABLE_MARKERS = (
    "no such table",
    "does not exist",
    "unable to open database",
    "could not connect",
    "connection refused",
)
_INVALID_QUERY_MARKERS = (
    "datatype mismatch",
    "invalid input syntax",
    "value too long",
)


class SqlEventRepositoryImpl(EventRepository):
    """
    Event repository backed by a SQLAlchemy table keyed by (shipment_id, id).

    Driver failures are matched against a fixed set of known conditions and re-raised
    as store errors; anything unrecognised propagates unchanged.
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    def exists(self, shipment_id: str, status: ShipmentStatus, timestamp: str) -> bool:
        stmt = (
            select(ShipmentEventModel.id)
            .where(ShipmentEventModel.shipment_id == shipment_id)
            .where(ShipmentEventModel.status == ShipmentStatus(status).value)
            .where(ShipmentEventModel.timestamp == timestamp)
            .limit(1)
        )
        with self._translate_errors():
            return self._db.execute(stmt).first() is not None

    def add(self, event: ShipmentEvent) -> None:
        # plain INSERT so a key collision always surfaces as IntegrityError
        stmt = insert(ShipmentEventModel).values(
            shipment_id=event.shipment_id,
            id=event.id,
            timestamp=event.timestamp,
            status=event.status.value,
            location=event.location,
            details=event.details,
            created_at=event.created_at,
        )
        with self._translate_errors():
            try:
                self._db.execute(stmt)
                self._db.commit()
            except IntegrityError as e:
                self._db.rollback()
                raise EventAlreadyExistsError("Event with this ID already exists") from e

    def query(
        self,
        shipment_id: str,
        *,
        limit: int,
        exclusive_start_key: Mapping[str, str] | None = None,
    ) -> EventPage:
        if limit < 1:
            raise InvalidQueryError("limit must be a positive integer")

        stmt = select(ShipmentEventModel).where(ShipmentEventModel.shipment_id == shipment_id)
        if exclusive_start_key is not None:
            last_id = exclusive_start_key.get("id")
            if not isinstance(last_id, str):
                raise InvalidQueryError("The provided starting key is invalid")
            stmt = stmt.where(ShipmentEventModel.id > last_id)

        # one extra row tells whether another page exists
        stmt = stmt.order_by(ShipmentEventModel.id).limit(limit + 1)

        with self._translate_errors():
            rows = self._db.execute(stmt).scalars().all()

        items = [self._row_to_event(r) for r in rows[:limit]]
        last_evaluated_key = None
        if len(rows) > limit:
            last_evaluated_key = {"shipmentId": shipment_id, "id": items[-1].id}
        return EventPage(items=items, last_evaluated_key=last_evaluated_key)

    def list_for_shipment(self, shipment_id: str) -> list[ShipmentEvent]:
        stmt = select(ShipmentEventModel).where(ShipmentEventModel.shipment_id == shipment_id)
        with self._translate_errors():
            rows = self._db.execute(stmt).scalars().all()
        return [self._row_to_event(r) for r in rows]

    @contextmanager
    def _translate_errors(self) -> Iterator[None]:
        try:
            yield
        except (InterfaceError, DisconnectionError) as e:
            self._db.rollback()
            logger.error("event_store_unreachable", error=str(e))
            raise EventStoreUnavailableError("Events table not found") from e
        except DataError as e:
            self._db.rollback()
            raise InvalidQueryError(str(e.orig)) from e
        except DBAPIError as e:
            self._db.rollback()
            message = str(e.orig).lower()
            if any(marker in message for marker in _UNAVAILABLE_MARKERS):
                logger.error("event_store_unavailable", error=str(e.orig))
                raise EventStoreUnavailableError("Events table not found") from e
            if any(marker in message for marker in _INVALID_QUERY_MARKERS):
                raise InvalidQueryError(str(e.orig)) from e
            raise

    @staticmethod
    def _row_to_event(row: ShipmentEventModel) -> ShipmentEvent:
        return ShipmentEvent(
            id=row.id,
            shipment_id=row.shipment_id,
            timestamp=row.timestamp,
            status=ShipmentStatus(row.status),
            location=row.location,
            details=row.details,
            created_at=row.created_at,
        )
