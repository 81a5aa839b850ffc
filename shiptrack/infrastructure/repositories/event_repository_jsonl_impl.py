from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

from shiptrack.core.entities.event import ShipmentEvent
from shiptrack.core.entities.shipment import ShipmentStatus
from shiptrack.core.repositories.event_repository import (
    EventAlreadyExistsError,
    EventPage,
    EventRepository,
    EventStoreUnavailableError,
    InvalidQueryError,
)
from shiptrack.infrastructure.models.models import EventLog


class JsonlEventRepositoryImpl(EventRepository):
    """
    Event repository backed by an append-only JSONL EventLog.

    Responsibilities:
      - translate between core ShipmentEvent entities and persisted dict records
      - expose the partitioned read API (exists/query/list_for_shipment)

    Every read scans the file; meant for local runs and single-node deployments.
    """

    def __init__(self, *, file_path: str | Path) -> None:
        path = Path(file_path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            self._log = EventLog(path)
        except OSError as e:
            raise EventStoreUnavailableError("Events table not found") from e

    def exists(self, shipment_id: str, status: ShipmentStatus, timestamp: str) -> bool:
        status_value = ShipmentStatus(status).value
        return any(
            r["status"] == status_value and r["timestamp"] == timestamp
            for r in self._partition(shipment_id)
        )

    def add(self, event: ShipmentEvent) -> None:
        try:
            appended = self._log.append(self._event_to_record(event))
        except OSError as e:
            raise EventStoreUnavailableError("Events table not found") from e
        if not appended:
            raise EventAlreadyExistsError("Event with this ID already exists")

    def query(
        self,
        shipment_id: str,
        *,
        limit: int,
        exclusive_start_key: Mapping[str, str] | None = None,
    ) -> EventPage:
        if limit < 1:
            raise InvalidQueryError("limit must be a positive integer")

        records = sorted(self._partition(shipment_id), key=lambda r: r["id"])
        if exclusive_start_key is not None:
            last_id = exclusive_start_key.get("id")
            if not isinstance(last_id, str):
                raise InvalidQueryError("The provided starting key is invalid")
            records = [r for r in records if r["id"] > last_id]

        items = [self._record_to_event(r) for r in records[:limit]]
        last_evaluated_key = None
        if len(records) > limit:
            last_evaluated_key = {"shipmentId": shipment_id, "id": items[-1].id}
        return EventPage(items=items, last_evaluated_key=last_evaluated_key)

    def list_for_shipment(self, shipment_id: str) -> list[ShipmentEvent]:
        return [self._record_to_event(r) for r in self._partition(shipment_id)]

    def _partition(self, shipment_id: str) -> list[dict[str, Any]]:
        try:
            return list(self._log.load_partition(shipment_id))
        except OSError as e:
            raise EventStoreUnavailableError("Events table not found") from e

    @staticmethod
    def _event_to_record(event: ShipmentEvent) -> dict[str, Any]:
        """
        Persist with the wire field names so the log reads like the API output
        """
        record: dict[str, Any] = {
            "id": event.id,
            "shipmentId": event.shipment_id,
            "timestamp": event.timestamp,
            "status": event.status.value,
            "createdAt": event.created_at,
        }
        if event.location is not None:
            record["location"] = event.location
        if event.details is not None:
            record["details"] = event.details
        return record

    @staticmethod
    def _record_to_event(record: dict[str, Any]) -> ShipmentEvent:
        return ShipmentEvent(
            id=record["id"],
            shipment_id=record["shipmentId"],
            timestamp=record["timestamp"],
            status=ShipmentStatus(record["status"]),
            location=record.get("location"),
            details=record.get("details"),
            created_at=record["createdAt"],
        )
