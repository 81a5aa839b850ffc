from __future__ import annotations

from shiptrack.core.entities.event import ShipmentEvent
from shiptrack.core.repositories.event_repository import EventRepository


class NotFoundError(Exception):
    """Raise to map to HTTP 404."""


class GetLatestEventUseCase:
    def __init__(self, *, event_repo: EventRepository) -> None:
        self._event_repo = event_repo

    def execute(self, *, shipment_id: str) -> ShipmentEvent:
        events = self._event_repo.list_for_shipment(shipment_id)
        if not events:
            raise NotFoundError(f"No events found for shipment {shipment_id}")

        # equal timestamps resolve to the highest id
        return max(events, key=lambda e: (e.occurred_at, e.id))
