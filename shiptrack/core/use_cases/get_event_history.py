from __future__ import annotations

from dataclasses import dataclass, field

from shiptrack.core.entities.event import ShipmentEvent
from shiptrack.core.pagination import InvalidCursorError, decode_cursor, encode_cursor
from shiptrack.core.repositories.event_repository import EventRepository, InvalidQueryError


class NotFoundError(Exception):
    """Raise to map to HTTP 404."""


@dataclass(frozen=True, slots=True)
class EventHistoryPage:
    """
    Use-case return type for GET /shipments/{shipment_id}/events
    """
    events: list[ShipmentEvent] = field(default_factory=list)
    has_more: bool = False
    next_key: str | None = None


class GetEventHistoryUseCase:
    """
    Reads one page of a shipment's events.

    Only the returned page is sorted by timestamp; the partition is walked in the
    store's own key order, so ordering across pages is not guaranteed.
    """

    def __init__(self, *, event_repo: EventRepository) -> None:
        self._event_repo = event_repo

    def execute(self, *, shipment_id: str, limit: int, start_key: str | None = None) -> EventHistoryPage:
        exclusive_start_key = None
        if start_key:
            try:
                exclusive_start_key = decode_cursor(start_key)
            except InvalidCursorError as e:
                raise InvalidQueryError(str(e)) from e

        page = self._event_repo.query(shipment_id, limit=limit, exclusive_start_key=exclusive_start_key)

        if not page.items and not start_key:
            raise NotFoundError(f"No events found for shipment {shipment_id}")

        events = sorted(page.items, key=lambda e: (e.occurred_at, e.id))
        next_key = encode_cursor(page.last_evaluated_key) if page.last_evaluated_key else None

        return EventHistoryPage(events=events, has_more=next_key is not None, next_key=next_key)
