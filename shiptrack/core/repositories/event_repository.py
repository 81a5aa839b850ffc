from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Mapping

from shiptrack.core.entities.event import ShipmentEvent
from shiptrack.core.entities.shipment import ShipmentStatus


class EventStoreError(Exception):
    """Base class for failures reported by the backing store."""


class EventStoreUnavailableError(EventStoreError):
    """Raise to map to HTTP 503 (store unreachable or events table missing)."""


class InvalidQueryError(EventStoreError):
    """Raise to map to HTTP 400 (store rejected the query parameters)."""


class EventAlreadyExistsError(EventStoreError):
    """Raise to map to HTTP 409 (an event with the same key is already stored)."""


@dataclass(frozen=True, slots=True)
class EventPage:
    """
    One page of a partition read.

    `last_evaluated_key` is set only when more events remain after `items`.
    """
    items: list[ShipmentEvent] = field(default_factory=list)
    last_evaluated_key: dict[str, str] | None = None


class EventRepository(ABC):
    """
    Append-only event store partitioned by shipment_id and keyed by (shipment_id, id).
    """

    @abstractmethod
    def exists(self, shipment_id: str, status: ShipmentStatus, timestamp: str) -> bool:
        """Return True if the shipment already has an event with this exact status and timestamp."""
        raise NotImplementedError

    @abstractmethod
    def add(self, event: ShipmentEvent) -> None:
        """Persist a new event. Raises EventAlreadyExistsError if (shipment_id, id) is taken."""
        raise NotImplementedError

    @abstractmethod
    def query(
        self,
        shipment_id: str,
        *,
        limit: int,
        exclusive_start_key: Mapping[str, str] | None = None,
    ) -> EventPage:
        """
        Read up to `limit` events of a shipment in the store's native order (ascending id),
        starting after `exclusive_start_key` when given.
        """
        raise NotImplementedError

    @abstractmethod
    def list_for_shipment(self, shipment_id: str) -> list[ShipmentEvent]:
        """Return every event of a shipment, in no particular order."""
        raise NotImplementedError
