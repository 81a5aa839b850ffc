from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from shiptrack.core.entities.shipment import ShipmentStatus


@dataclass(frozen=True, slots=True)
class ShipmentEvent:
    """
    One immutable status record for a shipment.

    `timestamp` is when the event happened (caller-supplied, kept verbatim);
    `created_at` is when the store recorded it.
    """
    id: str
    shipment_id: str
    timestamp: str
    status: ShipmentStatus
    created_at: str
    location: str | None = None
    details: str | None = None

    @property
    def occurred_at(self) -> datetime:
        return parse_timestamp(self.timestamp)


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO-8601 string into an aware UTC datetime.

    Naive values are taken as UTC. Raises ValueError if unparseable.
    """
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Render as `YYYY-MM-DDTHH:mm:ss.sssZ`."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
