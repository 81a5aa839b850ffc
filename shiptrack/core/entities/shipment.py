from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Mapping


class ShipmentStatus(str, Enum):
    CREATED = "created"
    PICKED_UP = "picked_up"
    IN_TRANSIT = "in_transit"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    ATTEMPTED_DELIVERY = "attempted_delivery"
    EXCEPTION = "exception"
    RETURNED = "returned"
    CANCELLED = "cancelled"
    ON_HOLD = "on_hold"


VALID_SHIPMENT_STATUSES: tuple[str, ...] = tuple(s.value for s in ShipmentStatus)

STATUS_DESCRIPTIONS: Mapping[ShipmentStatus, str] = MappingProxyType(
    {
        ShipmentStatus.CREATED: "Shipment has been created and registered in the system",
        ShipmentStatus.PICKED_UP: "Package has been picked up from sender",
        ShipmentStatus.IN_TRANSIT: "Package is in transit between facilities",
        ShipmentStatus.OUT_FOR_DELIVERY: "Package is out for delivery to recipient",
        ShipmentStatus.DELIVERED: "Package has been successfully delivered",
        ShipmentStatus.ATTEMPTED_DELIVERY: "Delivery was attempted but unsuccessful",
        ShipmentStatus.EXCEPTION: "An exception occurred during processing",
        ShipmentStatus.RETURNED: "Package is being returned to sender",
        ShipmentStatus.CANCELLED: "Shipment has been cancelled",
        ShipmentStatus.ON_HOLD: "Shipment is temporarily on hold",
    }
)

SHIPMENT_ID_MIN_LENGTH = 1
SHIPMENT_ID_MAX_LENGTH = 50
LOCATION_MAX_LENGTH = 200
DETAILS_MAX_LENGTH = 500
QUERY_LIMIT_MIN = 1
QUERY_LIMIT_MAX = 100
QUERY_LIMIT_DEFAULT = 50
