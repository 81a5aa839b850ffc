from __future__ import annotations

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ShipmentEvent(_CamelModel):
    id: str
    shipment_id: str
    timestamp: str
    status: str
    location: Optional[str] = None
    details: Optional[str] = None
    created_at: str


class Pagination(_CamelModel):
    has_more: bool
    next_key: Optional[str] = None


class ApiResponse(_CamelModel):
    """
    Envelope shared by every endpoint. Fields that do not apply are left out of the
    JSON body rather than sent as null.
    """
    success: bool
    data: Union[ShipmentEvent, list[ShipmentEvent], None] = None
    error: Optional[str] = None
    message: Optional[str] = None
    pagination: Optional[Pagination] = None

    def to_body(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class EventHistory(BaseModel):
    events: list[ShipmentEvent]
    has_more: bool
    next_key: Optional[str] = None
