from __future__ import annotations

from typing import Iterable

from fastapi.responses import JSONResponse

from shiptrack.schemas.models import ApiResponse, Pagination, ShipmentEvent


def success_response(
    data: ShipmentEvent | list[ShipmentEvent],
    message: str | None = None,
    status_code: int = 200,
) -> JSONResponse:
    body = ApiResponse(success=True, data=data, message=message)
    return JSONResponse(status_code=status_code, content=body.to_body())


def paginated_response(
    data: list[ShipmentEvent],
    has_more: bool,
    next_key: str | None = None,
    message: str | None = None,
    status_code: int = 200,
) -> JSONResponse:
    body = ApiResponse(
        success=True,
        data=data,
        pagination=Pagination(has_more=has_more, next_key=next_key),
        message=message,
    )
    return JSONResponse(status_code=status_code, content=body.to_body())


def error_response(error: str, status_code: int = 500) -> JSONResponse:
    body = ApiResponse(success=False, error=error)
    return JSONResponse(status_code=status_code, content=body.to_body())


def validation_error_response(errors: Iterable[str]) -> JSONResponse:
    body = ApiResponse(success=False, error="Validation failed", message=", ".join(errors))
    return JSONResponse(status_code=400, content=body.to_body())
