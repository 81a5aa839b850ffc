from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from shiptrack.infrastructure.database import SessionLocal
from shiptrack.services.shiptrack_service import (
    get_event_history_service,
    get_latest_event_service,
    record_event_service,
)
from shiptrack.core.repositories.event_repository import (
    EventAlreadyExistsError,
    EventStoreUnavailableError,
    InvalidQueryError,
)
from shiptrack.core.use_cases.get_event_history import NotFoundError as HistoryNotFoundError
from shiptrack.core.use_cases.get_latest_event import NotFoundError as LatestNotFoundError
from shiptrack.core.use_cases.record_event import DuplicateEventError, EventTimestampOutOfRangeError
from shiptrack.core.validators.event_validator import MalformedBodyError, ValidationError
from shiptrack.presentation.responses import (
    error_response,
    paginated_response,
    success_response,
    validation_error_response,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/shipments", tags=["shipment-events"])


def get_db() -> Session:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@router.post("/{shipment_id}/events", response_model=None)
async def post_shipment_event(shipment_id: str, request: Request, db: Session = Depends(get_db)) -> JSONResponse:
    """
    Record a status event for a shipment

    Returns:
      - 201 with the stored event
      - 400 on validation error or out-of-range timestamp
      - 409 if the same status and timestamp are already recorded
      - 503 if the events store is unavailable
    """
    raw_body = await request.body()
    try:
        event = await run_in_threadpool(record_event_service, shipment_id, raw_body, db)
    except ValidationError as e:
        return validation_error_response(str(err) for err in e.errors)
    except (MalformedBodyError, EventTimestampOutOfRangeError) as e:
        return error_response(str(e), status_code=400)
    except (DuplicateEventError, EventAlreadyExistsError) as e:
        return error_response(str(e), status_code=409)
    except InvalidQueryError:
        return error_response("Invalid data format", status_code=400)
    except EventStoreUnavailableError:
        return error_response("Events table not found", status_code=503)
    except Exception:
        logger.exception("record_event_failed", shipment_id=shipment_id)
        return error_response("Internal server error occurred while creating event", status_code=500)

    return success_response(event, "Event created successfully", status_code=201)


@router.get("/{shipment_id}/events/latest", response_model=None)
def get_latest_shipment_event(shipment_id: str, db: Session = Depends(get_db)) -> JSONResponse:
    """
    Get the most recent event of a shipment
    """
    try:
        event = get_latest_event_service(shipment_id, db)
    except ValidationError as e:
        return validation_error_response(str(err) for err in e.errors)
    except LatestNotFoundError as e:
        return error_response(str(e), status_code=404)
    except InvalidQueryError:
        return error_response("Invalid shipment ID format", status_code=400)
    except EventStoreUnavailableError:
        return error_response("Events table not found", status_code=503)
    except Exception:
        logger.exception("get_latest_event_failed", shipment_id=shipment_id)
        return error_response("Internal server error occurred while retrieving latest event", status_code=500)

    logger.info("latest_event_retrieved", shipment_id=shipment_id)
    return success_response(event, "Latest event retrieved successfully")


@router.get("/{shipment_id}/events", response_model=None)
def get_shipment_event_history(shipment_id: str, request: Request, db: Session = Depends(get_db)) -> JSONResponse:
    """
    Get a page of a shipment's event history, oldest first

    Query params:
      - limit: 1..100, default 50
      - startKey: opaque token taken from a previous page's pagination.nextKey
    """
    try:
        history = get_event_history_service(shipment_id, request.query_params, db)
    except ValidationError as e:
        return validation_error_response(str(err) for err in e.errors)
    except HistoryNotFoundError as e:
        return error_response(str(e), status_code=404)
    except InvalidQueryError:
        return error_response("Invalid shipment ID or query parameters", status_code=400)
    except EventStoreUnavailableError:
        return error_response("Events table not found", status_code=503)
    except Exception:
        logger.exception("get_event_history_failed", shipment_id=shipment_id)
        return error_response("Internal server error occurred while retrieving event history", status_code=500)

    count = len(history.events)
    logger.info("event_history_retrieved", shipment_id=shipment_id, count=count, has_more=history.has_more)
    return paginated_response(
        history.events,
        history.has_more,
        history.next_key,
        f"Retrieved {count} events for shipment {shipment_id}",
    )
