from datetime import timedelta
from typing import Optional

from fastapi import Depends, HTTPException, Query, status
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import logging

from ..config.database import get_db
from ..core.crud import MediaField, build_crud_router
from ..core.errors import server_error_detail
from ..core.permissions import MANAGE_CONTENTS
from ..core.security import require_permission
from ..models.event import Event, EventResponse, EventWrite
from ..models.user import User
from ..services import audit_service
from ..services.event_sources import UnknownSourceError, import_external_events
from ..utils.media import IMAGE_POLICY

logger = logging.getLogger(__name__)


def _filter_events(query, params):
    category = params.get("category")
    if category:
        query = query.filter(Event.eventType == category)
    event_status = params.get("status")
    if event_status:
        query = query.filter(Event.status == event_status)
    search = (params.get("search") or "").strip()
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(Event.title.ilike(pattern), Event.description.ilike(pattern), Event.location.ilike(pattern))
        )
    return query


def _prepare_event(db, values, existing):
    if values.get("endDate") is None:
        values["endDate"] = values["startDate"] + timedelta(days=1)
    if values["endDate"] < values["startDate"]:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="endDate must not be before startDate")
    if existing is None:
        # Dashboard submissions wait for approval
        values["status"] = "pending"
        values["source"] = "college"


router = build_crud_router(
    prefix="/api/events",
    tags=["events"],
    model=Event,
    write_schema=EventWrite,
    read_schema=EventResponse,
    permission=MANAGE_CONTENTS,
    label="Event",
    entity_type="event",
    id_alias="eventId",
    order_by=(Event.startDate.asc(), Event.id.asc()),
    media_fields=(MediaField("imageUrl", "events", IMAGE_POLICY, upload_field="image"),),
    prepare=_prepare_event,
    list_filter=_filter_events,
)


@router.post("/import")
async def import_events(
    source: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(MANAGE_CONTENTS)),
):
    """Pull events from the curated external catalogue, skipping ones already stored"""
    try:
        added, skipped = import_external_events(db, source, current_user.id)
        db.commit()
    except UnknownSourceError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Event import failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=server_error_detail("Error importing events", e),
        )

    return {
        "added": added,
        "skipped": skipped,
        "message": f"Imported {added} events, skipped {skipped} duplicates",
    }


@router.post("/{event_id}/approve")
async def approve_event(
    event_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(MANAGE_CONTENTS)),
):
    event = db.get(Event, event_id)
    if event is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")

    try:
        event.status = "approved"
        db.flush()
        body = EventResponse.model_validate(event).model_dump(mode="json")
        audit_service.record(db, current_user.id, "APPROVE", "event", event.id, body)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error approving event {event_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=server_error_detail("Error approving event", e),
        )

    logger.info(f"Event {event_id} approved by user {current_user.id}")
    return {**body, "message": "Event approved"}
