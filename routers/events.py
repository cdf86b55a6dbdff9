import datetime as dt
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import not_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from database import get_db
from models import Event
from schemas import Event as EventSchema, EventPayload, SessionUser, SuccessResponse
from dependencies import get_current_admin_user, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()

def database_error(db: Session, message: str, error: Exception) -> HTTPException:
    """Roll back, log the cause and build the generic 500 sent to the client."""
    db.rollback()
    logger.error(f"Database error ({message}): {error}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=message
    )

def require_event_fields(payload: EventPayload):
    if not payload.has_required_fields():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="date, time, title obligatorios"
        )

@router.get("", response_model=List[EventSchema])
def get_events(
    start: Optional[dt.date] = None,
    end: Optional[dt.date] = None,
    db: Session = Depends(get_db),
    current_user: SessionUser = Depends(get_current_user)
):
    """
    Events with start <= date <= end, ordered by date then time
    - start: YYYY-MM-DD, inclusive
    - end: YYYY-MM-DD, inclusive
    """
    if not start or not end:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start y end son obligatorios"
        )

    try:
        return (
            db.query(Event)
            .filter(Event.date >= start, Event.date <= end)
            .order_by(Event.date.asc(), Event.time.asc())
            .all()
        )
    except SQLAlchemyError as e:
        raise database_error(db, "Error al obtener eventos", e)

@router.post("", response_model=EventSchema)
def create_event(
    payload: EventPayload,
    db: Session = Depends(get_db),
    current_user: SessionUser = Depends(get_current_user)
):
    """Create an event owned by the caller; posted starts false"""
    require_event_fields(payload)

    # posted is left to the column default
    db_event = Event(**payload.to_columns(), created_by=current_user.id)
    try:
        db.add(db_event)
        db.commit()
        db.refresh(db_event)
    except SQLAlchemyError as e:
        raise database_error(db, "Error al crear evento", e)

    logger.info(f"User {current_user.id} created event {db_event.id}")
    return db_event

@router.put("/{event_id}", response_model=EventSchema)
def update_event(
    event_id: int,
    payload: EventPayload,
    db: Session = Depends(get_db),
    current_user: SessionUser = Depends(get_current_user)
):
    """Update an event; any authenticated user may edit any event"""
    require_event_fields(payload)

    try:
        db_event = db.query(Event).filter(Event.id == event_id).first()
        if db_event is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="No existe"
            )

        for field, value in payload.to_columns().items():
            setattr(db_event, field, value)

        db.commit()
        db.refresh(db_event)
    except SQLAlchemyError as e:
        raise database_error(db, "Error al actualizar evento", e)

    return db_event

@router.post("/{event_id}/toggle-posted", response_model=EventSchema)
def toggle_posted(
    event_id: int,
    db: Session = Depends(get_db),
    current_user: SessionUser = Depends(get_current_user)
):
    """Flip the posted flag with a single UPDATE so concurrent toggles cannot lose a write"""
    try:
        updated = (
            db.query(Event)
            .filter(Event.id == event_id)
            .update({Event.posted: not_(Event.posted)}, synchronize_session=False)
        )
        if not updated:
            db.rollback()
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Evento no encontrado"
            )

        db_event = db.query(Event).filter(Event.id == event_id).one()
        db.commit()
        db.refresh(db_event)
    except SQLAlchemyError as e:
        raise database_error(db, "Error al actualizar estado", e)

    return db_event

@router.delete("/{event_id}", response_model=SuccessResponse)
def delete_event(
    event_id: int,
    db: Session = Depends(get_db),
    current_user: SessionUser = Depends(get_current_admin_user)
):
    """Delete an event (admin only); a missing id is not an error"""
    try:
        deleted = db.query(Event).filter(Event.id == event_id).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError as e:
        raise database_error(db, "Error al eliminar evento", e)

    logger.info(f"Admin {current_user.id} deleted event {event_id} ({deleted} row(s))")
    return {"success": True}
