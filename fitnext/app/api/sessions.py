"""Session catalog endpoints."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from fitnext.app.core.access_policy import Action
from fitnext.app.core.exceptions import DomainError
from fitnext.app.core.time import as_utc
from fitnext.app.db.session import get_db
from fitnext.app.dependencies.auth import AuthContext, get_auth_context, require_action
from fitnext.app.models.session import Session as SessionModel
from fitnext.app.schemas.session import (
    LocationRead,
    SessionCreate,
    SessionDate,
    SessionRead,
    SessionTypeRead,
    SessionUpdate,
    TrainerRead,
)
from fitnext.app.services import catalog

router = APIRouter(prefix="/sessions", tags=["sessions"])


def _serialize_session(session_obj: SessionModel, booking_count: int) -> SessionRead:
    return SessionRead(
        id=session_obj.id,
        starts_at=as_utc(session_obj.starts_at),
        duration_mins=session_obj.duration_mins,
        session_type=SessionTypeRead.model_validate(session_obj.session_type),
        location=LocationRead.model_validate(session_obj.location) if session_obj.location else None,
        trainer=TrainerRead.model_validate(session_obj.trainer) if session_obj.trainer else None,
        max_booking_count=session_obj.max_booking_count,
        notes=session_obj.notes,
        cost=session_obj.cost,
        booking_count=booking_count,
    )


@router.get("", response_model=list[SessionRead])
def list_sessions(
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    return [
        _serialize_session(listing.session, listing.booking_count)
        for listing in catalog.list_sessions(db, date_from, date_to)
    ]


@router.get("/by_date", response_model=list[SessionDate])
def list_sessions_by_date(
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    grouped = catalog.list_sessions_by_date(db, date_from, date_to)
    return [
        SessionDate(
            date=day,
            sessions=[_serialize_session(listing.session, listing.booking_count) for listing in listings],
        )
        for day, listings in grouped.items()
    ]


@router.get("/{session_id}", response_model=SessionRead)
def get_session(session_id: int, db: Session = Depends(get_db), ctx: AuthContext = Depends(get_auth_context)):
    try:
        session_obj = catalog.get_session(db, session_id)
    except DomainError as e:
        raise e.to_http_exception()
    return _serialize_session(session_obj, catalog.booking_count(db, session_id))


@router.post("", response_model=SessionRead, status_code=status.HTTP_201_CREATED)
def create_session(
    payload: SessionCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_action(Action.MANAGE_SESSIONS)),
):
    try:
        session_obj = catalog.create_session(db, **payload.model_dump())
    except DomainError as e:
        raise e.to_http_exception()
    return _serialize_session(session_obj, 0)


@router.patch("/{session_id}", response_model=SessionRead)
def update_session(
    session_id: int,
    payload: SessionUpdate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_action(Action.MANAGE_SESSIONS)),
):
    try:
        session_obj = catalog.update_session(db, session_id, payload.model_dump(exclude_unset=True))
    except DomainError as e:
        raise e.to_http_exception()
    return _serialize_session(session_obj, catalog.booking_count(db, session_id))


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_session(
    session_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_action(Action.MANAGE_SESSIONS)),
):
    try:
        catalog.delete_session(db, session_id)
    except DomainError as e:
        raise e.to_http_exception()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
