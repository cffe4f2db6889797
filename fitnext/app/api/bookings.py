"""Booking endpoints: book, cancel, list and mark attendance."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from fitnext.app.core.exceptions import DomainError
from fitnext.app.core.time import as_utc
from fitnext.app.db.session import get_db
from fitnext.app.dependencies.auth import AuthContext, get_auth_context
from fitnext.app.models.booking import Booking
from fitnext.app.schemas.booking import AttendanceUpdate, BookingCreate, BookingDetail, BookingRead
from fitnext.app.services import ledger

router = APIRouter(prefix="/bookings", tags=["bookings"])


def _serialize_booking(booking: Booking) -> BookingDetail:
    session_obj = booking.session
    return BookingDetail(
        person_id=booking.person_id,
        session_id=booking.session_id,
        attended=booking.attended,
        credits_used=booking.credits_used,
        created_at=as_utc(booking.created_at),
        person_name=booking.person.name,
        person_email=booking.person.email,
        session_datetime=as_utc(session_obj.starts_at),
        session_duration_mins=session_obj.duration_mins,
        session_type_name=session_obj.session_type.name,
        session_location_name=session_obj.location.name if session_obj.location else None,
    )


@router.get("", response_model=list[BookingDetail])
def list_bookings(
    session_id: Optional[int] = None,
    person_id: Optional[int] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    try:
        bookings = ledger.list_bookings(
            db, ctx, session_id=session_id, person_id=person_id, date_from=date_from, date_to=date_to
        )
    except DomainError as e:
        raise e.to_http_exception()
    return [_serialize_booking(booking) for booking in bookings]


@router.post("", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
def create_booking(payload: BookingCreate, db: Session = Depends(get_db), ctx: AuthContext = Depends(get_auth_context)):
    person_id = payload.person_id if payload.person_id is not None else ctx.person_id
    try:
        booking = ledger.create_booking(db, ctx, person_id, payload.session_id)
    except DomainError as e:
        raise e.to_http_exception()
    return booking


@router.delete("", response_model=BookingRead)
def cancel_booking(
    session_id: int,
    person_id: Optional[int] = None,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    try:
        booking = ledger.cancel_booking(
            db, ctx, person_id if person_id is not None else ctx.person_id, session_id
        )
    except DomainError as e:
        raise e.to_http_exception()
    return booking


@router.put("/attendance", response_model=BookingRead)
def mark_attendance(
    payload: AttendanceUpdate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    try:
        booking = ledger.mark_attended(db, ctx, payload.session_id, payload.person_id)
    except DomainError as e:
        raise e.to_http_exception()
    return booking
