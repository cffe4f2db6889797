"""Session catalog: session types, locations and scheduled sessions."""

from collections import OrderedDict
from dataclasses import dataclass
from datetime import date, datetime
import logging
from typing import Any, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from fitnext.app.core.access_policy import STAFF_ROLES
from fitnext.app.core.exceptions import (
    DuplicateName,
    NegativeValue,
    SessionNotFound,
    TrainerRequired,
    UnknownReference,
    ValidationError,
)
from fitnext.app.core.time import as_utc
from fitnext.app.models.booking import Booking
from fitnext.app.models.location import Location
from fitnext.app.models.person import Person
from fitnext.app.models.session import Session as SessionModel
from fitnext.app.models.session_type import SessionType

logger = logging.getLogger(__name__)

# Columns a session update may touch
UPDATABLE_FIELDS = (
    "starts_at",
    "duration_mins",
    "session_type_id",
    "location_id",
    "trainer_id",
    "max_booking_count",
    "notes",
    "cost",
)
# Columns that must always hold a value
REQUIRED_FIELDS = ("starts_at", "duration_mins", "session_type_id")


@dataclass
class SessionListing:
    session: SessionModel
    booking_count: int


def _require_non_negative(field: str, value: Optional[int]) -> None:
    if value is not None and value < 0:
        raise NegativeValue(field, value)


def _require_aware(value: Optional[datetime]) -> datetime:
    if value is None:
        raise ValidationError("session datetime is required", code="INVALID_DATETIME")
    if value.tzinfo is None:
        raise ValidationError("session datetime must include a timezone", code="NAIVE_DATETIME")
    return as_utc(value)


# Reference data


def create_session_type(db: Session, *, name: str, requires_trainer: bool = False, cost: int = 0) -> SessionType:
    _require_non_negative("cost", cost)
    clean_name = (name or "").strip()
    if not clean_name:
        raise ValidationError("name must not be empty", code="INVALID_NAME")
    if db.query(SessionType).filter(SessionType.name == clean_name).first():
        raise DuplicateName("session type", clean_name)
    session_type = SessionType(name=clean_name, requires_trainer=requires_trainer, cost=cost)
    db.add(session_type)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateName("session type", clean_name) from exc
    except Exception:
        db.rollback()
        raise
    db.refresh(session_type)
    return session_type


def list_session_types(db: Session) -> list[SessionType]:
    return db.query(SessionType).order_by(SessionType.name.asc()).all()


def create_location(db: Session, *, name: str, address: Optional[str] = None) -> Location:
    clean_name = (name or "").strip()
    if not clean_name:
        raise ValidationError("name must not be empty", code="INVALID_NAME")
    if db.query(Location).filter(Location.name == clean_name).first():
        raise DuplicateName("location", clean_name)
    location = Location(name=clean_name, address=address)
    db.add(location)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateName("location", clean_name) from exc
    except Exception:
        db.rollback()
        raise
    db.refresh(location)
    return location


def list_locations(db: Session) -> list[Location]:
    return db.query(Location).order_by(Location.name.asc()).all()


# Sessions


def get_session(db: Session, session_id: int) -> SessionModel:
    session_obj = db.get(SessionModel, session_id)
    if session_obj is None:
        raise SessionNotFound(session_id)
    return session_obj


def _resolve_session_type(db: Session, session_type_id: int) -> SessionType:
    session_type = db.get(SessionType, session_type_id)
    if session_type is None:
        raise UnknownReference("session_type", session_type_id)
    return session_type


def _check_location(db: Session, location_id: Optional[int]) -> None:
    if location_id is not None and db.get(Location, location_id) is None:
        raise UnknownReference("location", location_id)


def _check_trainer(db: Session, trainer_id: Optional[int]) -> None:
    if trainer_id is None:
        return
    trainer = db.get(Person, trainer_id)
    if trainer is None or not (trainer.role_set & STAFF_ROLES):
        raise UnknownReference("trainer", trainer_id)


def _validate(db: Session, values: dict[str, Any]) -> SessionType:
    if values["duration_mins"] is None or values["duration_mins"] <= 0:
        raise ValidationError("duration_mins must be positive", code="INVALID_DURATION")
    _require_non_negative("cost", values.get("cost"))
    _require_non_negative("max_booking_count", values.get("max_booking_count"))
    session_type = _resolve_session_type(db, values["session_type_id"])
    _check_location(db, values.get("location_id"))
    _check_trainer(db, values.get("trainer_id"))
    if session_type.requires_trainer and values.get("trainer_id") is None:
        raise TrainerRequired(session_type.name)
    return session_type


def create_session(
    db: Session,
    *,
    starts_at: datetime,
    duration_mins: int,
    session_type_id: int,
    location_id: Optional[int] = None,
    trainer_id: Optional[int] = None,
    max_booking_count: Optional[int] = None,
    notes: Optional[str] = None,
    cost: Optional[int] = None,
) -> SessionModel:
    values = {
        "starts_at": _require_aware(starts_at),
        "duration_mins": duration_mins,
        "session_type_id": session_type_id,
        "location_id": location_id,
        "trainer_id": trainer_id,
        "max_booking_count": max_booking_count,
        "notes": notes,
        "cost": cost,
    }
    session_type = _validate(db, values)
    if values["cost"] is None:
        values["cost"] = session_type.cost

    session_obj = SessionModel(**values)
    db.add(session_obj)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ValidationError("session violates a catalog constraint", code="INVALID_SESSION") from exc
    except Exception:
        db.rollback()
        raise
    db.refresh(session_obj)
    logger.info("Created session id %s (%s at %s)", session_obj.id, session_type.name, session_obj.starts_at)
    return session_obj


def update_session(db: Session, session_id: int, changes: dict[str, Any]) -> SessionModel:
    """Apply edits; existing bookings keep the credits they were charged."""
    session_obj = get_session(db, session_id)
    unknown = set(changes) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError(f"cannot update fields: {', '.join(sorted(unknown))}", code="INVALID_FIELDS")
    cleared = sorted(name for name in REQUIRED_FIELDS if name in changes and changes[name] is None)
    if cleared:
        raise ValidationError(f"fields cannot be null: {', '.join(cleared)}", code="NULL_FIELD")

    values = {name: getattr(session_obj, name) for name in UPDATABLE_FIELDS}
    values.update(changes)
    if "starts_at" in changes:
        values["starts_at"] = _require_aware(changes["starts_at"])
    if values["cost"] is None:
        values["cost"] = _resolve_session_type(db, values["session_type_id"]).cost
    _validate(db, values)

    for name in changes:
        setattr(session_obj, name, values[name])
    session_obj.cost = values["cost"]
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ValidationError("session violates a catalog constraint", code="INVALID_SESSION") from exc
    except Exception:
        db.rollback()
        raise
    db.refresh(session_obj)
    logger.info("Updated session id %s: %s", session_obj.id, ", ".join(sorted(changes)))
    return session_obj


def delete_session(db: Session, session_id: int) -> None:
    session_obj = get_session(db, session_id)
    booking_count = db.query(func.count(Booking.person_id)).filter(Booking.session_id == session_id).scalar()
    try:
        db.delete(session_obj)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Deleted session id %s and %s booking(s)", session_id, booking_count)


def booking_count(db: Session, session_id: int) -> int:
    return db.query(func.count(Booking.person_id)).filter(Booking.session_id == session_id).scalar() or 0


def list_sessions(
    db: Session,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
) -> list[SessionListing]:
    counts = (
        db.query(Booking.session_id, func.count(Booking.person_id).label("booking_count"))
        .group_by(Booking.session_id)
        .subquery()
    )
    query = (
        db.query(SessionModel, func.coalesce(counts.c.booking_count, 0))
        .outerjoin(counts, counts.c.session_id == SessionModel.id)
        .options(
            joinedload(SessionModel.session_type),
            joinedload(SessionModel.location),
            joinedload(SessionModel.trainer),
        )
    )
    if date_from is not None:
        query = query.filter(SessionModel.starts_at >= as_utc(date_from))
    if date_to is not None:
        query = query.filter(SessionModel.starts_at <= as_utc(date_to))
    rows = query.order_by(SessionModel.starts_at.asc(), SessionModel.id.asc()).all()
    return [SessionListing(session=session_obj, booking_count=int(count)) for session_obj, count in rows]


def list_sessions_by_date(
    db: Session,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
) -> "OrderedDict[date, list[SessionListing]]":
    grouped: "OrderedDict[date, list[SessionListing]]" = OrderedDict()
    for listing in list_sessions(db, date_from, date_to):
        day = as_utc(listing.session.starts_at).date()
        grouped.setdefault(day, []).append(listing)
    return grouped
