"""Admin reporting: attendance statistics and a full-table backup export."""

from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import and_, case, func
from sqlalchemy.orm import Session, joinedload

from fitnext.app.core.time import as_utc
from fitnext.app.models.booking import Booking
from fitnext.app.models.location import Location
from fitnext.app.models.person import Person
from fitnext.app.models.session import Session as SessionModel
from fitnext.app.models.session_type import SessionType


def attendance_stats(
    db: Session,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    session_type_ids: Optional[Iterable[int]] = None,
) -> list[dict]:
    """
    Attended-session count and credits used per person, busiest first.

    Every person appears, with zero counts when nothing matched. An empty or
    missing ``session_type_ids`` means all session types.
    """
    conditions = [Booking.session_id == SessionModel.id]
    if date_from is not None:
        conditions.append(SessionModel.starts_at >= as_utc(date_from))
    if date_to is not None:
        conditions.append(SessionModel.starts_at <= as_utc(date_to))
    type_ids = list(session_type_ids or [])
    if type_ids:
        conditions.append(SessionModel.session_type_id.in_(type_ids))

    per_person = (
        db.query(
            Booking.person_id.label("person_id"),
            func.sum(case((Booking.attended.is_(True), 1), else_=0)).label("attended_count"),
            func.sum(Booking.credits_used).label("credits_used"),
        )
        .join(SessionModel, and_(*conditions))
        .group_by(Booking.person_id)
        .subquery()
    )
    attended = func.coalesce(per_person.c.attended_count, 0)
    rows = (
        db.query(
            Person.id,
            Person.name,
            Person.email,
            attended.label("attended_count"),
            func.coalesce(per_person.c.credits_used, 0).label("credits_used"),
        )
        .outerjoin(per_person, per_person.c.person_id == Person.id)
        .order_by(attended.desc(), Person.name.asc())
        .all()
    )
    return [
        {
            "person_id": row.id,
            "name": row.name,
            "email": row.email,
            "attended_count": int(row.attended_count),
            "credits_used": int(row.credits_used),
        }
        for row in rows
    ]


def export_backup(db: Session) -> dict:
    """Dump every table in a restorable, reference-by-name shape. Password hashes are left out."""
    persons = db.query(Person).order_by(Person.id.asc()).all()
    sessions = (
        db.query(SessionModel)
        .options(
            joinedload(SessionModel.session_type),
            joinedload(SessionModel.location),
            joinedload(SessionModel.trainer),
        )
        .order_by(SessionModel.starts_at.asc())
        .all()
    )
    bookings = (
        db.query(Booking)
        .options(joinedload(Booking.person), joinedload(Booking.session).joinedload(SessionModel.location))
        .order_by(Booking.session_id.asc(), Booking.person_id.asc())
        .all()
    )
    return {
        "session_type": [
            {"id": t.id, "name": t.name, "requires_trainer": t.requires_trainer, "cost": t.cost}
            for t in db.query(SessionType).order_by(SessionType.id.asc()).all()
        ],
        "location": [
            {"id": loc.id, "name": loc.name, "address": loc.address}
            for loc in db.query(Location).order_by(Location.id.asc()).all()
        ],
        "person": [
            {"id": p.id, "name": p.name, "email": p.email, "phone": p.phone, "roles": p.roles}
            for p in persons
        ],
        "session": [
            {
                "id": s.id,
                "datetime": as_utc(s.starts_at).isoformat(),
                "duration_mins": s.duration_mins,
                "session_type_name": s.session_type.name,
                "location_name": s.location.name if s.location else None,
                "trainer_email": s.trainer.email if s.trainer else None,
                "max_booking_count": s.max_booking_count,
                "notes": s.notes,
                "cost": s.cost,
            }
            for s in sessions
        ],
        "booking": [
            {
                "person_email": b.person.email,
                "session_datetime": as_utc(b.session.starts_at).isoformat(),
                "session_location_name": b.session.location.name if b.session.location else None,
                "attended": b.attended,
                "credits_used": b.credits_used,
            }
            for b in bookings
        ],
    }
