"""Booking ledger: capacity, credits, attendance and cancellation.

Booking a capped session is the one contended write in the system. It runs
under a per-session process lock, takes a row lock on the session
(``SELECT ... FOR UPDATE``) and inserts with a single conditional
``INSERT ... SELECT ... WHERE count < max`` so a booking row can only appear
while a slot is free. Either the whole unit commits or it is rolled back.
"""

from datetime import datetime, timedelta
import logging
import time
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, SmallInteger, func, insert, literal, select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, joinedload

from fitnext.app.core.access_policy import Action, action_for_booking, authorize
from fitnext.app.core.booking_lock import session_lock
from fitnext.app.core.exceptions import (
    AlreadyBooked,
    AlreadyMarked,
    BookingNotFound,
    ConflictError,
    DomainError,
    NotYetOccurred,
    PersonNotFound,
    SessionFull,
    SessionInPast,
    SessionNotFound,
    StorageBusy,
    TooLateToCancel,
)
from fitnext.app.core.security import Authenticated
from fitnext.app.core.settings import get_settings
from fitnext.app.core.time import as_utc, utc_now
from fitnext.app.models.booking import Booking
from fitnext.app.models.person import Person
from fitnext.app.models.session import Session as SessionModel


logger = logging.getLogger(__name__)

booking_table = Booking.__table__


class _RetryBooking(Exception):
    """Internal signal: this attempt proved nothing, try again after the backoff."""


def _count_bookings(db: Session, session_id: int) -> int:
    return db.query(func.count(Booking.person_id)).filter(Booking.session_id == session_id).scalar() or 0


def _find_booking(db: Session, person_id: int, session_id: int) -> Optional[Booking]:
    return (
        db.query(Booking)
        .filter(Booking.person_id == person_id, Booking.session_id == session_id)
        .populate_existing()
        .first()
    )


def _lock_session(db: Session, session_id: int) -> SessionModel:
    session_obj = (
        db.query(SessionModel)
        .filter(SessionModel.id == session_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if session_obj is None:
        raise SessionNotFound(session_id)
    return session_obj


def _insert_within_capacity(
    db: Session, person_id: int, session_id: int, credits_used: int, max_count: int, now: datetime
) -> int:
    """Insert the booking only if the session still has a free slot; returns rows inserted."""
    current = (
        select(func.count())
        .select_from(booking_table)
        .where(booking_table.c.session_id == session_id)
        .scalar_subquery()
    )
    source = select(
        literal(person_id, Integer),
        literal(session_id, Integer),
        literal(False, Boolean),
        literal(credits_used, SmallInteger),
        literal(now, DateTime(timezone=True)),
    ).where(current < max_count)
    stmt = insert(booking_table).from_select(
        ["person_id", "session_id", "attended", "credits_used", "created_at"],
        source,
    )
    return db.execute(stmt).rowcount


def _attempt_booking(db: Session, person_id: int, session_id: int) -> Booking:
    settings = get_settings()
    with session_lock(session_id, timeout_s=settings.db_lock_timeout_seconds) as acquired:
        if not acquired:
            raise _RetryBooking()
        try:
            session_obj = _lock_session(db, session_id)
            if db.get(Person, person_id) is None:
                raise PersonNotFound(person_id)

            now = utc_now()
            if as_utc(session_obj.starts_at) < now:
                raise SessionInPast(session_id)
            if _find_booking(db, person_id, session_id) is not None:
                raise AlreadyBooked(person_id, session_id)

            credits_used = session_obj.cost
            max_count = session_obj.max_booking_count
            if max_count is None:
                db.add(
                    Booking(
                        person_id=person_id,
                        session_id=session_id,
                        attended=False,
                        credits_used=credits_used,
                        created_at=now,
                    )
                )
                db.flush()
            elif _insert_within_capacity(db, person_id, session_id, credits_used, max_count, now) == 0:
                # Nothing inserted: confirm the session really is full before saying so
                if _count_bookings(db, session_id) >= max_count:
                    raise SessionFull(max_count)
                raise _RetryBooking()
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            if _find_booking(db, person_id, session_id) is not None:
                raise AlreadyBooked(person_id, session_id) from exc
            if db.get(SessionModel, session_id) is None:
                raise SessionNotFound(session_id) from exc
            raise ConflictError("booking could not be recorded", code="BOOKING_CONFLICT") from exc
        except Exception:
            db.rollback()
            raise

    booking = _find_booking(db, person_id, session_id)
    logger.info(
        "Created booking person_id=%s session_id=%s credits_used=%s",
        person_id,
        session_id,
        booking.credits_used,
    )
    return booking


def create_booking(db: Session, actor: Authenticated, person_id: int, session_id: int) -> Booking:
    """Reserve a spot in ``session_id`` for ``person_id``, charging the session's current cost."""
    authorize(actor.roles, action_for_booking(actor.person_id, person_id, Action.BOOK_OWN, Action.BOOK_FOR_OTHERS))

    settings = get_settings()
    attempts = max(1, settings.booking_max_attempts)
    for attempt in range(1, attempts + 1):
        try:
            return _attempt_booking(db, person_id, session_id)
        except _RetryBooking:
            logger.info("Booking attempt %s/%s for session %s found no free slot yet", attempt, attempts, session_id)
        except OperationalError as exc:
            logger.warning(
                "Booking attempt %s/%s for session %s hit a storage error: %s",
                attempt,
                attempts,
                session_id,
                exc.orig if exc.orig is not None else exc,
            )
        if attempt < attempts:
            time.sleep(settings.booking_retry_backoff_seconds)
    raise StorageBusy()


def cancel_booking(
    db: Session,
    actor: Authenticated,
    person_id: int,
    session_id: int,
    *,
    cutoff_minutes: Optional[int] = None,
) -> Booking:
    """Delete a booking, freeing its slot, unless the session is about to start."""
    authorize(
        actor.roles,
        action_for_booking(actor.person_id, person_id, Action.CANCEL_OWN, Action.CANCEL_FOR_OTHERS),
    )
    settings = get_settings()
    cutoff = settings.cancellation_cutoff_minutes if cutoff_minutes is None else cutoff_minutes

    with session_lock(session_id, timeout_s=settings.db_lock_timeout_seconds) as acquired:
        if not acquired:
            raise StorageBusy()
        try:
            booking = _find_booking(db, person_id, session_id)
            if booking is None:
                raise BookingNotFound(person_id, session_id)
            starts_at = as_utc(booking.session.starts_at)
            if utc_now() > starts_at - timedelta(minutes=cutoff):
                raise TooLateToCancel(cutoff)
            db.delete(booking)
            db.commit()
        except DomainError:
            db.rollback()
            raise
        except OperationalError as exc:
            db.rollback()
            raise StorageBusy() from exc
        except Exception:
            db.rollback()
            raise

    logger.info("Cancelled booking person_id=%s session_id=%s", person_id, session_id)
    return booking


def mark_attended(db: Session, actor: Authenticated, session_id: int, person_id: int) -> Booking:
    """Record attendance once the session has started. A second call raises ``AlreadyMarked``."""
    authorize(actor.roles, Action.MARK_ATTENDANCE)
    session_obj = db.get(SessionModel, session_id)
    if session_obj is None:
        raise SessionNotFound(session_id)
    if utc_now() < as_utc(session_obj.starts_at):
        raise NotYetOccurred(session_id)

    try:
        # Only the call that flips false -> true counts; a racing second mark updates nothing
        marked = (
            db.query(Booking)
            .filter(
                Booking.person_id == person_id,
                Booking.session_id == session_id,
                Booking.attended.is_(False),
            )
            .update({Booking.attended: True}, synchronize_session=False)
        )
        if marked != 1:
            if _find_booking(db, person_id, session_id) is None:
                raise BookingNotFound(person_id, session_id)
            raise AlreadyMarked(person_id, session_id)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Marked attendance person_id=%s session_id=%s", person_id, session_id)
    return _find_booking(db, person_id, session_id)


def list_bookings(
    db: Session,
    actor: Authenticated,
    *,
    session_id: Optional[int] = None,
    person_id: Optional[int] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
) -> list[Booking]:
    if person_id is not None and person_id == actor.person_id:
        authorize(actor.roles, Action.VIEW_OWN_BOOKINGS)
    else:
        authorize(actor.roles, Action.VIEW_ALL_BOOKINGS)

    query = (
        db.query(Booking)
        .join(Booking.session)
        .join(Booking.person)
        .options(
            joinedload(Booking.person),
            joinedload(Booking.session).joinedload(SessionModel.session_type),
            joinedload(Booking.session).joinedload(SessionModel.location),
        )
    )
    if person_id is not None:
        query = query.filter(Booking.person_id == person_id)
    if session_id is not None:
        query = query.filter(Booking.session_id == session_id)
    if date_from is not None:
        query = query.filter(SessionModel.starts_at >= as_utc(date_from))
    if date_to is not None:
        query = query.filter(SessionModel.starts_at <= as_utc(date_to))
    return query.order_by(SessionModel.starts_at.asc(), Person.name.asc()).all()
