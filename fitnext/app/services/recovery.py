"""Temp-password flow: issue, redeem and expire one-time recovery passwords.

Per person the flow moves NoRecovery -> Pending -> (Consumed | Expired). Only
the bcrypt hash of a temp password is stored; the plain value exists just long
enough to hand it to the notifier.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
import logging
import secrets
from typing import Optional

from sqlalchemy.orm import Session

from fitnext.app.core.exceptions import (
    NoSuchRecovery,
    PersonNotFound,
    RecoveryExpired,
    RecoveryMismatch,
    ResendTooSoon,
)
from fitnext.app.core.security import get_password_hash, verify_password
from fitnext.app.core.settings import get_settings
from fitnext.app.core.time import as_utc, utc_now
from fitnext.app.models.person import Person
from fitnext.app.models.temp_password import TempPassword
from fitnext.app.services.credentials import (
    check_new_password,
    create_person,
    find_person_by_email,
    get_person,
)
from fitnext.app.services.notifier import PURPOSE_REGISTRATION, PURPOSE_RESET, Notifier, get_notifier

logger = logging.getLogger(__name__)

# Upper-case letters and digits without look-alikes (0/O, 1/I/L)
TEMP_PASSWORD_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"


@dataclass(frozen=True)
class IssuedTempPassword:
    person_id: int
    temp_password: str
    sent: datetime
    expiry: datetime


def generate_temp_password(length: Optional[int] = None) -> str:
    length = length or get_settings().temp_password_length
    while True:
        candidate = "".join(secrets.choice(TEMP_PASSWORD_ALPHABET) for _ in range(length))
        if any(c.isdigit() for c in candidate) and any(c.isalpha() for c in candidate):
            return candidate


def _upsert_temp_password(db: Session, person_id: int, hashed: str, sent: datetime, expiry: datetime) -> None:
    values = {"person_id": person_id, "pwd": hashed, "sent": sent, "expiry": expiry}
    dialect = db.get_bind().dialect.name
    if dialect in ("sqlite", "postgresql"):
        if dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            from sqlalchemy.dialects.postgresql import insert
        stmt = insert(TempPassword.__table__).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["person_id"],
            set_={"pwd": hashed, "sent": sent, "expiry": expiry},
        )
        db.execute(stmt)
        return

    record = db.query(TempPassword).filter(TempPassword.person_id == person_id).first()
    if record is None:
        db.add(TempPassword(person_id=person_id, hashed_password=hashed, sent=sent, expiry=expiry))
    else:
        record.hashed_password = hashed
        record.sent = sent
        record.expiry = expiry


def purge_expired(db: Session, now: Optional[datetime] = None) -> int:
    now = now or utc_now()
    removed = db.query(TempPassword).filter(TempPassword.expiry < now).delete(synchronize_session=False)
    if removed:
        logger.info("Removed %s expired temporary passwords", removed)
    return removed


def get_pending(db: Session, person_id: int) -> Optional[TempPassword]:
    return db.query(TempPassword).filter(TempPassword.person_id == person_id).first()


def _notify(notifier: Notifier, person: Person, issued: IssuedTempPassword, purpose: str) -> None:
    try:
        notifier.send_temp_password(person, issued.temp_password, issued.expiry, purpose)
    except Exception:
        # The stored temp password stays valid; the person can ask again
        logger.exception("Failed to deliver temporary password to person id %s", person.id)


def issue_recovery(
    db: Session,
    person_id: int,
    *,
    notifier: Optional[Notifier] = None,
    purpose: str = PURPOSE_RESET,
) -> IssuedTempPassword:
    """Create (or replace) the person's temp password and hand it to the notifier."""
    person = get_person(db, person_id)
    settings = get_settings()
    temp_password = generate_temp_password()
    now = utc_now()
    expiry = now + timedelta(minutes=settings.temp_password_ttl_minutes)

    try:
        _upsert_temp_password(db, person.id, get_password_hash(temp_password), now, expiry)
        # Since we are here, clear out other people's stale records
        purge_expired(db, now)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.expire_all()
    logger.info("Created temporary password for person id %s (%s)", person.id, purpose)

    issued = IssuedTempPassword(person_id=person.id, temp_password=temp_password, sent=now, expiry=expiry)
    _notify(notifier or get_notifier(), person, issued, purpose)
    return issued


def request_password_reset(db: Session, email: str, *, notifier: Optional[Notifier] = None) -> IssuedTempPassword:
    person = find_person_by_email(db, email)
    if person is None:
        raise PersonNotFound()

    min_wait = get_settings().temp_password_min_resend_seconds
    pending = get_pending(db, person.id)
    if pending is not None and min_wait > 0:
        if as_utc(pending.sent) > utc_now() - timedelta(seconds=min_wait):
            raise ResendTooSoon(min_wait)

    return issue_recovery(db, person.id, notifier=notifier, purpose=PURPOSE_RESET)


def register_person(
    db: Session,
    *,
    name: str,
    email: str,
    phone: Optional[str] = None,
    notifier: Optional[Notifier] = None,
) -> Person:
    """Self-service signup: the account is enabled by redeeming the emailed temp password."""
    person = create_person(db, name=name, email=email, phone=phone)
    issue_recovery(db, person.id, notifier=notifier, purpose=PURPOSE_REGISTRATION)
    return person


def redeem_recovery(db: Session, email: str, supplied_temp_password: str, new_password: str) -> Person:
    person = find_person_by_email(db, email)
    if person is None:
        raise NoSuchRecovery()
    record = get_pending(db, person.id)
    if record is None:
        raise NoSuchRecovery()

    if utc_now() > as_utc(record.expiry):
        try:
            db.query(TempPassword).filter(TempPassword.id == record.id).delete(synchronize_session=False)
            db.commit()
        except Exception:
            db.rollback()
            raise
        logger.info("Discarded expired temporary password for person id %s", person.id)
        raise RecoveryExpired()

    if not verify_password(supplied_temp_password or "", record.hashed_password):
        raise RecoveryMismatch()

    check_new_password(new_password, supplied_temp_password)
    new_hash = get_password_hash(new_password)

    try:
        # Consume the record first; a concurrent redemption that got here too finds nothing to delete
        consumed = (
            db.query(TempPassword)
            .filter(TempPassword.id == record.id)
            .delete(synchronize_session=False)
        )
        if consumed != 1:
            raise NoSuchRecovery()
        person.hashed_password = new_hash
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(person)
    logger.info("Password reset completed for person id %s", person.id)
    return person
