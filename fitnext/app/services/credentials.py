"""Credential store: person identity, password hashes and role sets."""

import logging
import re
from typing import Iterable, Optional

from email_validator import EmailNotValidError, validate_email
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fitnext.app.core.access_policy import Role, format_roles, parse_roles
from fitnext.app.core.exceptions import (
    DuplicateEmail,
    InvalidCredentials,
    InvalidEmail,
    InvalidPhone,
    PersonNotFound,
    ValidationError,
    WeakPassword,
)
from fitnext.app.core.security import get_password_hash, verify_password
from fitnext.app.core.settings import get_settings
from fitnext.app.models.person import Person
from fitnext.app.models.temp_password import TempPassword

logger = logging.getLogger(__name__)

PHONE_PATTERN = re.compile(r"^\+?[0-9]+$")

_dummy_hash: Optional[str] = None


def _timing_dummy_hash() -> str:
    # Verified against when the email is unknown so both failure paths cost the same
    global _dummy_hash
    if _dummy_hash is None:
        _dummy_hash = get_password_hash("fitnext-timing-equaliser")
    return _dummy_hash


def normalize_email(email: str) -> str:
    candidate = (email or "").strip().lower()
    try:
        validate_email(candidate, check_deliverability=False)
    except EmailNotValidError as exc:
        raise InvalidEmail(email) from exc
    return candidate


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    if phone is None:
        return None
    compact = re.sub(r"\s+", "", phone)
    if not compact:
        return None
    if not PHONE_PATTERN.match(compact):
        raise InvalidPhone(phone)
    return compact


def check_new_password(new_password: str, current_password: Optional[str] = None) -> None:
    if current_password is not None and new_password == current_password:
        raise WeakPassword("new password cannot be the same as the current password")
    min_length = get_settings().min_password_length
    if len(new_password or "") < min_length:
        raise WeakPassword(f"new password must be at least {min_length} characters in length")


def get_person(db: Session, person_id: int) -> Person:
    person = db.get(Person, person_id)
    if person is None:
        raise PersonNotFound(person_id)
    return person


def find_person_by_email(db: Session, email: str) -> Optional[Person]:
    normalized = (email or "").strip().lower()
    if not normalized:
        return None
    return db.query(Person).filter(Person.email == normalized).first()


def list_persons(db: Session, role: Optional[Role] = None) -> list[Person]:
    persons = db.query(Person).order_by(Person.name.asc(), Person.id.asc()).all()
    if role is not None:
        persons = [p for p in persons if role in p.role_set]
    return persons


def create_person(
    db: Session,
    *,
    name: str,
    email: str,
    phone: Optional[str] = None,
    initial_password: Optional[str] = None,
    roles: Optional[Iterable[Role]] = None,
) -> Person:
    """
    Create a person. Without ``initial_password`` the person has no usable
    password until a temp password is redeemed.
    """
    clean_name = (name or "").strip()
    if not clean_name:
        raise ValidationError("name must not be empty", code="INVALID_NAME")
    normalized_email = normalize_email(email)
    normalized_phone = normalize_phone(phone)
    if initial_password is not None:
        check_new_password(initial_password)

    if find_person_by_email(db, normalized_email) is not None:
        raise DuplicateEmail()

    role_set = parse_roles(roles) if roles is not None else frozenset({Role.MEMBER})
    person = Person(
        name=clean_name,
        email=normalized_email,
        phone=normalized_phone,
        hashed_password=get_password_hash(initial_password) if initial_password is not None else None,
        roles=format_roles(role_set),
    )
    db.add(person)
    try:
        db.commit()
    except IntegrityError as exc:
        # Lost a race against a concurrent signup with the same email
        db.rollback()
        raise DuplicateEmail() from exc
    except Exception:
        db.rollback()
        raise
    db.refresh(person)
    logger.info("Created person id %s with roles %s", person.id, person.roles)
    return person


def set_password(db: Session, person_id: int, new_password: str) -> Person:
    """Set the permanent password and drop any pending temp password."""
    person = get_person(db, person_id)
    try:
        person.hashed_password = get_password_hash(new_password)
        db.query(TempPassword).filter(TempPassword.person_id == person.id).delete(synchronize_session=False)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(person)
    logger.info("Updated password for person id %s", person.id)
    return person


def verify_credentials(db: Session, email: str, candidate: str) -> Person:
    """Return the person whose email/password match, else ``InvalidCredentials``."""
    person = find_person_by_email(db, email)
    if person is None:
        verify_password(candidate or "", _timing_dummy_hash())
        raise InvalidCredentials()
    if not person.hashed_password:
        logger.info("Login attempt for person id %s who has not set a password", person.id)
        raise InvalidCredentials()
    if not verify_password(candidate or "", person.hashed_password):
        raise InvalidCredentials()
    return person


def change_password(db: Session, *, email: str, current_password: str, new_password: str) -> Person:
    person = verify_credentials(db, email, current_password)
    check_new_password(new_password, current_password)
    return set_password(db, person.id, new_password)


def set_roles(db: Session, person_id: int, roles: Iterable[Role]) -> Person:
    person = get_person(db, person_id)
    role_set = parse_roles(roles)
    if not role_set:
        raise ValidationError("a person must hold at least one role", code="INVALID_ROLES")
    try:
        person.roles = format_roles(role_set)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(person)
    logger.info("Person id %s now has roles %s", person.id, person.roles)
    return person
