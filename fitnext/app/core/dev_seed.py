import logging
import os

from sqlalchemy.orm import Session

from fitnext.app.core.access_policy import Role, format_roles
from fitnext.app.core.security import get_password_hash
from fitnext.app.models.location import Location
from fitnext.app.models.person import Person
from fitnext.app.models.session_type import SessionType

logger = logging.getLogger(__name__)

DEFAULT_DEV_PASSWORD = "Secret123!"
DEFAULT_DEV_ADMIN = "admin@fitnext.uk"
DEFAULT_SESSION_TYPES = [("Outdoor", False, 1)]
DEFAULT_LOCATIONS = [("Oak Hill Park", "Oak Hill Park, Parkside Gardens, London EN4 8JP")]


def ensure_reference_data(db: Session) -> None:
    """Seed the default session type and location if they are missing."""
    for name, requires_trainer, cost in DEFAULT_SESSION_TYPES:
        if not db.query(SessionType).filter(SessionType.name == name).first():
            db.add(SessionType(name=name, requires_trainer=requires_trainer, cost=cost))
    for name, address in DEFAULT_LOCATIONS:
        if not db.query(Location).filter(Location.name == name).first():
            db.add(Location(name=name, address=address))
    db.commit()


def ensure_default_dev_admin(db: Session) -> None:
    """
    Create a development admin (who is also a trainer and member) if it does not exist.
    Skips execution when running under pytest to avoid altering test expectations.
    """
    if os.getenv("PYTEST_CURRENT_TEST"):
        return

    existing = db.query(Person).filter(Person.email == DEFAULT_DEV_ADMIN).first()
    if existing:
        return

    db.add(
        Person(
            name="FitNext Admin",
            email=DEFAULT_DEV_ADMIN,
            hashed_password=get_password_hash(DEFAULT_DEV_PASSWORD),
            roles=format_roles({Role.ADMIN, Role.TRAINER, Role.MEMBER}),
        )
    )
    db.commit()
    logger.info("Seeded development admin %s", DEFAULT_DEV_ADMIN)
