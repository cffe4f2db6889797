"""Delivery channel for temporary passwords.

The recovery flow hands every freshly issued temp password to a ``Notifier``.
Delivery is best effort: the stored temp password is valid whether or not the
message arrives.
"""

from datetime import datetime
import logging
from typing import Protocol

from fitnext.app.models.person import Person

logger = logging.getLogger(__name__)

PURPOSE_RESET = "password_reset"
PURPOSE_REGISTRATION = "registration"


class Notifier(Protocol):
    def send_temp_password(self, person: Person, temp_password: str, expiry: datetime, purpose: str) -> None:
        ...


class LoggingNotifier:
    """Default notifier: records that a message would be sent, never the secret itself."""

    def send_temp_password(self, person: Person, temp_password: str, expiry: datetime, purpose: str) -> None:
        logger.info(
            "Temporary password (%s) ready for person %s <%s>, expires %s",
            purpose,
            person.id,
            person.email,
            expiry.isoformat(),
        )


_default_notifier: Notifier = LoggingNotifier()


def get_notifier() -> Notifier:
    return _default_notifier
