"""
Domain-specific exceptions for the FitNext booking backend.

Services raise these instead of leaking storage errors; the API layer turns
them into HTTP responses with a stable ``code`` and a readable ``message``.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)
INVALID_LOGIN_MESSAGE = "incorrect username or password"


class DomainError(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code: str = "DOMAIN_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationError(DomainError):
    """Raised when input is malformed (email, phone, negative cost, weak password)."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "VALIDATION_ERROR"


class AuthenticationError(DomainError):
    """Raised when supplied credentials do not check out."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_code = "UNAUTHENTICATED"


class AuthorizationError(DomainError):
    """Raised when the actor's roles do not allow an action."""

    status_code = status.HTTP_403_FORBIDDEN
    default_code = "FORBIDDEN"


class NotFoundError(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    default_code = "NOT_FOUND"


class ConflictError(DomainError):
    """Raised when a write collides with existing state."""

    status_code = status.HTTP_409_CONFLICT
    default_code = "CONFLICT"


class ExpiredError(DomainError):
    status_code = status.HTTP_410_GONE
    default_code = "EXPIRED"


class PolicyError(DomainError):
    """Raised when a business rule forbids the operation at this time."""

    status_code = HTTP_422_UNPROCESSABLE
    default_code = "POLICY_VIOLATION"


class StorageBusy(DomainError):
    """Raised when bounded retries against a contended row are exhausted."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_code = "STORAGE_BUSY"

    def __init__(self, message: str = "The service is busy, please retry shortly", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


# Credential store


class InvalidEmail(ValidationError):
    def __init__(self, email: str):
        super().__init__(f"Invalid email address: {email}", code="INVALID_EMAIL")


class InvalidPhone(ValidationError):
    def __init__(self, phone: str):
        super().__init__(
            f"Invalid phone number: {phone}. Use digits with an optional leading +",
            code="INVALID_PHONE",
        )


class NegativeValue(ValidationError):
    def __init__(self, field: str, value: int):
        super().__init__(
            f"{field} must not be negative",
            code="NEGATIVE_VALUE",
            details={"field": field, "value": value},
        )


class WeakPassword(ValidationError):
    def __init__(self, reason: str):
        super().__init__(reason, code="WEAK_PASSWORD")


class DuplicateEmail(ConflictError):
    def __init__(self):
        super().__init__("User already exists with this email address", code="DUPLICATE_EMAIL")


class DuplicateName(ConflictError):
    def __init__(self, kind: str, name: str):
        super().__init__(
            f"A {kind} named {name!r} already exists",
            code="DUPLICATE_NAME",
            details={"kind": kind, "name": name},
        )


class InvalidCredentials(AuthenticationError):
    """Deliberately uninformative: never reveals whether the email exists."""

    def __init__(self):
        super().__init__(INVALID_LOGIN_MESSAGE, code="INVALID_CREDENTIALS")


class PersonNotFound(NotFoundError):
    def __init__(self, person_id=None):
        super().__init__(
            "Person not found",
            code="PERSON_NOT_FOUND",
            details={"person_id": person_id} if person_id is not None else {},
        )


# Temp-password flow


class NoSuchRecovery(NotFoundError):
    def __init__(self):
        super().__init__(
            "Password reset has not been requested, or it has expired.",
            code="NO_SUCH_RECOVERY",
        )


class RecoveryExpired(ExpiredError):
    def __init__(self):
        super().__init__("Temporary password has expired, please request a new one.", code="EXPIRED")


class RecoveryMismatch(AuthenticationError):
    def __init__(self):
        super().__init__(INVALID_LOGIN_MESSAGE, code="MISMATCH")


class ResendTooSoon(PolicyError):
    def __init__(self, wait_seconds: int):
        super().__init__(
            f"Cannot send another reset email within {max(1, wait_seconds // 60)} minutes.",
            code="RESEND_TOO_SOON",
            details={"min_resend_seconds": wait_seconds},
        )


# Session catalog


class SessionNotFound(NotFoundError):
    def __init__(self, session_id):
        super().__init__(
            f"no session with id {session_id}",
            code="SESSION_NOT_FOUND",
            details={"session_id": session_id},
        )


class UnknownReference(NotFoundError):
    def __init__(self, field: str, value):
        super().__init__(
            f"Unknown {field}: {value}",
            code="UNKNOWN_REFERENCE",
            details={"field": field, "value": value},
        )


class TrainerRequired(PolicyError):
    def __init__(self, session_type_name: str):
        super().__init__(
            f"Sessions of type {session_type_name!r} require a trainer",
            code="TRAINER_REQUIRED",
        )


# Booking ledger


class BookingNotFound(NotFoundError):
    def __init__(self, person_id, session_id):
        super().__init__(
            f"no booking found with person_id={person_id} and session_id={session_id}",
            code="BOOKING_NOT_FOUND",
            details={"person_id": person_id, "session_id": session_id},
        )


class AlreadyBooked(ConflictError):
    def __init__(self, person_id, session_id):
        super().__init__(
            "This session is already booked",
            code="ALREADY_BOOKED",
            details={"person_id": person_id, "session_id": session_id},
        )


class SessionFull(ConflictError):
    def __init__(self, max_booking_count: int):
        super().__init__(
            f"session has reached its maximum number of bookings: {max_booking_count}",
            code="SESSION_FULL",
            details={"max_booking_count": max_booking_count},
        )


class AlreadyMarked(ConflictError):
    def __init__(self, person_id, session_id):
        super().__init__(
            "Attendance has already been recorded for this booking",
            code="ALREADY_MARKED",
            details={"person_id": person_id, "session_id": session_id},
        )


class SessionInPast(PolicyError):
    def __init__(self, session_id):
        super().__init__(
            "Cannot book a session that has already started",
            code="SESSION_IN_PAST",
            details={"session_id": session_id},
        )


class TooLateToCancel(PolicyError):
    def __init__(self, cutoff_minutes: int):
        super().__init__(
            f"Bookings cannot be cancelled within {cutoff_minutes} minutes of the session start",
            code="TOO_LATE_TO_CANCEL",
            details={"cutoff_minutes": cutoff_minutes},
        )


class NotYetOccurred(PolicyError):
    def __init__(self, session_id):
        super().__init__(
            "Attendance can only be recorded once the session has started",
            code="NOT_YET_OCCURRED",
            details={"session_id": session_id},
        )
