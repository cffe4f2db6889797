"""Security utilities for FitNext: password hashing and bearer-token validation.

Access tokens are HS256 JWTs carrying the person id, email and role set.
``validate_bearer`` is the only place tokens are decoded; it returns an
explicit result instead of raising so callers decide how to react.
"""

from dataclasses import dataclass, field
from datetime import timedelta
from typing import FrozenSet, Optional, Union

import jwt
from passlib.context import CryptContext

from fitnext.app.core.access_policy import Role, format_roles, parse_roles
from fitnext.app.core.settings import get_settings
from fitnext.app.core.time import utc_now

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ALGORITHM = "HS256"


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Unrecognised or corrupt hash
        return False


@dataclass(frozen=True)
class Authenticated:
    person_id: int
    email: str
    roles: FrozenSet[Role] = field(default_factory=frozenset)


@dataclass(frozen=True)
class Unauthenticated:
    reason: str = "Not authenticated"


@dataclass(frozen=True)
class Expired:
    reason: str = "Token expired"


AuthResult = Union[Authenticated, Unauthenticated, Expired]


def create_access_token(person_id: int, email: str, roles, expires_minutes: Optional[int] = None) -> str:
    settings = get_settings()
    expire_delta = timedelta(
        minutes=expires_minutes if expires_minutes is not None else settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )
    # Embed expiration claim so tokens self-expire when validated
    payload = {
        "sub": str(person_id),
        "email": email,
        "roles": format_roles(roles),
        "exp": utc_now() + expire_delta,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGORITHM)


def validate_bearer(token: Optional[str]) -> AuthResult:
    if not token:
        return Unauthenticated("Missing bearer token")
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        return Expired()
    except jwt.InvalidTokenError:
        return Unauthenticated("Invalid token")

    try:
        person_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        return Unauthenticated("Invalid token subject")
    return Authenticated(
        person_id=person_id,
        email=str(payload.get("email") or ""),
        roles=parse_roles(payload.get("roles")),
    )
