"""Authentication dependencies producing the per-request ``AuthContext``."""

from typing import Callable

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from fitnext.app.core.access_policy import Action, authorize
from fitnext.app.core.exceptions import AuthorizationError
from fitnext.app.core.security import Authenticated, Expired, validate_bearer
from fitnext.app.db.session import get_db
from fitnext.app.models.person import Person

# The context handed to every handler is the validator's own success value
AuthContext = Authenticated


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_auth_context(db: Session = Depends(get_db), authorization: str | None = Header(default=None)) -> AuthContext:
    # Expect Authorization: Bearer <token>
    if not authorization or not authorization.startswith("Bearer "):
        raise _unauthorized("Not authenticated")
    result = validate_bearer(authorization.split(" ", 1)[1].strip())
    if isinstance(result, Expired):
        raise _unauthorized(result.reason)
    if not isinstance(result, Authenticated):
        raise _unauthorized("Not authenticated")

    # Roles may have changed since the token was issued
    person = db.get(Person, result.person_id)
    if person is None:
        raise _unauthorized("Not authenticated")
    return Authenticated(person_id=person.id, email=person.email, roles=person.role_set)


def require_action(action: Action) -> Callable[..., AuthContext]:
    """Dependency factory gating a route on one access-policy action."""

    def _dependency(ctx: AuthContext = Depends(get_auth_context)) -> AuthContext:
        try:
            authorize(ctx.roles, action)
        except AuthorizationError as exc:
            raise exc.to_http_exception()
        return ctx

    return _dependency
