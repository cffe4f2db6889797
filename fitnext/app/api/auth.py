"""Registration, login and password-recovery endpoints."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from fitnext.app.core.exceptions import DomainError
from fitnext.app.core.security import create_access_token
from fitnext.app.db.session import get_db
from fitnext.app.dependencies.auth import AuthContext, get_auth_context
from fitnext.app.models.person import Person
from fitnext.app.schemas.login import (
    ChangePasswordRequest,
    LoginRequest,
    PasswordResetRedeem,
    PasswordResetRequest,
)
from fitnext.app.schemas.person import LoggedInPerson, PersonRead, RegisterRequest
from fitnext.app.services import credentials, recovery
from fitnext.app.services.notifier import Notifier, get_notifier

router = APIRouter(prefix="/auth", tags=["auth"])


def _logged_in(person: Person) -> LoggedInPerson:
    token = create_access_token(person_id=person.id, email=person.email, roles=person.role_set)
    return LoggedInPerson(**PersonRead.model_validate(person).model_dump(), access_token=token)


@router.post("/register", response_model=PersonRead, status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    try:
        person = recovery.register_person(
            db, name=payload.name, email=payload.email, phone=payload.phone, notifier=notifier
        )
    except DomainError as e:
        raise e.to_http_exception()
    return PersonRead.model_validate(person)


@router.post("/login", response_model=LoggedInPerson)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    try:
        person = credentials.verify_credentials(db, payload.email, payload.password)
    except DomainError as e:
        raise e.to_http_exception()
    return _logged_in(person)


@router.get("/validate_login", response_model=PersonRead)
def validate_login(ctx: AuthContext = Depends(get_auth_context), db: Session = Depends(get_db)):
    try:
        person = credentials.get_person(db, ctx.person_id)
    except DomainError as e:
        raise e.to_http_exception()
    return PersonRead.model_validate(person)


@router.post("/change_password", response_model=LoggedInPerson)
def change_password(payload: ChangePasswordRequest, db: Session = Depends(get_db)):
    try:
        person = credentials.change_password(
            db,
            email=payload.email,
            current_password=payload.current_password,
            new_password=payload.new_password,
        )
    except DomainError as e:
        raise e.to_http_exception()
    return _logged_in(person)


@router.post("/request_pwd_reset", status_code=status.HTTP_202_ACCEPTED)
def request_pwd_reset(
    payload: PasswordResetRequest,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    try:
        issued = recovery.request_password_reset(db, payload.email, notifier=notifier)
    except DomainError as e:
        raise e.to_http_exception()
    # The temp password itself only travels through the notifier
    return {"status": "sent", "expiry": issued.expiry}


@router.post("/reset_pwd", response_model=LoggedInPerson)
def reset_pwd(payload: PasswordResetRedeem, db: Session = Depends(get_db)):
    try:
        person = recovery.redeem_recovery(db, payload.email, payload.temp_password, payload.new_password)
    except DomainError as e:
        raise e.to_http_exception()
    return _logged_in(person)
