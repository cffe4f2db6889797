"""Admin person management endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from fitnext.app.core.access_policy import Action, Role
from fitnext.app.core.exceptions import DomainError
from fitnext.app.db.session import get_db
from fitnext.app.dependencies.auth import AuthContext, require_action
from fitnext.app.schemas.person import PersonCreate, PersonRead, RolesUpdate
from fitnext.app.services import credentials

router = APIRouter(prefix="/persons", tags=["persons"])


@router.get("", response_model=list[PersonRead])
def list_persons(
    role: Optional[Role] = None,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_action(Action.LIST_PERSONS)),
):
    return [PersonRead.model_validate(person) for person in credentials.list_persons(db, role)]


@router.get("/{person_id}", response_model=PersonRead)
def get_person(
    person_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_action(Action.LIST_PERSONS)),
):
    try:
        person = credentials.get_person(db, person_id)
    except DomainError as e:
        raise e.to_http_exception()
    return PersonRead.model_validate(person)


@router.post("", response_model=PersonRead, status_code=status.HTTP_201_CREATED)
def create_person(
    payload: PersonCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_action(Action.MANAGE_PERSONS)),
):
    try:
        person = credentials.create_person(
            db,
            name=payload.name,
            email=payload.email,
            phone=payload.phone,
            initial_password=payload.password,
            roles=payload.roles,
        )
    except DomainError as e:
        raise e.to_http_exception()
    return PersonRead.model_validate(person)


@router.put("/{person_id}/roles", response_model=PersonRead)
def update_roles(
    person_id: int,
    payload: RolesUpdate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_action(Action.MANAGE_PERSONS)),
):
    try:
        person = credentials.set_roles(db, person_id, payload.roles)
    except DomainError as e:
        raise e.to_http_exception()
    return PersonRead.model_validate(person)
