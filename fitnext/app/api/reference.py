"""Session type and location endpoints."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from fitnext.app.core.access_policy import Action
from fitnext.app.core.exceptions import DomainError
from fitnext.app.db.session import get_db
from fitnext.app.dependencies.auth import AuthContext, get_auth_context, require_action
from fitnext.app.schemas.session import LocationCreate, LocationRead, SessionTypeCreate, SessionTypeRead
from fitnext.app.services import catalog

router = APIRouter(tags=["reference"])


@router.get("/session_types", response_model=list[SessionTypeRead])
def list_session_types(db: Session = Depends(get_db), ctx: AuthContext = Depends(get_auth_context)):
    return catalog.list_session_types(db)


@router.post("/session_types", response_model=SessionTypeRead, status_code=status.HTTP_201_CREATED)
def create_session_type(
    payload: SessionTypeCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_action(Action.MANAGE_REFERENCE_DATA)),
):
    try:
        return catalog.create_session_type(
            db, name=payload.name, requires_trainer=payload.requires_trainer, cost=payload.cost
        )
    except DomainError as e:
        raise e.to_http_exception()


@router.get("/locations", response_model=list[LocationRead])
def list_locations(db: Session = Depends(get_db), ctx: AuthContext = Depends(get_auth_context)):
    return catalog.list_locations(db)


@router.post("/locations", response_model=LocationRead, status_code=status.HTTP_201_CREATED)
def create_location(
    payload: LocationCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_action(Action.MANAGE_REFERENCE_DATA)),
):
    try:
        return catalog.create_location(db, name=payload.name, address=payload.address)
    except DomainError as e:
        raise e.to_http_exception()
