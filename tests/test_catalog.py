from datetime import datetime, timedelta, timezone

import pytest

from fitnext.app.core.access_policy import Role
from fitnext.app.core.exceptions import (
    DuplicateName,
    NegativeValue,
    SessionNotFound,
    TrainerRequired,
    UnknownReference,
    ValidationError,
)
from fitnext.app.core.time import as_utc
from fitnext.app.db.base import Base
from fitnext.app.db.session import engine
from fitnext.app.models.booking import Booking
from fitnext.app.services import catalog, credentials

DAY = datetime(2030, 5, 6, 9, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def outdoor(db):
    return catalog.create_session_type(db, name="Outdoor", cost=2)


@pytest.fixture
def park(db):
    return catalog.create_location(db, name="Oak Hill Park", address="Parkside Gardens")


def test_reference_data_names_are_unique(db, outdoor, park):
    with pytest.raises(DuplicateName):
        catalog.create_session_type(db, name="Outdoor")
    with pytest.raises(DuplicateName):
        catalog.create_location(db, name="Oak Hill Park")
    assert [t.name for t in catalog.list_session_types(db)] == ["Outdoor"]
    assert [loc.name for loc in catalog.list_locations(db)] == ["Oak Hill Park"]


def test_session_type_cost_must_not_be_negative(db):
    with pytest.raises(NegativeValue):
        catalog.create_session_type(db, name="Freebie", cost=-1)


def test_create_session_defaults_cost_from_type(db, outdoor, park):
    session_obj = catalog.create_session(
        db, starts_at=DAY, duration_mins=60, session_type_id=outdoor.id, location_id=park.id, max_booking_count=12
    )
    assert session_obj.cost == 2
    assert as_utc(session_obj.starts_at) == DAY
    assert session_obj.location.name == "Oak Hill Park"
    assert session_obj.trainer is None


def test_create_session_rejects_bad_input(db, outdoor):
    with pytest.raises(ValidationError) as excinfo:
        catalog.create_session(db, starts_at=DAY.replace(tzinfo=None), duration_mins=60, session_type_id=outdoor.id)
    assert excinfo.value.code == "NAIVE_DATETIME"

    with pytest.raises(NegativeValue):
        catalog.create_session(db, starts_at=DAY, duration_mins=60, session_type_id=outdoor.id, cost=-3)
    with pytest.raises(NegativeValue):
        catalog.create_session(db, starts_at=DAY, duration_mins=60, session_type_id=outdoor.id, max_booking_count=-1)
    with pytest.raises(ValidationError):
        catalog.create_session(db, starts_at=DAY, duration_mins=0, session_type_id=outdoor.id)
    with pytest.raises(UnknownReference):
        catalog.create_session(db, starts_at=DAY, duration_mins=60, session_type_id=999)
    with pytest.raises(UnknownReference):
        catalog.create_session(db, starts_at=DAY, duration_mins=60, session_type_id=outdoor.id, location_id=999)


def test_trainer_rules(db):
    pt = catalog.create_session_type(db, name="Personal training", requires_trainer=True, cost=5)
    member = credentials.create_person(db, name="Amy", email="amy@example.com")
    coach = credentials.create_person(db, name="Coach", email="coach@example.com", roles=[Role.TRAINER])

    with pytest.raises(TrainerRequired):
        catalog.create_session(db, starts_at=DAY, duration_mins=30, session_type_id=pt.id)
    with pytest.raises(UnknownReference):
        catalog.create_session(db, starts_at=DAY, duration_mins=30, session_type_id=pt.id, trainer_id=member.id)

    session_obj = catalog.create_session(db, starts_at=DAY, duration_mins=30, session_type_id=pt.id, trainer_id=coach.id)
    assert session_obj.trainer.email == "coach@example.com"


def test_update_session(db, outdoor):
    session_obj = catalog.create_session(db, starts_at=DAY, duration_mins=60, session_type_id=outdoor.id)
    updated = catalog.update_session(db, session_obj.id, {"cost": 5, "notes": "Bring water"})
    assert updated.cost == 5
    assert updated.notes == "Bring water"

    with pytest.raises(ValidationError):
        catalog.update_session(db, session_obj.id, {"id": 42})
    with pytest.raises(NegativeValue):
        catalog.update_session(db, session_obj.id, {"cost": -1})
    with pytest.raises(SessionNotFound):
        catalog.update_session(db, 999, {"cost": 1})

    for field in ("starts_at", "duration_mins", "session_type_id"):
        with pytest.raises(ValidationError) as excinfo:
            catalog.update_session(db, session_obj.id, {field: None})
        assert excinfo.value.code == "NULL_FIELD"
    unchanged = catalog.get_session(db, session_obj.id)
    assert as_utc(unchanged.starts_at) == DAY
    assert unchanged.duration_mins == 60
    assert unchanged.session_type_id == outdoor.id

    # Optional columns may still be cleared
    assert catalog.update_session(db, session_obj.id, {"notes": None}).notes is None


def test_delete_session_rolls_back_when_commit_fails(db, outdoor, monkeypatch):
    session_obj = catalog.create_session(db, starts_at=DAY, duration_mins=60, session_type_id=outdoor.id)

    def failing_commit():
        raise RuntimeError("disk full")

    monkeypatch.setattr(db, "commit", failing_commit)
    with pytest.raises(RuntimeError):
        catalog.delete_session(db, session_obj.id)
    assert not db.in_transaction()
    monkeypatch.undo()

    assert catalog.get_session(db, session_obj.id).id == session_obj.id


def test_delete_session_removes_its_bookings(db, outdoor):
    amy = credentials.create_person(db, name="Amy", email="amy@example.com")
    session_obj = catalog.create_session(db, starts_at=DAY, duration_mins=60, session_type_id=outdoor.id)
    db.add(Booking(person_id=amy.id, session_id=session_obj.id, credits_used=2))
    db.commit()

    catalog.delete_session(db, session_obj.id)
    assert db.query(Booking).count() == 0
    with pytest.raises(SessionNotFound):
        catalog.get_session(db, session_obj.id)


def test_list_sessions_counts_bookings_and_filters_by_date(db, outdoor):
    amy = credentials.create_person(db, name="Amy", email="amy@example.com")
    first = catalog.create_session(db, starts_at=DAY, duration_mins=60, session_type_id=outdoor.id)
    second = catalog.create_session(db, starts_at=DAY + timedelta(hours=3), duration_mins=60, session_type_id=outdoor.id)
    catalog.create_session(db, starts_at=DAY + timedelta(days=1), duration_mins=60, session_type_id=outdoor.id)
    db.add(Booking(person_id=amy.id, session_id=second.id, credits_used=2))
    db.commit()

    listings = catalog.list_sessions(db, DAY, DAY + timedelta(hours=12))
    assert [(item.session.id, item.booking_count) for item in listings] == [(first.id, 0), (second.id, 1)]
    assert len(catalog.list_sessions(db)) == 3

    grouped = catalog.list_sessions_by_date(db)
    assert list(grouped) == [DAY.date(), (DAY + timedelta(days=1)).date()]
    assert len(grouped[DAY.date()]) == 2
