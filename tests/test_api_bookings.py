from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from fitnext.app.core.access_policy import Role
from fitnext.app.core.time import utc_now
from fitnext.app.db.base import Base
from fitnext.app.db.session import SessionLocal, engine
from fitnext.app.main import app
from fitnext.app.services import credentials


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def seed_person(email, roles=None):
    db = SessionLocal()
    try:
        return credentials.create_person(
            db, name=email.split("@")[0].title(), email=email, initial_password="secret-pass", roles=roles
        )
    finally:
        db.close()


def login(client: TestClient, email: str) -> dict:
    resp = client.post("/auth/login", json={"email": email, "password": "secret-pass"})
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def staff(client):
    seed_person("admin@example.com", roles=[Role.ADMIN, Role.TRAINER])
    return login(client, "admin@example.com")


@pytest.fixture
def session_type_id(client, staff):
    resp = client.post("/session_types", json={"name": "Outdoor", "cost": 2}, headers=staff)
    assert resp.status_code == 201
    return resp.json()["id"]


def create_session(client, headers, session_type_id, starts_in=timedelta(days=2), **extra):
    payload = {
        "starts_at": (utc_now() + starts_in).isoformat(),
        "duration_mins": 60,
        "session_type_id": session_type_id,
        **extra,
    }
    resp = client.post("/sessions", json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_reference_data_endpoints(client, staff):
    seed_person("amy@example.com")
    member = login(client, "amy@example.com")

    assert client.post("/locations", json={"name": "Oak Hill Park"}, headers=member).status_code == 403
    resp = client.post("/locations", json={"name": "Oak Hill Park", "address": "Parkside"}, headers=staff)
    assert resp.status_code == 201
    dup = client.post("/locations", json={"name": "Oak Hill Park"}, headers=staff)
    assert dup.status_code == 409
    assert [loc["name"] for loc in client.get("/locations", headers=member).json()] == ["Oak Hill Park"]

    assert client.post("/session_types", json={"name": "Free", "cost": -1}, headers=staff).status_code == 422
    assert client.get("/session_types", headers=member).status_code == 200


def test_session_crud(client, staff, session_type_id):
    seed_person("amy@example.com")
    member = login(client, "amy@example.com")

    created = create_session(client, staff, session_type_id, max_booking_count=10, notes="Bring water")
    assert created["cost"] == 2
    assert created["booking_count"] == 0
    assert created["session_type"]["name"] == "Outdoor"

    naive = client.post(
        "/sessions",
        json={"starts_at": "2030-01-01T10:00:00", "duration_mins": 60, "session_type_id": session_type_id},
        headers=staff,
    )
    assert naive.status_code == 400
    assert naive.json()["detail"]["code"] == "NAIVE_DATETIME"

    assert client.post(
        "/sessions",
        json={"starts_at": created["starts_at"], "duration_mins": 60, "session_type_id": session_type_id},
        headers=member,
    ).status_code == 403

    resp = client.patch(f"/sessions/{created['id']}", json={"cost": 4}, headers=staff)
    assert resp.status_code == 200
    assert resp.json()["cost"] == 4
    assert resp.json()["notes"] == "Bring water"

    cleared = client.patch(f"/sessions/{created['id']}", json={"starts_at": None}, headers=staff)
    assert cleared.status_code == 400
    assert cleared.json()["detail"]["code"] == "NULL_FIELD"

    assert client.get(f"/sessions/{created['id']}", headers=member).json()["cost"] == 4
    assert len(client.get("/sessions", headers=member).json()) == 1
    by_date = client.get("/sessions/by_date", headers=member).json()
    assert len(by_date) == 1 and by_date[0]["sessions"][0]["id"] == created["id"]

    assert client.delete(f"/sessions/{created['id']}", headers=staff).status_code == 204
    assert client.get(f"/sessions/{created['id']}", headers=member).status_code == 404


def test_booking_flow(client, staff, session_type_id):
    pat = seed_person("pat@example.com")
    seed_person("quinn@example.com")
    pat_headers = login(client, "pat@example.com")
    quinn_headers = login(client, "quinn@example.com")
    session_obj = create_session(client, staff, session_type_id, max_booking_count=1)

    resp = client.post("/bookings", json={"session_id": session_obj["id"]}, headers=pat_headers)
    assert resp.status_code == 201
    assert resp.json()["credits_used"] == 2
    assert resp.json()["person_id"] == pat.id

    again = client.post("/bookings", json={"session_id": session_obj["id"]}, headers=pat_headers)
    assert again.status_code == 409
    assert again.json()["detail"]["code"] == "ALREADY_BOOKED"

    full = client.post("/bookings", json={"session_id": session_obj["id"]}, headers=quinn_headers)
    assert full.status_code == 409
    assert full.json()["detail"]["code"] == "SESSION_FULL"

    mine = client.get("/bookings", params={"person_id": pat.id}, headers=pat_headers).json()
    assert [(b["session_id"], b["session_type_name"]) for b in mine] == [(session_obj["id"], "Outdoor")]
    assert client.get("/bookings", headers=pat_headers).status_code == 403
    assert len(client.get("/bookings", params={"session_id": session_obj["id"]}, headers=staff).json()) == 1

    cancelled = client.delete("/bookings", params={"session_id": session_obj["id"]}, headers=pat_headers)
    assert cancelled.status_code == 200
    assert client.post("/bookings", json={"session_id": session_obj["id"]}, headers=quinn_headers).status_code == 201


def test_booking_rules_over_http(client, staff, session_type_id):
    pat = seed_person("pat@example.com")
    quinn = seed_person("quinn@example.com")
    pat_headers = login(client, "pat@example.com")
    soon = create_session(client, staff, session_type_id, starts_in=timedelta(minutes=20))

    assert client.post(
        "/bookings", json={"session_id": soon["id"], "person_id": quinn.id}, headers=pat_headers
    ).status_code == 403
    assert client.post("/bookings", json={"session_id": soon["id"]}, headers=pat_headers).status_code == 201

    late = client.delete("/bookings", params={"session_id": soon["id"]}, headers=pat_headers)
    assert late.status_code == 422
    assert late.json()["detail"]["code"] == "TOO_LATE_TO_CANCEL"

    early = client.put("/bookings/attendance", json={"session_id": soon["id"], "person_id": pat.id}, headers=staff)
    assert early.status_code == 422
    assert early.json()["detail"]["code"] == "NOT_YET_OCCURRED"

    assert client.post("/bookings", json={"session_id": 999}, headers=pat_headers).status_code == 404
    assert client.post("/bookings", json={"session_id": soon["id"]}).status_code == 401


def test_admin_reports(client, staff, session_type_id):
    seed_person("amy@example.com")
    member = login(client, "amy@example.com")

    assert client.get("/stats/attendance", headers=member).status_code == 403
    stats = client.get("/stats/attendance", params={"session_type_id": [session_type_id]}, headers=staff)
    assert stats.status_code == 200
    assert {row["email"] for row in stats.json()} == {"admin@example.com", "amy@example.com"}

    assert client.get("/backup", headers=member).status_code == 403
    backup = client.get("/backup", headers=staff).json()
    assert [row["name"] for row in backup["session_type"]] == ["Outdoor"]
