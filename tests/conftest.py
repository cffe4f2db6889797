import os

# Settings are read once at import; point the suite at its own database
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_fitnext.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key-with-enough-length-for-hs256")
os.environ.setdefault("BOOKING_RETRY_BACKOFF_SECONDS", "0.01")

import pytest  # noqa: E402

from fitnext.app.db.session import SessionLocal  # noqa: E402


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    def send_temp_password(self, person, temp_password, expiry, purpose):
        self.sent.append(
            {"person_id": person.id, "temp_password": temp_password, "expiry": expiry, "purpose": purpose}
        )

    @property
    def last(self):
        return self.sent[-1]


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def notifier():
    return RecordingNotifier()
