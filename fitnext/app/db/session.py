"""Engine and session factory for the FitNext database."""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from fitnext.app.core.settings import get_settings
from fitnext.app.db import base  # noqa: F401  registers every mapper before first use

settings = get_settings()


def _connect_args(database_url: str) -> dict:
    if database_url.startswith("sqlite"):
        # Shared across request threads; waits on the write lock are bounded
        return {"check_same_thread": False, "timeout": settings.db_lock_timeout_seconds}
    if database_url.startswith("postgresql"):
        return {"options": f"-c lock_timeout={int(settings.db_lock_timeout_seconds * 1000)}"}
    return {}


engine = create_engine(settings.database_url, connect_args=_connect_args(settings.database_url), future=True)


if engine.dialect.name == "sqlite":

    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency; services commit their own units of work."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """Context manager for short-lived DB operations outside a request."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
