# FitNext booking backend entrypoint: FastAPI app wiring.

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fitnext.app.api import auth, bookings, persons, reference, reports, sessions
from fitnext.app.core.dev_seed import ensure_default_dev_admin, ensure_reference_data
from fitnext.app.core.settings import get_settings
from fitnext.app.db.base import Base
from fitnext.app.db.session import SessionLocal, engine

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, str(settings.log_level).upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(persons.router)
app.include_router(reference.router)
app.include_router(sessions.router)
app.include_router(bookings.router)
app.include_router(reports.router)


@app.get("/")
def read_root():
    return {"app": "FitNext booking backend", "status": "ok"}


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.on_event("startup")
def prepare_database():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        ensure_reference_data(db)
        ensure_default_dev_admin(db)
    finally:
        db.close()
    logger.info("%s started against %s", settings.app_name, engine.url.render_as_string(hide_password=True))
