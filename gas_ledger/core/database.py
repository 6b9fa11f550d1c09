"""Database configuration and session management."""

from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from gas_ledger.core.config import settings


def engine_options(database_url: str) -> dict[str, Any]:
    """Keyword arguments for ``create_engine`` suited to the URL's backend."""
    if make_url(database_url).get_backend_name() == "sqlite":
        # Sessions are handed across FastAPI's worker threads
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


engine = create_engine(settings.DATABASE_URL, **engine_options(settings.DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    """Declarative base for ledger tables."""


def get_db():
    """Yield a session for one request and close it afterwards."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
