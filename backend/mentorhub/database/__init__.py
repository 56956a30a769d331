"""
Database engine, session factory, and metadata shared across the application.
"""

from __future__ import annotations

from datetime import datetime
import logging
from typing import Any, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeMeta, Session, declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from mentorhub.core.config import settings

logger = logging.getLogger(__name__)

_DEFAULT_POOL_KWARGS: dict[str, Any] = {
    "pool_size": 5,
    "max_overflow": 10,
    "pool_timeout": 5,
    "pool_recycle": 300,
    "pool_pre_ping": True,
}


def _build_engine_kwargs(db_url: str) -> dict[str, Any]:
    """SQLite needs a shared single connection for :memory: and no thread check."""
    if db_url.startswith("sqlite"):
        kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in db_url or db_url.rstrip("/") == "sqlite:":
            kwargs["poolclass"] = StaticPool
        return kwargs
    return {"poolclass": QueuePool, **_DEFAULT_POOL_KWARGS}


db_url = settings.database_url
engine: Engine = create_engine(db_url, echo=settings.database_echo, **_build_engine_kwargs(db_url))


@event.listens_for(engine, "connect")
def receive_connect(dbapi_connection: Any, connection_record: Any) -> None:
    connection_record.info["connect_time"] = datetime.now()
    logger.debug("Database connection established")


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

Base: DeclarativeMeta = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Get database session with proper cleanup."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db(bind: Engine | None = None) -> None:
    """Create all tables. Schema migrations are out of scope; this is for dev and tests."""
    # Import models so they register on Base.metadata
    from mentorhub import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


__all__ = [
    "Base",
    "SessionLocal",
    "engine",
    "get_db",
    "init_db",
]
