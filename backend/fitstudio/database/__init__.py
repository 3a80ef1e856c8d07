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

from fitstudio.core.config import settings

logger = logging.getLogger(__name__)


def build_engine_kwargs(db_url: str) -> dict[str, Any]:
    """Return engine options for the configured dialect."""

    kwargs: dict[str, Any] = {"echo": settings.sql_echo, "future": True}
    if db_url.startswith("sqlite"):
        # Threads share the engine; SQLite serializes writers with its busy timeout.
        kwargs["connect_args"] = {
            "check_same_thread": False,
            "timeout": settings.db_lock_timeout_seconds,
        }
        return kwargs

    kwargs.update(
        {
            "pool_size": settings.db_pool_size,
            "max_overflow": settings.db_max_overflow,
            "pool_pre_ping": True,
            "pool_recycle": 300,
        }
    )
    return kwargs


def create_db_engine(db_url: str) -> Engine:
    engine = create_engine(db_url, **build_engine_kwargs(db_url))

    @event.listens_for(engine, "connect")
    def receive_connect(dbapi_connection: Any, connection_record: Any) -> None:
        connection_record.info["connect_time"] = datetime.now()
        logger.debug("Database connection established")

    return engine


engine: Engine = create_db_engine(settings.database_url)

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


__all__ = [
    "Base",
    "SessionLocal",
    "build_engine_kwargs",
    "create_db_engine",
    "engine",
    "get_db",
]
