# backend/tests/conftest.py
"""
Shared pytest fixtures for the booking core.

Every test gets its own in-memory SQLite database with the full schema, so
services can commit freely without leaking state between tests.
"""

import os

# Set test configuration BEFORE any fitstudio imports
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_BACKEND"] = "memory"

from datetime import datetime, timezone
from typing import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from fitstudio.core.config import Settings
from fitstudio.database import Base
import fitstudio.models  # noqa: F401
from fitstudio.ratelimit import InMemoryRateLimiter, set_rate_limiter
from tests.factories.studio import StudioFactory

# Roomy enough that no functional test trips the limiter by accident
GENEROUS_BUCKETS = {
    name: dict(rate_per_min=60000, burst=10000, window_s=60)
    for name in ("read", "write", "booking")
}

# Monday 2025-03-10 06:00 Nairobi
FIXED_NOW = datetime(2025, 3, 10, 3, 0, tzinfo=timezone.utc)


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(engine: Engine) -> Generator[Session, None, None]:
    SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def factory(db: Session) -> StudioFactory:
    return StudioFactory(db)


@pytest.fixture
def test_settings() -> Settings:
    """Defaults, independent of any local .env."""
    return Settings(
        _env_file=None,
        database_url="sqlite://",
        studio_timezone="Africa/Nairobi",
        category_capacity_limits={"pilates": 5, "yoga": 10},
        default_session_capacity=1,
        instant_confirm_payment_methods=["mpesa"],
        completion_loyalty_points=10,
        payment_confirmation_prefixes=["OK-", "PAID-", "TXN-", "CONF-"],
        client_cancellation_window_hours=24,
    )


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture(autouse=True)
def rate_limiter() -> Generator[InMemoryRateLimiter, None, None]:
    limiter = InMemoryRateLimiter(buckets=GENEROUS_BUCKETS)
    set_rate_limiter(limiter)
    yield limiter
    set_rate_limiter(None)
