"""File-backed SQLite so worker threads get real, separate connections."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from fitstudio.database import Base


@pytest.fixture
def file_engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'studio.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(file_engine):
    return sessionmaker(bind=file_engine, autoflush=False, expire_on_commit=False)
