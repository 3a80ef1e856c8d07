from datetime import date, timedelta
from typing import Dict, Generator

from fastapi.testclient import TestClient
import pytest

from fitstudio.api.dependencies.database import get_db
from fitstudio.main import app


@pytest.fixture
def client(db) -> Generator[TestClient, None, None]:
    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(user) -> Dict[str, str]:
        return {"X-User-Id": user.id}

    return _headers


@pytest.fixture
def future_day() -> date:
    """A class day far enough ahead that clients can still cancel."""
    return date.today() + timedelta(days=10)
