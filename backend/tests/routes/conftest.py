# backend/tests/routes/conftest.py
"""Fixtures for exercising the v1 routes through FastAPI's TestClient."""

from typing import Callable, Dict, Iterator

from fastapi.testclient import TestClient
import pytest
from sqlalchemy.orm import Session

from hourgym.api.dependencies import get_db, get_stripe_service
from hourgym.auth import create_access_token
from hourgym.main import app
from hourgym.models import User


@pytest.fixture
def client(session_factory, mock_stripe) -> Iterator[TestClient]:
    def _get_db() -> Iterator[Session]:
        session = session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_stripe_service] = lambda: mock_stripe
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> Callable[[User], Dict[str, str]]:
    def _headers(user: User) -> Dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token({'sub': user.id})}"}

    return _headers
