"""Pytest fixtures: test client, test DB (in-memory SQLite), bearer tokens, fake push services."""
import os

import httpx
import pytest
from fastapi.testclient import TestClient

# In-memory SQLite for tests (must be set before the app is imported)
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("VAPID_SUBJECT", "mailto:push-tests@example.com")
# High rate limit so the whole suite fits in one window
os.environ.setdefault("RATE_LIMIT_PER_MINUTE", "1000")

from sqlmodel import Session, SQLModel

from app.api.deps import get_push_client
from app.core.database import engine, init_db
from app.core.security import create_access_token
from app.main import app


@pytest.fixture(autouse=True)
def _clean_db():
    """Every test starts with empty tables."""
    init_db()
    yield
    with engine.begin() as conn:
        for table in reversed(SQLModel.metadata.sorted_tables):
            conn.execute(table.delete())
    app.dependency_overrides.clear()


@pytest.fixture
def db():
    with Session(engine) as session:
        yield session


@pytest.fixture(scope="function")
def client():
    """TestClient; lifespan creates the tables."""
    with TestClient(app) as c:
        yield c


def bearer(user_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': user_id})}"}


@pytest.fixture
def make_auth():
    return bearer


@pytest.fixture
def auth_headers():
    return bearer("user-1")


class FakePushService:
    """
    httpx transport standing in for browser push services.
    `responses` maps host -> status code, or an exception instance to raise.
    """

    def __init__(self, responses: dict | None = None, default_status: int = 201):
        self.responses = responses or {}
        self.default_status = default_status
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        outcome = self.responses.get(request.url.host, self.default_status)
        if isinstance(outcome, Exception):
            raise outcome
        return httpx.Response(outcome, text="")

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport())


@pytest.fixture
def push_service():
    """Fake push service wired into the app's outbound client."""
    service = FakePushService()

    async def _client():
        async with service.client() as c:
            yield c

    app.dependency_overrides[get_push_client] = _client
    return service
