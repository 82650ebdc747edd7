"""API test fixtures — ASGI client wired to the in-memory SQLite service."""

import pytest
from httpx import ASGITransport, AsyncClient

from app.api.routes.users import get_user_service
from app.main import app


@pytest.fixture
async def client(user_service):
    app.dependency_overrides[get_user_service] = lambda: user_service
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
