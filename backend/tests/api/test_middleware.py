"""Auth & Logging Middleware — basic auth gate and per-request log line."""

import base64
import logging

import pytest

from app.api import middleware
from app.config import Settings


def _basic(user: str, password: str) -> dict:
    token = base64.b64encode(f"{user}:{password}".encode()).decode()
    return {"Authorization": f"Basic {token}"}


@pytest.fixture
def auth_enabled(monkeypatch):
    settings = Settings(basic_auth_user="admin", basic_auth_pass="s3cret")
    monkeypatch.setattr(middleware, "get_settings", lambda: settings)


async def test_no_credentials_gets_401(client, auth_enabled):
    resp = await client.get("/api/v1/users")
    assert resp.status_code == 401
    assert resp.headers["www-authenticate"] == 'Basic realm="Restricted"'


async def test_wrong_credentials_gets_401(client, auth_enabled):
    resp = await client.get("/api/v1/users", headers=_basic("admin", "wrong"))
    assert resp.status_code == 401


async def test_malformed_header_gets_401(client, auth_enabled):
    resp = await client.get("/api/v1/users", headers={"Authorization": "Basic !!!"})
    assert resp.status_code == 401


async def test_correct_credentials_pass(client, auth_enabled):
    resp = await client.get("/api/v1/users", headers=_basic("admin", "s3cret"))
    assert resp.status_code == 200


async def test_health_is_public(client, auth_enabled):
    resp = await client.get("/api/v1/health/")
    assert resp.status_code == 200


async def test_auth_disabled_lets_requests_through(client):
    resp = await client.get("/api/v1/users")
    assert resp.status_code == 200


async def test_logs_actual_status(client, caplog):
    with caplog.at_level(logging.INFO, logger="app.api.middleware"):
        await client.get("/api/v1/users/missing")
    lines = [r.getMessage() for r in caplog.records if r.name == "app.api.middleware"]
    assert any(
        line.startswith("[GET] /api/v1/users/missing HTTP/") and "Status: 404" in line
        for line in lines
    )


async def test_logs_401(client, auth_enabled, caplog):
    with caplog.at_level(logging.INFO, logger="app.api.middleware"):
        await client.get("/api/v1/users")
    assert any(
        "Status: 401" in r.getMessage()
        for r in caplog.records if r.name == "app.api.middleware"
    )
