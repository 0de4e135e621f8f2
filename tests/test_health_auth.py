# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Tests for health probes, the version endpoint and request auth."""
import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_livez_always_200(client: AsyncClient):
    response = await client.get("/livez")
    assert response.status_code == 200
    assert response.json()["status"] == "alive"


@pytest.mark.asyncio
async def test_healthz_returns_ok_with_db(client: AsyncClient):
    response = await client.get("/healthz")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["database"] == "connected"


@pytest.mark.asyncio
async def test_healthz_returns_503_when_db_down(client: AsyncClient, monkeypatch):
    from vdr_console.db import session as db_session

    monkeypatch.setattr(db_session, "check_database", lambda: False)
    response = await client.get("/healthz")
    assert response.status_code == 503
    assert response.json()["database"] == "unavailable"


@pytest.mark.asyncio
async def test_version(client: AsyncClient):
    response = await client.get("/version")
    assert response.status_code == 200
    data = response.json()
    assert data["service"] == "vdr-console"
    assert data["version"] == "0.1.0"


@pytest.mark.asyncio
async def test_write_without_user_is_401(client: AsyncClient):
    response = await client.post("/api/entities", json={"name": "Acme"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Authentication required"


@pytest.mark.asyncio
async def test_read_without_user_is_allowed(client: AsyncClient):
    response = await client.get("/api/entities")
    assert response.status_code == 200


@pytest.mark.asyncio
@pytest.mark.console_env({"VDR_CONSOLE_REQUIRE_USER": "false"})
async def test_local_user_when_user_not_required(client: AsyncClient):
    response = await client.post("/api/entities", json={"name": "Acme"})
    assert response.status_code == 201
    assert response.json()["createdBy"]["id"] == "local"


class TestBearerToken:
    """Service token checks when a token is configured."""

    pytestmark = pytest.mark.console_env({"VDR_CONSOLE_SERVICE_TOKEN": "s3cret"})

    @pytest.mark.asyncio
    async def test_missing_token_rejected(self, client: AsyncClient):
        response = await client.get("/api/entities")
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_wrong_token_rejected(self, client: AsyncClient):
        response = await client.get("/api/entities", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid bearer token"

    @pytest.mark.asyncio
    async def test_valid_token_accepted(self, client: AsyncClient):
        response = await client.get("/api/entities", headers={"Authorization": "Bearer s3cret"})
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_health_probes_exempt(self, client: AsyncClient):
        assert (await client.get("/livez")).status_code == 200
        assert (await client.get("/healthz")).status_code == 200
