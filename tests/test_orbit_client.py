# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Tests for Orbit settings and the Orbit API client."""
import json

import httpx
import pytest
from httpx import AsyncClient

from vdr_console.orbit.client import (
    OrbitClient,
    OrbitNotConfiguredError,
    OrbitRequestError,
)
from vdr_console.orbit.settings import get_orbit_api_config

ORBIT_ENV = {
    "VDR_CONSOLE_ORBIT_CREDENTIAL_MGMT_URL": "https://env.orbit.example",
    "VDR_CONSOLE_ORBIT_LOB_ID": "env-lob",
}


def mock_client(handler) -> OrbitClient:
    return OrbitClient(transport=httpx.MockTransport(handler))


# =============================================================================
# Settings
# =============================================================================


def test_api_config_none_without_base_url(console_env):
    assert get_orbit_api_config("credentialMgmt") is None


@pytest.mark.console_env(ORBIT_ENV)
def test_api_config_from_environment(console_env):
    assert get_orbit_api_config("credentialMgmt") == {
        "baseUrl": "https://env.orbit.example",
        "lobId": "env-lob",
        "apiKey": "",
    }


@pytest.mark.asyncio
@pytest.mark.console_env(ORBIT_ENV)
async def test_stored_settings_override_environment(client: AsyncClient, user_headers: dict):
    response = await client.put(
        "/api/settings/orbit/credentials",
        json={"lobId": " stored-lob ", "apiKey": "k1"},
        headers=user_headers,
    )
    assert response.status_code == 200
    status = response.json()
    assert status["lobId"] == "stored-lob"
    assert status["hasApiKey"] is True
    assert status["source"] == "stored"
    assert "apiKey" not in status

    response = await client.put(
        "/api/settings/orbit/apis/credentialMgmt",
        json={"baseUrl": " https://stored.orbit.example "},
        headers=user_headers,
    )
    assert response.json()["apis"]["credentialMgmt"] == {
        "baseUrl": "https://stored.orbit.example",
        "configured": True,
    }
    assert get_orbit_api_config("credentialMgmt") == {
        "baseUrl": "https://stored.orbit.example",
        "lobId": "stored-lob",
        "apiKey": "k1",
    }


@pytest.mark.asyncio
async def test_empty_api_key_keeps_stored_key(client: AsyncClient, user_headers: dict):
    await client.put(
        "/api/settings/orbit/credentials",
        json={"lobId": "lob-1", "apiKey": "secret"},
        headers=user_headers,
    )
    await client.put(
        "/api/settings/orbit/credentials",
        json={"lobId": "lob-2", "apiKey": ""},
        headers=user_headers,
    )
    response = await client.get("/api/settings/orbit")
    status = response.json()
    assert status["lobId"] == "lob-2"
    assert status["hasApiKey"] is True
    assert status["configuredBy"]["login"] == "octocat"


@pytest.mark.asyncio
async def test_blank_lob_id_rejected(client: AsyncClient, user_headers: dict):
    response = await client.put(
        "/api/settings/orbit/credentials", json={"lobId": "  "}, headers=user_headers
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "LOB ID is required"


@pytest.mark.asyncio
async def test_unknown_api_type_rejected(client: AsyncClient, user_headers: dict):
    response = await client.put(
        "/api/settings/orbit/apis/nope", json={"baseUrl": "https://x"}, headers=user_headers
    )
    assert response.status_code == 400
    assert "Unknown Orbit API type" in response.json()["detail"]


@pytest.mark.asyncio
async def test_settings_unconfigured(client: AsyncClient):
    status = (await client.get("/api/settings/orbit")).json()
    assert status["configured"] is False
    assert status["source"] is None
    assert set(status["apis"]) == {
        "lob", "registerSocket", "connection", "holder",
        "verifier", "issuer", "chat", "credentialMgmt",
    }


# =============================================================================
# Client
# =============================================================================


@pytest.mark.asyncio
async def test_register_schema_unconfigured(console_env):
    client = mock_client(lambda request: httpx.Response(200, json={}))
    with pytest.raises(OrbitNotConfiguredError):
        await client.register_schema({"schemaId": "x"})
    await client.close()


@pytest.mark.asyncio
@pytest.mark.console_env({"VDR_CONSOLE_ORBIT_CREDENTIAL_MGMT_URL": "https://orbit.example"})
async def test_register_schema_requires_lob_id(console_env):
    client = mock_client(lambda request: httpx.Response(200, json={}))
    with pytest.raises(OrbitNotConfiguredError, match="LOB ID"):
        await client.register_schema({"schemaId": "x"})
    await client.close()


@pytest.mark.asyncio
@pytest.mark.console_env(ORBIT_ENV)
async def test_register_schema_without_api_key_header(console_env):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"schemaId": "top-level"})

    client = mock_client(handler)
    assert await client.register_schema({"schemaId": "x"}) == "top-level"
    assert "api-key" not in seen[0].headers
    assert seen[0].url.path == "/api/lob/env-lob/schema/store"
    await client.close()


@pytest.mark.asyncio
@pytest.mark.console_env(ORBIT_ENV)
async def test_register_cred_def_payload(console_env):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"data": {"credentialId": "cred-1"}})

    client = mock_client(handler)
    result = await client.register_cred_def({"credDefId": "D:3:CL:1:t"}, 5)
    assert result == "cred-1"
    payload = json.loads(seen[0].content)
    assert payload == {
        "schemaId": 5,
        "credentialDefinitionId": "D:3:CL:1:t",
        "description": "Imported credential - imported from external ledger",
        "addCredDef": False,
    }
    await client.close()


@pytest.mark.asyncio
@pytest.mark.console_env(ORBIT_ENV)
async def test_rejected_request(console_env):
    client = mock_client(lambda request: httpx.Response(422, text="bad schema"))
    with pytest.raises(OrbitRequestError) as excinfo:
        await client.register_schema({"schemaId": "x"})
    assert excinfo.value.status_code == 422
    assert excinfo.value.body == "bad schema"
    await client.close()


@pytest.mark.asyncio
@pytest.mark.console_env(ORBIT_ENV)
async def test_transport_error(console_env):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client = mock_client(handler)
    with pytest.raises(OrbitRequestError, match="Failed to import schema to Orbit"):
        await client.register_schema({"schemaId": "x"})
    await client.close()


@pytest.mark.asyncio
@pytest.mark.console_env(ORBIT_ENV)
async def test_invalid_json(console_env):
    client = mock_client(lambda request: httpx.Response(200, text="<html>"))
    with pytest.raises(OrbitRequestError, match="invalid JSON"):
        await client.register_schema({"schemaId": "x"})
    await client.close()


@pytest.mark.asyncio
@pytest.mark.console_env(ORBIT_ENV)
@pytest.mark.parametrize("body", [["ok"], "ok", 7, {"data": ["ok"]}])
async def test_non_object_response(console_env, body):
    client = mock_client(lambda request: httpx.Response(200, json=body))
    with pytest.raises(OrbitRequestError, match="Unexpected response from Orbit for schema import"):
        await client.register_schema({"schemaId": "x"})
    await client.close()
