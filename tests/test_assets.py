# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Tests for uploads and managed assets."""
import hashlib

import pytest
from httpx import AsyncClient

from vdr_console.assets import asset_path, get_github_file_path, safe_name
from vdr_console.errors import ValidationError

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


async def upload(client: AsyncClient, headers: dict, name: str = "Logo.PNG", content: bytes = PNG_BYTES,
                 mimetype: str = "image/png"):
    return await client.post(
        "/api/assets", files={"file": (name, content, mimetype)}, headers=headers
    )


async def create_asset(client: AsyncClient, headers: dict, **overrides) -> dict:
    stored = (await upload(client, headers)).json()
    body = {
        "filename": stored["filename"],
        "originalName": stored["originalName"],
        "mimetype": stored["mimetype"],
        "name": "Acme Logo",
        "type": "entity-logo",
        "entityId": "copa-acme",
    }
    body.update(overrides)
    response = await client.post("/api/managed-assets", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestPaths:
    def test_safe_name(self):
        assert safe_name("Home Owner Card!") == "home-owner-card"

    def test_entity_logo_path(self):
        asset = {"type": "entity-logo", "entityId": "copa-acme", "filename": "abc.svg"}
        assert get_github_file_path(asset) == "credentials/entities/logos/copa-acme.svg"

    def test_background_path(self):
        asset = {"type": "credential-background", "name": "Home Owner", "filename": "abc.jpg"}
        assert get_github_file_path(asset) == "credentials/vct/backgrounds/home-owner.jpg"

    def test_missing_extension_defaults_to_png(self):
        asset = {"type": "credential-icon", "name": "icon", "filename": "noext"}
        assert get_github_file_path(asset) == "credentials/vct/icons/icon.png"

    @pytest.mark.parametrize("name", ["../secret.png", "a\\b.png", ".env", ""])
    def test_asset_path_rejects_escaping_names(self, name):
        with pytest.raises(ValidationError):
            asset_path(name)


@pytest.mark.asyncio
async def test_upload_and_serve(client: AsyncClient, user_headers: dict):
    response = await upload(client, user_headers)
    assert response.status_code == 201, response.text
    stored = response.json()
    assert stored["filename"].endswith(".png")
    assert stored["originalName"] == "Logo.PNG"
    assert stored["size"] == len(PNG_BYTES)
    assert stored["hash"] == hashlib.sha256(PNG_BYTES).hexdigest()
    assert stored["uri"] == f"/assets/{stored['filename']}"

    response = await client.get(f"/api/assets/{stored['filename']}")
    assert response.status_code == 200
    assert response.content == PNG_BYTES


@pytest.mark.asyncio
async def test_upload_requires_user(client: AsyncClient):
    response = await upload(client, {})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_upload_rejects_non_image(client: AsyncClient, user_headers: dict):
    response = await upload(client, user_headers, name="notes.txt", content=b"hi", mimetype="text/plain")
    assert response.status_code == 400
    assert response.json()["detail"] == "Unsupported file type: text/plain"


@pytest.mark.asyncio
@pytest.mark.console_env({"VDR_CONSOLE_MAX_UPLOAD_BYTES": "16"})
async def test_upload_too_large(client: AsyncClient, user_headers: dict):
    response = await upload(client, user_headers)
    assert response.status_code == 413
    assert response.json()["detail"] == "File too large (max 16 bytes)"


@pytest.mark.asyncio
async def test_serve_missing_file(client: AsyncClient):
    response = await client.get("/api/assets/missing.png")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_managed_asset_lifecycle(client: AsyncClient, user_headers: dict, console_env):
    asset = await create_asset(client, user_headers)
    assert asset["size"] == len(PNG_BYTES)
    assert asset["isPublished"] is False
    assert asset["uploader"] == {"id": "1001", "login": "octocat", "name": "Octo Cat"}

    response = await client.get(f"/api/managed-assets/{asset['id']}/publish-target")
    assert response.json() == {
        "githubPath": "credentials/entities/logos/copa-acme.png",
        "publishedUri": "https://openpropertyassociation.ca/credentials/entities/logos/copa-acme.png",
    }

    response = await client.put(
        f"/api/managed-assets/{asset['id']}",
        json={"isPublished": True, "publishedUri": "https://cdn.example/logo.png"},
        headers=user_headers,
    )
    updated = response.json()
    assert updated["isPublished"] is True
    assert updated["name"] == "Acme Logo"

    upload_path = console_env / "assets" / asset["filename"]
    assert upload_path.exists()
    response = await client.delete(f"/api/managed-assets/{asset['id']}", headers=user_headers)
    assert response.json() == {"success": True}
    assert not upload_path.exists()
    assert (await client.get(f"/api/managed-assets/{asset['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_managed_asset_filters(client: AsyncClient, user_headers: dict):
    await create_asset(client, user_headers)
    await create_asset(client, user_headers, type="credential-icon", name="Icon", entityId="copa-other")

    response = await client.get("/api/managed-assets", params={"type": "credential-icon"})
    assert [a["name"] for a in response.json()] == ["Icon"]
    response = await client.get("/api/managed-assets", params={"entityId": "copa-acme"})
    assert [a["name"] for a in response.json()] == ["Acme Logo"]


@pytest.mark.asyncio
async def test_managed_asset_validation(client: AsyncClient, user_headers: dict):
    response = await client.post(
        "/api/managed-assets",
        json={"filename": "nope.png", "name": "x", "entityId": "copa-acme"},
        headers=user_headers,
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Uploaded file not found: nope.png"

    stored = (await upload(client, user_headers)).json()
    response = await client.post(
        "/api/managed-assets",
        json={"filename": stored["filename"], "name": "x", "entityId": "copa-acme", "type": "banner"},
        headers=user_headers,
    )
    assert response.status_code == 400
    assert response.json()["detail"].startswith("Invalid asset type")


@pytest.mark.asyncio
async def test_upload_extension_follows_mimetype(client: AsyncClient, user_headers: dict):
    response = await upload(client, user_headers, name="evil.html", content=b"<script>alert(1)</script>")
    assert response.status_code == 201, response.text
    stored = response.json()
    assert stored["filename"].endswith(".png")
    assert stored["originalName"] == "evil.html"

    response = await client.get(f"/api/assets/{stored['filename']}")
    assert response.headers["content-type"] == "image/png"


@pytest.mark.asyncio
async def test_serve_rejects_escaping_filename(client: AsyncClient):
    response = await client.get("/api/assets/..%5Cconfig.py")
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid filename"

    response = await client.get("/api/assets/.env")
    assert response.status_code == 400
