# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Credential catalogue endpoints.

Imports AnonCreds schemas and credential definitions from IndyScan /
CandyScan pages into the catalogue, optionally registering them with
Orbit for verification.

Fixed paths (``/orbit-status``, ``/tags``, ``/import/*``) are declared
before ``/{credential_id}`` so they are not captured as ids.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response

from vdr_console.api.models import (
    CreateTagRequest,
    ImportCredentialRequest,
    ImportUrlRequest,
    UpdateCredentialRequest,
)
from vdr_console.auth import User, get_current_user
from vdr_console.catalogue.fetch import PageFetchError, get_page_fetcher
from vdr_console.catalogue.indyscan import parse_cred_def_from_html, parse_schema_from_html
from vdr_console.catalogue.service import (
    build_credential,
    credential_store,
    list_tags,
    register_with_orbit,
    save_credential,
    tag_id_for,
    tag_store,
)
from vdr_console.orbit.client import CREDENTIAL_MGMT_API
from vdr_console.orbit.settings import get_orbit_api_config
from vdr_console.store import DocumentExistsError

log = logging.getLogger(__name__)
router = APIRouter(prefix="/api/credential-catalogue", tags=["credential-catalogue"])


@router.get("/orbit-status")
def orbit_status() -> dict:
    """Whether the Orbit credential-management API is usable for imports."""
    orbit_config = get_orbit_api_config(CREDENTIAL_MGMT_API) or {}
    return {
        "configured": bool(orbit_config.get("baseUrl")),
        "hasCredentials": bool(orbit_config.get("lobId") and orbit_config.get("apiKey")),
    }


# =============================================================================
# Ecosystem tags
# =============================================================================


@router.get("/tags")
def get_tags() -> list[dict]:
    return list_tags()


@router.post("/tags", status_code=201)
def add_tag(request: CreateTagRequest) -> dict:
    name = (request.name or "").strip()
    if not name:
        raise HTTPException(status_code=400, detail="Tag name is required")

    list_tags()
    tag = {"id": tag_id_for(name), "name": name, "isPredefined": False}
    try:
        tag_store.insert(tag)
    except DocumentExistsError:
        raise HTTPException(status_code=409, detail="Tag already exists")

    log.info(f"Added custom tag: {name}")
    return tag


@router.delete("/tags/{tag_id}", status_code=204)
def delete_tag(tag_id: str) -> Response:
    list_tags()
    if not tag_store.delete(tag_id):
        raise HTTPException(status_code=404, detail="Tag not found")
    log.info(f"Deleted tag: {tag_id}")
    return Response(status_code=204)


# =============================================================================
# Credentials
# =============================================================================


@router.get("")
def list_credentials() -> list[dict]:
    return credential_store.all()


@router.post("", status_code=201)
async def import_credential(
    request: ImportCredentialRequest,
    user: Optional[User] = Depends(get_current_user),
) -> dict:
    """Save a parsed schema + cred-def pair, optionally registering with Orbit.

    An Orbit failure does not fail the import; the error is kept on the
    record in ``orbitRegistrationError``.
    """
    if not request.schema_data or not request.cred_def_data or not request.ecosystem_tag_id:
        raise HTTPException(
            status_code=400,
            detail="Missing required fields: schemaData, credDefData, ecosystemTagId",
        )

    imported_by = "unknown"
    if user is not None:
        imported_by = user.email or user.login

    credential = build_credential(
        request.schema_data,
        request.cred_def_data,
        request.ecosystem_tag_id,
        request.issuer_name,
        request.schema_source_url,
        request.cred_def_source_url,
        imported_by,
    )
    if request.register_with_orbit:
        await register_with_orbit(credential, request.schema_data, request.cred_def_data)

    return save_credential(credential)


@router.post("/import/schema")
async def import_schema(request: ImportUrlRequest) -> dict:
    """Parse a schema transaction page into ``{name, version, schemaId, ...}``."""
    if not request.url:
        raise HTTPException(status_code=400, detail="URL is required")

    log.info(f"Parsing schema URL: {request.url}")
    try:
        html = await get_page_fetcher().fetch(request.url)
    except PageFetchError as e:
        raise HTTPException(status_code=400, detail=e.message)

    schema_data = parse_schema_from_html(html, request.url)
    if not schema_data.get("name") or not schema_data.get("version"):
        raise HTTPException(
            status_code=400,
            detail="Could not parse schema name and version from page. Please check the URL.",
        )
    return schema_data


@router.post("/import/creddef")
async def import_cred_def(request: ImportUrlRequest) -> dict:
    """Parse a credential definition transaction page."""
    if not request.url:
        raise HTTPException(status_code=400, detail="URL is required")

    log.info(f"Parsing credential definition URL: {request.url}")
    try:
        html = await get_page_fetcher().fetch(request.url)
    except PageFetchError as e:
        raise HTTPException(status_code=400, detail=e.message)

    cred_def_data = parse_cred_def_from_html(html, request.url)
    if not cred_def_data.get("credDefId"):
        raise HTTPException(
            status_code=400,
            detail="Could not parse credential definition ID from page. Please check the URL.",
        )
    return cred_def_data


@router.get("/{credential_id}")
def get_credential(credential_id: str) -> dict:
    credential = credential_store.get(credential_id)
    if credential is None:
        raise HTTPException(status_code=404, detail="Credential not found")
    return credential


@router.patch("/{credential_id}")
def update_credential(credential_id: str, request: UpdateCredentialRequest) -> dict:
    """Update ``ecosystemTag`` and/or ``issuerName``; other fields are fixed."""
    changes = request.body()
    credential = credential_store.update(credential_id, lambda stored: {**stored, **changes})
    if credential is None:
        raise HTTPException(status_code=404, detail="Credential not found")
    log.info(f"Updated credential: {credential_id}")
    return credential


@router.delete("/{credential_id}", status_code=204)
def delete_credential(credential_id: str) -> Response:
    if not credential_store.delete(credential_id):
        raise HTTPException(status_code=404, detail="Credential not found")
    log.info(f"Deleted credential: {credential_id}")
    return Response(status_code=204)
