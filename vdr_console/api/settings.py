# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Orbit API settings endpoints."""
import logging

from fastapi import APIRouter, Depends, HTTPException

from vdr_console.api.models import OrbitApiRequest, OrbitCredentialsRequest
from vdr_console.auth import User, require_user
from vdr_console.orbit import settings as orbit

log = logging.getLogger(__name__)
router = APIRouter(prefix="/api/settings/orbit", tags=["settings"])


@router.get("")
def get_orbit_settings() -> dict:
    """Orbit configuration status; the API key itself is never returned."""
    return orbit.get_orbit_status()


@router.put("/credentials")
def update_orbit_credentials(request: OrbitCredentialsRequest, user: User = Depends(require_user)) -> dict:
    if not request.lob_id.strip():
        raise HTTPException(status_code=400, detail="LOB ID is required")
    return orbit.save_orbit_credentials(request.lob_id.strip(), request.api_key, user.ref())


@router.put("/apis/{api_type}")
def update_orbit_api(api_type: str, request: OrbitApiRequest, user: User = Depends(require_user)) -> dict:
    try:
        return orbit.save_orbit_api(api_type, request.base_url, user.ref())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
