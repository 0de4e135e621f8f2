# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Badge definition endpoints."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from vdr_console import badges
from vdr_console.api.models import BadgeRequest, BadgeSettingsRequest
from vdr_console.auth import User, require_user
from vdr_console.errors import ConsoleError

log = logging.getLogger(__name__)
router = APIRouter(prefix="/api/badges", tags=["badges"])


# =============================================================================
# Settings (declared before /{badge_id})
# =============================================================================


@router.get("/settings")
def get_settings() -> dict:
    return badges.badge_settings.get()


@router.put("/settings")
def update_settings(request: BadgeSettingsRequest, user: User = Depends(require_user)) -> dict:
    log.info(f"Badge settings updated by {user.login}")
    return badges.update_settings(request.body())


@router.post("/settings/reset")
def reset_settings(user: User = Depends(require_user)) -> dict:
    log.info(f"Badge settings reset by {user.login}")
    return badges.badge_settings.reset()


# =============================================================================
# Badges
# =============================================================================


@router.get("")
def list_badges(
    category: Optional[str] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
) -> list[dict]:
    return badges.filter_badges(badges.badge_store.all(), category, status, search)


@router.get("/{badge_id}")
def get_badge(badge_id: str) -> dict:
    try:
        return badges.get_badge_or_404(badge_id)
    except ConsoleError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{badge_id}/export")
def export_badge(badge_id: str) -> dict:
    """The badge in its published VDR format."""
    return badges.badge_to_export_format(get_badge(badge_id))


@router.post("")
def create_badge(request: BadgeRequest, user: User = Depends(require_user)) -> dict:
    try:
        return badges.create_badge(request.body(), user.ref())
    except ConsoleError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/{badge_id}")
def update_badge(badge_id: str, request: BadgeRequest, user: User = Depends(require_user)) -> dict:
    try:
        return badges.update_badge(badge_id, request.body(), user.ref())
    except ConsoleError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{badge_id}")
def delete_badge(badge_id: str, user: User = Depends(require_user)) -> dict:
    try:
        badges.delete_badge(badge_id)
    except ConsoleError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    log.info(f"Deleted badge {badge_id} by {user.login}")
    return {"success": True}
