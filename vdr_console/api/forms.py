# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Forms builder endpoints.

Every endpoint except ``GET /slug/{slug}`` acts on the caller's own
forms. Database failures surface as 503 so the UI can tell "no forms"
from "forms unavailable".
"""
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError

from vdr_console.api.models import FormRequest, FormsSettingsRequest
from vdr_console.auth import User, require_user
from vdr_console.errors import ConsoleError
from vdr_console.forms import form_store, forms_settings

log = logging.getLogger(__name__)
router = APIRouter(prefix="/api/forms", tags=["forms"])
settings_router = APIRouter(prefix="/api/forms-builder/settings", tags=["forms"])

DB_UNAVAILABLE = "Database not available"


def _db_error(e: SQLAlchemyError) -> HTTPException:
    log.error(f"Forms database error: {e}")
    return HTTPException(status_code=503, detail=DB_UNAVAILABLE)


@router.get("")
def list_forms(user: User = Depends(require_user)) -> list[dict]:
    try:
        return form_store.list_forms(user)
    except SQLAlchemyError as e:
        raise _db_error(e)


@router.get("/slug/{slug}")
def get_form_by_slug(slug: str) -> dict:
    """Public read of a published form."""
    try:
        return form_store.get_published_by_slug(slug)
    except ConsoleError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except SQLAlchemyError as e:
        raise _db_error(e)


@router.get("/{form_id}")
def get_form(form_id: str, user: User = Depends(require_user)) -> dict:
    try:
        return form_store.get_form(form_id, user)
    except ConsoleError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except SQLAlchemyError as e:
        raise _db_error(e)


@router.post("", status_code=201)
def create_form(request: FormRequest, user: User = Depends(require_user)) -> dict:
    try:
        return form_store.create_form(request.body(), user)
    except ConsoleError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except SQLAlchemyError as e:
        raise _db_error(e)


@router.put("/{form_id}")
def update_form(form_id: str, request: FormRequest, user: User = Depends(require_user)) -> dict:
    try:
        return form_store.update_form(form_id, request.body(), user)
    except ConsoleError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except SQLAlchemyError as e:
        raise _db_error(e)


@router.delete("/{form_id}")
def delete_form(form_id: str, user: User = Depends(require_user)) -> dict:
    try:
        form_store.delete_form(form_id, user)
    except ConsoleError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except SQLAlchemyError as e:
        raise _db_error(e)
    return {"success": True}


@router.put("/{form_id}/publish")
def publish_form(form_id: str, user: User = Depends(require_user)) -> dict:
    try:
        return form_store.publish_form(form_id, user)
    except ConsoleError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except SQLAlchemyError as e:
        raise _db_error(e)


@router.put("/{form_id}/unpublish")
def unpublish_form(form_id: str, user: User = Depends(require_user)) -> dict:
    try:
        return form_store.unpublish_form(form_id, user)
    except ConsoleError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except SQLAlchemyError as e:
        raise _db_error(e)


@router.post("/{form_id}/clone", status_code=201)
def clone_form(form_id: str, user: User = Depends(require_user)) -> dict:
    try:
        return form_store.clone_form(form_id, user)
    except ConsoleError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except SQLAlchemyError as e:
        raise _db_error(e)


# =============================================================================
# Settings
# =============================================================================


@settings_router.get("")
def get_settings() -> dict:
    return forms_settings.get()


@settings_router.put("")
def update_settings(request: FormsSettingsRequest, user: User = Depends(require_user)) -> dict:
    changes = request.body()
    log.info(f"Forms builder settings updated by {user.login}")
    return forms_settings.update(lambda current: {**current, **changes})


@settings_router.post("/reset")
def reset_settings(user: User = Depends(require_user)) -> dict:
    log.info(f"Forms builder settings reset by {user.login}")
    return forms_settings.reset()
