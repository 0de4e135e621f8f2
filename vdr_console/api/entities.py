# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Entity registry endpoints."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from vdr_console import config
from vdr_console.api.models import CreateEntityRequest, UpdateEntityRequest
from vdr_console.auth import User, require_user
from vdr_console.entities import (
    apply_entity_update,
    build_entity,
    entity_store,
    filter_entities,
    get_entity,
    load_entities,
    migrate_entity_types,
    normalize_new_id,
    seed_entities,
)
from vdr_console.store import DocumentExistsError
from vdr_console.utils import now_iso

log = logging.getLogger(__name__)
router = APIRouter(prefix="/api/entities", tags=["entities"])


@router.get("")
def list_entities(types: Optional[str] = None, search: Optional[str] = None) -> list[dict]:
    """List entities, optionally filtered by type and a search string.

    ``types`` is comma separated; an entity matches if it has any of
    them. ``search`` is ignored below two characters.
    """
    return filter_entities(load_entities(), types, search)


@router.get("/export")
def export_entities() -> dict:
    return {"exportedAt": now_iso(), "entities": load_entities()}


@router.get("/{entity_id}")
def get_entity_by_id(entity_id: str) -> dict:
    entity = get_entity(entity_id)
    if entity is None:
        raise HTTPException(status_code=404, detail="Entity not found")
    return entity


@router.post("", status_code=201)
def create_entity(request: CreateEntityRequest, user: User = Depends(require_user)) -> dict:
    body = request.body()
    if not body.get("name"):
        raise HTTPException(status_code=400, detail="Name is required")

    load_entities()
    entity = build_entity(body, user.ref())
    if not entity["id"]:
        raise HTTPException(status_code=400, detail="Name is required")
    try:
        entity_store.insert(entity)
    except DocumentExistsError:
        raise HTTPException(status_code=409, detail="Entity with this ID already exists")

    log.info(f"Created entity {entity['id']}")
    return entity


@router.put("/{entity_id}")
def update_entity(
    entity_id: str,
    request: UpdateEntityRequest,
    user: User = Depends(require_user),
) -> dict:
    body = request.body()
    new_id = entity_id
    if body.get("newId") is not None and body["newId"] != entity_id:
        new_id = normalize_new_id(body["newId"])
        if new_id == config.ENTITY_ID_PREFIX:
            raise HTTPException(status_code=400, detail="Invalid entity ID")

    seed_entities()
    try:
        updated = entity_store.update(
            entity_id,
            lambda stored: apply_entity_update(migrate_entity_types(stored), body, user.ref(), new_id),
        )
    except DocumentExistsError:
        raise HTTPException(status_code=409, detail="Entity with this ID already exists")
    if updated is None:
        raise HTTPException(status_code=404, detail="Entity not found")

    if new_id != entity_id:
        log.info(f"Renamed entity {entity_id} -> {new_id}")
    return updated


@router.delete("/{entity_id}")
def delete_entity(entity_id: str, user: User = Depends(require_user)) -> dict:
    load_entities()
    if not entity_store.delete(entity_id):
        raise HTTPException(status_code=404, detail="Entity not found")
    log.info(f"Deleted entity {entity_id} by {user.login}")
    return {"success": True}
