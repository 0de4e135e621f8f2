# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Data harmonization endpoints."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from vdr_console.api.models import FieldMappingRequest
from vdr_console.auth import User, require_user
from vdr_console.errors import ConsoleError
from vdr_console.harmonization import (
    apply_mapping_update,
    build_mapping,
    filter_mappings,
    harmonization_stats,
    mapping_store,
    mappings_with_details,
)

log = logging.getLogger(__name__)
router = APIRouter(prefix="/api/harmonization", tags=["harmonization"])


@router.get("/mappings")
def list_mappings(
    entity_id: Optional[str] = Query(None, alias="entityId"),
    vocab_type_id: Optional[str] = Query(None, alias="vocabTypeId"),
    source_id: Optional[str] = Query(None, alias="sourceId"),
) -> list[dict]:
    return filter_mappings(mapping_store.all(), entity_id, vocab_type_id, source_id)


@router.get("/mappings/details")
def list_mapping_details() -> list[dict]:
    return mappings_with_details(mapping_store.all())


@router.post("/mappings", status_code=201)
def create_mapping(request: FieldMappingRequest, user: User = Depends(require_user)) -> dict:
    try:
        mapping = build_mapping(request.body(), mapping_store.all(), user.ref())
    except ConsoleError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    mapping_store.insert(mapping)
    log.info(f"Mapped {mapping['fieldPath']} -> {mapping['vocabTypeId']}.{mapping['vocabPropertyId']}")
    return mapping


@router.put("/mappings/{mapping_id}")
def update_mapping(
    mapping_id: str,
    request: FieldMappingRequest,
    user: User = Depends(require_user),
) -> dict:
    body = request.body()
    updated = mapping_store.update(mapping_id, lambda stored: apply_mapping_update(stored, body, user.ref()))
    if updated is None:
        raise HTTPException(status_code=404, detail="Mapping not found")
    return updated


@router.delete("/mappings/{mapping_id}")
def delete_mapping(mapping_id: str, user: User = Depends(require_user)) -> dict:
    if not mapping_store.delete(mapping_id):
        raise HTTPException(status_code=404, detail="Mapping not found")
    log.info(f"Deleted mapping {mapping_id} by {user.login}")
    return {"success": True}


@router.get("/stats")
def stats() -> dict:
    return harmonization_stats(mapping_store.all())
