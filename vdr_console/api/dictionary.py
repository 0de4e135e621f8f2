# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Data dictionary endpoints: vocab types, properties, sources, categories."""
import logging
from typing import Callable, Optional

from fastapi import APIRouter, Depends, HTTPException

from vdr_console import dictionary
from vdr_console.api.models import (
    CategoryRequest,
    MovePropertiesRequest,
    VocabPropertyRequest,
    VocabSourceRequest,
    VocabTypeRequest,
)
from vdr_console.auth import User, require_user
from vdr_console.dictionary import category_store, vocab_type_store
from vdr_console.errors import ConsoleError
from vdr_console.store import DocumentExistsError

log = logging.getLogger(__name__)
router = APIRouter(prefix="/api/dictionary", tags=["dictionary"])


def _load(vocab_type_id: str) -> dict:
    try:
        return dictionary.get_vocab_type_or_404(vocab_type_id)
    except ConsoleError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


def _change(vocab_type_id: str, change: Callable[[dict], dict]) -> dict:
    """Apply ``change`` to a stored vocab type in one transaction."""
    try:
        updated = vocab_type_store.update(vocab_type_id, change)
    except ConsoleError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    if updated is None:
        raise HTTPException(status_code=404, detail="Vocab type not found")
    return updated


# =============================================================================
# Vocab types
# =============================================================================


@router.get("/vocab-types")
def list_vocab_types(category: Optional[str] = None, search: Optional[str] = None) -> list[dict]:
    return dictionary.filter_vocab_types(vocab_type_store.all(), category, search)


@router.get("/vocab-types/{vocab_type_id}")
def get_vocab_type(vocab_type_id: str) -> dict:
    return _load(vocab_type_id)


@router.post("/vocab-types", status_code=201)
def create_vocab_type(request: VocabTypeRequest, user: User = Depends(require_user)) -> dict:
    try:
        vocab_type = dictionary.build_vocab_type(request.body(), user.ref())
        vocab_type_store.insert(vocab_type)
    except ConsoleError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except DocumentExistsError:
        raise HTTPException(status_code=409, detail="Vocab type with this ID already exists")

    log.info(f"Created vocab type {vocab_type['id']}")
    return vocab_type


@router.put("/vocab-types/{vocab_type_id}")
def update_vocab_type(
    vocab_type_id: str,
    request: VocabTypeRequest,
    user: User = Depends(require_user),
) -> dict:
    body = request.body()
    return _change(
        vocab_type_id,
        lambda vocab_type: dictionary.apply_vocab_type_update(vocab_type, body, user.ref()),
    )


@router.delete("/vocab-types/{vocab_type_id}")
def delete_vocab_type(vocab_type_id: str, user: User = Depends(require_user)) -> dict:
    if not vocab_type_store.delete(vocab_type_id):
        raise HTTPException(status_code=404, detail="Vocab type not found")
    log.info(f"Deleted vocab type {vocab_type_id} by {user.login}")
    return {"success": True}


# =============================================================================
# Properties
# =============================================================================


@router.post("/vocab-types/{vocab_type_id}/properties", status_code=201)
def add_property(
    vocab_type_id: str,
    request: VocabPropertyRequest,
    user: User = Depends(require_user),
) -> dict:
    body = request.body()
    return _change(vocab_type_id, lambda vocab_type: dictionary.add_property(vocab_type, body, user.ref()))


@router.post("/vocab-types/{vocab_type_id}/properties/move")
def move_properties(
    vocab_type_id: str,
    request: MovePropertiesRequest,
    user: User = Depends(require_user),
) -> dict:
    """Move properties to another vocab type; returns both updated types."""
    target_id = request.target_vocab_type_id

    def move(vocab_types: dict[str, dict]) -> dict[str, dict]:
        source, target = dictionary.move_properties(
            vocab_types[vocab_type_id], vocab_types[target_id], request.property_ids, user.ref()
        )
        return {vocab_type_id: source, target_id: target}

    try:
        moved = vocab_type_store.update_many([vocab_type_id, target_id], move)
    except ConsoleError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    if moved is None:
        raise HTTPException(status_code=404, detail="Vocab type not found")
    return {"source": moved[vocab_type_id], "target": moved[target_id]}


@router.put("/vocab-types/{vocab_type_id}/properties/{property_id}")
def update_property(
    vocab_type_id: str,
    property_id: str,
    request: VocabPropertyRequest,
    user: User = Depends(require_user),
) -> dict:
    body = request.body()
    return _change(
        vocab_type_id,
        lambda vocab_type: dictionary.update_property(vocab_type, property_id, body, user.ref()),
    )


@router.delete("/vocab-types/{vocab_type_id}/properties/{property_id}")
def delete_property(vocab_type_id: str, property_id: str, user: User = Depends(require_user)) -> dict:
    return _change(
        vocab_type_id,
        lambda vocab_type: dictionary.delete_property(vocab_type, property_id, user.ref()),
    )


# =============================================================================
# Sources
# =============================================================================


@router.post("/vocab-types/{vocab_type_id}/sources", status_code=201)
def add_source(
    vocab_type_id: str,
    request: VocabSourceRequest,
    user: User = Depends(require_user),
) -> dict:
    body = request.body()
    return _change(vocab_type_id, lambda vocab_type: dictionary.add_source(vocab_type, body, user.ref()))


@router.put("/vocab-types/{vocab_type_id}/sources/{entity_id}")
def update_source(
    vocab_type_id: str,
    entity_id: str,
    request: VocabSourceRequest,
    user: User = Depends(require_user),
) -> dict:
    body = request.body()
    return _change(
        vocab_type_id,
        lambda vocab_type: dictionary.update_source(vocab_type, entity_id, body, user.ref()),
    )


@router.delete("/vocab-types/{vocab_type_id}/sources/{entity_id}")
def delete_source(vocab_type_id: str, entity_id: str, user: User = Depends(require_user)) -> dict:
    return _change(
        vocab_type_id,
        lambda vocab_type: dictionary.delete_source(vocab_type, entity_id, user.ref()),
    )


# =============================================================================
# Categories
# =============================================================================


@router.get("/categories")
def list_categories() -> list[dict]:
    return category_store.all()


@router.get("/categories/grouped")
def grouped_categories() -> list[dict]:
    return dictionary.group_by_category(category_store.all(), vocab_type_store.all())


@router.post("/categories", status_code=201)
def create_category(request: CategoryRequest, user: User = Depends(require_user)) -> dict:
    try:
        category = dictionary.build_category(request.body(), category_store.all())
        category_store.insert(category)
    except ConsoleError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except DocumentExistsError:
        raise HTTPException(status_code=409, detail="Category with this name already exists")

    log.info(f"Created category {category['id']} by {user.login}")
    return category


# =============================================================================
# Search, export, stats
# =============================================================================


@router.get("/search")
def search(q: Optional[str] = None) -> dict:
    return {"vocabTypes": dictionary.search_vocab_types(vocab_type_store.all(), q)}


@router.get("/export")
def export() -> dict:
    return dictionary.export_dictionary()


@router.get("/stats")
def stats() -> dict:
    return dictionary.dictionary_stats(vocab_type_store.all(), category_store.all())
