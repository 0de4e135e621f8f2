# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Schema builder endpoints."""
import logging

from fastapi import APIRouter, Depends, HTTPException

from vdr_console import schema_builder
from vdr_console.api.models import ParseSchemaRequest, SchemaProjectRequest, ValidateDocumentRequest
from vdr_console.auth import User, require_user
from vdr_console.dictionary import get_vocab_type_or_404
from vdr_console.errors import ConsoleError
from vdr_console.schema_builder import schema_project_store
from vdr_console.store import DocumentExistsError

log = logging.getLogger(__name__)
router = APIRouter(prefix="/api/schemas", tags=["schemas"])


def _load(project_id: str) -> dict:
    try:
        return schema_builder.get_project_or_404(project_id)
    except ConsoleError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("")
def list_projects() -> list[dict]:
    return schema_project_store.all()


@router.post("/parse")
def parse_schema(request: ParseSchemaRequest) -> dict:
    """Property tree of an existing JSON Schema document."""
    try:
        return schema_builder.parse_json_schema(request.document)
    except ConsoleError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/from-vocab/{vocab_type_id}")
def project_from_vocab(vocab_type_id: str) -> dict:
    try:
        vocab_type = get_vocab_type_or_404(vocab_type_id)
    except ConsoleError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return schema_builder.project_from_vocab_type(vocab_type)


@router.get("/{project_id}")
def get_project(project_id: str) -> dict:
    return _load(project_id)


@router.post("", status_code=201)
def create_project(request: SchemaProjectRequest, user: User = Depends(require_user)) -> dict:
    try:
        project = schema_builder.build_project(request.body(), user.ref())
        schema_project_store.insert(project)
    except ConsoleError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except DocumentExistsError:
        raise HTTPException(status_code=409, detail="Schema project with this ID already exists")
    log.info(f"Created schema project {project['id']}")
    return project


@router.put("/{project_id}")
def update_project(
    project_id: str,
    request: SchemaProjectRequest,
    user: User = Depends(require_user),
) -> dict:
    body = request.body()
    try:
        updated = schema_project_store.update(
            project_id, lambda stored: schema_builder.apply_project_update(stored, body, user.ref())
        )
    except ConsoleError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    if updated is None:
        raise HTTPException(status_code=404, detail="Schema project not found")
    return updated


@router.delete("/{project_id}")
def delete_project(project_id: str, user: User = Depends(require_user)) -> dict:
    if not schema_project_store.delete(project_id):
        raise HTTPException(status_code=404, detail="Schema project not found")
    log.info(f"Deleted schema project {project_id} by {user.login}")
    return {"success": True}


@router.get("/{project_id}/json-schema")
def get_json_schema(project_id: str) -> dict:
    return schema_builder.generate_json_schema(_load(project_id))


@router.post("/{project_id}/validate")
def validate_sample(project_id: str, request: ValidateDocumentRequest) -> dict:
    """Validate a sample credential against the project's generated schema."""
    schema = schema_builder.generate_json_schema(_load(project_id))
    return schema_builder.validate_document(schema, request.data)
