# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Schema builder: credential JSON Schemas from property trees.

A schema project holds a tree of ``SchemaProperty`` dicts describing
the ``credentialSubject`` of a credential. Projects can be generated
from a data-dictionary vocab type, rendered as JSON Schema (draft
2020-12), and used to validate sample documents. Existing JSON
Schemas can be parsed back into a property tree.
"""
import logging
import uuid
from typing import Any, Optional

import jsonschema
from jsonschema import Draft202012Validator

from vdr_console import config
from vdr_console.errors import NotFoundError, ValidationError
from vdr_console.store import DocumentStore
from vdr_console.utils import coalesce, now_iso

log = logging.getLogger(__name__)

JSON_SCHEMA_DRAFT = "https://json-schema.org/draft/2020-12/schema"

# Keywords copied verbatim between a SchemaProperty and its JSON Schema.
SCHEMA_KEYWORDS = ("title", "description", "format", "enum", "minLength", "maxLength", "minimum", "maximum", "pattern")

# Dictionary value type -> (JSON Schema type, format)
VALUE_TYPE_MAP: dict[str, tuple[str, Optional[str]]] = {
    "integer": ("integer", None),
    "number": ("number", None),
    "currency": ("number", None),
    "boolean": ("boolean", None),
    "date": ("string", "date"),
    "datetime": ("string", "date-time"),
    "email": ("string", "email"),
    "url": ("string", "uri"),
    "phone": ("string", None),
    "array": ("array", None),
    "object": ("object", None),
}

PROJECT_FIELDS = ("title", "description", "issuerEntityId", "vct", "properties")

schema_project_store = DocumentStore("schema-projects")


# =============================================================================
# Projects
# =============================================================================


def get_project_or_404(project_id: str) -> dict:
    project = schema_project_store.get(project_id)
    if project is None:
        raise NotFoundError("Schema project not found")
    return project


def build_project(body: dict, user_ref: dict) -> dict:
    title = (body.get("title") or "").strip()
    if not title:
        raise ValidationError("Title is required")
    now = now_iso()
    return {
        "id": body.get("id") or str(uuid.uuid4()),
        "title": title,
        "description": body.get("description") or "",
        "issuerEntityId": body.get("issuerEntityId"),
        "vct": body.get("vct"),
        "properties": body.get("properties") or [],
        "createdAt": now,
        "updatedAt": now,
        "createdBy": user_ref,
    }


def apply_project_update(existing: dict, body: dict, user_ref: dict) -> dict:
    if body.get("title") is not None and not body["title"].strip():
        raise ValidationError("Title is required")
    updated = dict(existing)
    for field in PROJECT_FIELDS:
        updated[field] = coalesce(body.get(field), existing.get(field))
    updated["updatedAt"] = now_iso()
    updated["updatedBy"] = user_ref
    return updated


# =============================================================================
# Generation
# =============================================================================


def _property_schema(prop: dict) -> dict:
    schema: dict[str, Any] = {"type": prop.get("type") or "string"}
    for key in SCHEMA_KEYWORDS:
        if prop.get(key) not in (None, "", []):
            schema[key] = prop[key]

    children = prop.get("children") or []
    if schema["type"] == "object":
        schema.update(_object_schema(children))
    elif schema["type"] == "array" and children:
        schema["items"] = {"type": "object", **_object_schema(children)}
    return schema


def _object_schema(props: list[dict]) -> dict:
    result: dict[str, Any] = {
        "properties": {p["name"]: _property_schema(p) for p in props if p.get("name")},
    }
    required = [p["name"] for p in props if p.get("name") and p.get("required")]
    if required:
        result["required"] = required
    return result


def generate_json_schema(project: dict) -> dict:
    """Render a project as a draft 2020-12 credential schema."""
    subject = {"type": "object", **_object_schema(project.get("properties") or [])}
    schema = {
        "$schema": JSON_SCHEMA_DRAFT,
        "$id": f"{config.VDR_BASE_URL.rstrip('/')}/credentials/schemas/{project['id']}.json",
        "title": project.get("title") or "",
        "description": project.get("description") or "",
        "type": "object",
        "properties": {"credentialSubject": subject},
        "required": ["credentialSubject"],
    }
    if project.get("vct"):
        schema["properties"]["vct"] = {"type": "string", "const": project["vct"]}
    return schema


def property_from_vocab(vocab_property: dict) -> dict:
    value_type = vocab_property.get("valueType") or "string"
    json_type, json_format = VALUE_TYPE_MAP.get(value_type, ("string", None))
    prop: dict[str, Any] = {
        "name": vocab_property["name"],
        "title": vocab_property.get("displayName") or vocab_property["name"],
        "description": vocab_property.get("description") or "",
        "type": json_type,
        "required": bool(vocab_property.get("required")),
    }
    constraints = vocab_property.get("constraints") or {}
    if constraints.get("format"):
        json_format = constraints["format"]
    if json_format:
        prop["format"] = json_format
    for key in ("enum", "minLength", "maxLength", "minimum", "maximum", "pattern"):
        if constraints.get(key) not in (None, "", []):
            prop[key] = constraints[key]
    return prop


def project_from_vocab_type(vocab_type: dict) -> dict:
    """Unsaved project fields built from a dictionary vocab type."""
    return {
        "title": vocab_type.get("name") or vocab_type["id"],
        "description": vocab_type.get("description") or "",
        "vocabTypeId": vocab_type["id"],
        "properties": [property_from_vocab(p) for p in vocab_type.get("properties") or []],
    }


# =============================================================================
# Parsing
# =============================================================================


def _parse_properties(properties: dict, required: list, parent_path: list[str]) -> list[dict]:
    parsed = []
    for name, definition in (properties or {}).items():
        if not isinstance(definition, dict):
            continue
        path = [*parent_path, name]
        prop: dict[str, Any] = {
            "name": name,
            "type": definition.get("type") or "string",
            "path": path,
            "required": name in (required or []),
        }
        for key in ("title", "description", "format"):
            if definition.get(key):
                prop[key] = definition[key]

        nested = definition
        if prop["type"] == "array" and isinstance(definition.get("items"), dict):
            nested = definition["items"]
        if isinstance(nested.get("properties"), dict):
            prop["children"] = _parse_properties(nested["properties"], nested.get("required") or [], path)
        parsed.append(prop)
    return parsed


def parse_json_schema(document: dict) -> dict:
    """Property tree of a credential JSON Schema.

    Properties are taken from ``properties.credentialSubject`` when the
    schema has one, otherwise from the top-level ``properties``. Paths
    are relative to that root.
    """
    if not isinstance(document, dict):
        raise ValidationError("Schema must be a JSON object")

    root = document
    subject = (document.get("properties") or {}).get("credentialSubject")
    if isinstance(subject, dict) and isinstance(subject.get("properties"), dict):
        root = subject

    return {
        "$id": document.get("$id") or "",
        "title": document.get("title") or "",
        "description": document.get("description"),
        "properties": _parse_properties(root.get("properties") or {}, root.get("required") or [], []),
    }


# =============================================================================
# Validation
# =============================================================================


def validate_document(schema: dict, data: Any, max_errors: int = 20) -> dict:
    """Validate ``data`` against ``schema``; returns ``{valid, errors}``."""
    errors: list[str] = []
    try:
        Draft202012Validator.check_schema(schema)
        validator = Draft202012Validator(schema)
        for error in validator.iter_errors(data):
            if len(errors) >= max_errors:
                errors.append(f"... and more errors (stopped at {max_errors})")
                break
            path = ".".join(str(p) for p in error.absolute_path) if error.absolute_path else "(root)"
            errors.append(f"{path}: {error.message}")
    except jsonschema.SchemaError as e:
        errors.append(f"Invalid schema: {e.message}")
    return {"valid": not errors, "errors": errors}
