# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Entity registry records.

Entities are the organisations of the ecosystem (issuers, data
furnishers, service providers). Records are stored as camelCase JSON
and migrated on read: older records carried a single ``type`` /
``entityType`` string or a ``types`` array instead of ``entityTypes``,
and older data schemas carried a flat ``fields`` list instead of
``sources``.
"""
import json
import logging
from pathlib import Path
from typing import Any, Optional

from vdr_console import config
from vdr_console.store import DocumentStore
from vdr_console.utils import coalesce, epoch_ms, now_iso, slugify

log = logging.getLogger(__name__)

entity_store = DocumentStore("entities")

LEGACY_TYPE_KEYS = ("types", "type", "entityType")

STRING_FIELDS = (
    "description",
    "logoUri",
    "primaryColor",
    "website",
    "contactEmail",
    "contactPhone",
    "contactName",
    "did",
)
LIST_FIELDS = ("regionsCovered", "dataProviderTypes", "serviceProviderTypes")

# Fields a PUT may change; None in the request keeps the stored value.
UPDATABLE_FIELDS = ("name", *STRING_FIELDS, *LIST_FIELDS, "status", "dataSchema")


def generate_entity_id(name: str) -> str:
    """Slug id from an entity name, e.g. ``Ville de Montréal`` → ``copa-ville-de-montreal``."""
    slug = slugify(name or "", accents=True)
    return f"{config.ENTITY_ID_PREFIX}{slug}" if slug else ""


def normalize_new_id(new_id: str) -> str:
    """Normalize a rename target; whitespace is dropped rather than dashed."""
    slug = slugify(new_id, accents=True, spaces=False)
    prefix = config.ENTITY_ID_PREFIX
    return slug if slug.startswith(prefix) else f"{prefix}{slug}"


def migrate_entity_types(entity: dict) -> dict:
    """Fold legacy type fields into ``entityTypes``."""
    if isinstance(entity.get("entityTypes"), list):
        return entity

    entity_types: list[str] = []
    types = entity.get("types")
    if isinstance(types, list) and types:
        entity_types = list(types)
    elif isinstance(entity.get("entityType"), str) and entity["entityType"]:
        entity_types = [entity["entityType"]]
    elif isinstance(entity.get("type"), str) and entity["type"]:
        entity_types = [entity["type"]]

    migrated = {k: v for k, v in entity.items() if k not in LEGACY_TYPE_KEYS}
    migrated["entityTypes"] = entity_types
    return migrated


def migrate_data_schema(schema: Optional[dict]) -> dict:
    """Upgrade a legacy flat ``fields`` schema to the ``sources`` layout."""
    if not schema:
        return {"sources": []}

    if isinstance(schema.get("sources"), list) and schema["sources"]:
        return schema

    fields = schema.get("fields")
    if isinstance(fields, list) and fields:
        return {
            "sources": [
                {
                    "id": f"source-{epoch_ms()}",
                    "name": "Credential",
                    "fields": fields,
                }
            ],
            "notes": schema.get("notes"),
        }

    return {"sources": [], "notes": schema.get("notes")}


def _requested_entity_types(body: dict) -> Optional[list]:
    if isinstance(body.get("entityTypes"), list):
        return body["entityTypes"]
    if isinstance(body.get("entityType"), str) and body["entityType"]:
        return [body["entityType"]]
    return None


def build_entity(body: dict, user_ref: dict) -> dict:
    """New entity record from a create request (validation is the caller's)."""
    now = now_iso()
    entity: dict[str, Any] = {
        "id": body.get("id") or generate_entity_id(body.get("name") or ""),
        "name": body.get("name"),
    }
    for field in STRING_FIELDS:
        entity[field] = body.get(field) or ""
    for field in LIST_FIELDS:
        entity[field] = body.get(field) or []
    entity["entityTypes"] = _requested_entity_types(body) or []
    if body.get("dataSchema"):
        entity["dataSchema"] = body["dataSchema"]
    entity["status"] = body.get("status") or "active"
    entity["createdAt"] = now
    entity["updatedAt"] = now
    entity["createdBy"] = user_ref
    return entity


def apply_entity_update(existing: dict, body: dict, user_ref: dict, new_id: str) -> dict:
    """Merge a PUT body over a stored entity."""
    updated = dict(existing)
    updated["id"] = new_id
    for field in UPDATABLE_FIELDS:
        updated[field] = coalesce(body.get(field), existing.get(field))
    updated["entityTypes"] = coalesce(
        _requested_entity_types(body), existing.get("entityTypes") or []
    )
    updated["updatedAt"] = now_iso()
    updated["updatedBy"] = user_ref
    for key in LEGACY_TYPE_KEYS:
        updated.pop(key, None)
    if updated.get("dataSchema") is None:
        updated.pop("dataSchema", None)
    return updated


def filter_entities(entities: list[dict], types: Optional[str], search: Optional[str]) -> list[dict]:
    """Filter by comma-separated types (any match) and a 2+ char search."""
    if types:
        wanted = [t.strip() for t in types.split(",") if t.strip()]
        if wanted:
            entities = [
                e for e in entities
                if any(t in (e.get("entityTypes") or []) for t in wanted)
            ]

    if search and len(search) >= 2:
        query = search.lower()
        entities = [
            e for e in entities
            if query in (e.get("name") or "").lower()
            or query in (e.get("description") or "").lower()
            or query in (e.get("id") or "").lower()
        ]
    return entities


def load_entities() -> list[dict]:
    """All entities, seeding on first use and migrating legacy fields."""
    seed_entities()
    return [migrate_entity_types(e) for e in entity_store.all()]


def get_entity(entity_id: str) -> Optional[dict]:
    seed_entities()
    entity = entity_store.get(entity_id)
    return migrate_entity_types(entity) if entity is not None else None


def _seed_path() -> Path:
    return config.SEED_DIR / "seed-entities.json"


def read_seed_file(path: Path) -> list[dict]:
    """Entities from a ``{"entities": [...]}`` seed file, timestamps defaulted."""
    data = json.loads(path.read_text(encoding="utf-8"))
    now = now_iso()
    return [
        {**e, "createdAt": e.get("createdAt") or now, "updatedAt": e.get("updatedAt") or now}
        for e in data.get("entities", [])
    ]


def seed_entities(path: Optional[Path] = None) -> bool:
    """Load the seed file into an empty registry, once per database."""
    path = path or _seed_path()
    if not path.exists():
        return False
    try:
        entities = read_seed_file(path)
    except (OSError, ValueError) as e:
        log.error(f"Failed to read entity seed file {path}: {e}")
        return False
    seeded = entity_store.seed(entities)
    if seeded:
        log.info(f"Entities initialized with {len(entities)} entities")
    return seeded
