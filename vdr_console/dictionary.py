# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Data dictionary: vocabulary types, their properties and sources.

A vocab type (``Property Address``, ``Mortgage Balance``...) groups
properties that furnishers report, and lists the entities that act as
sources for it. Categories group vocab types in the UI.
"""
import logging
import secrets
from typing import Optional

from vdr_console.errors import ConflictError, NotFoundError, ValidationError
from vdr_console.store import DocumentStore
from vdr_console.utils import coalesce, epoch_ms, now_iso, slugify

log = logging.getLogger(__name__)

vocab_type_store = DocumentStore("vocab-types")
category_store = DocumentStore("vocab-categories")

VALUE_TYPES = (
    "string",
    "number",
    "integer",
    "boolean",
    "date",
    "datetime",
    "currency",
    "url",
    "email",
    "phone",
    "array",
    "object",
)

CONSTRAINT_KEYS = (
    "minLength",
    "maxLength",
    "minimum",
    "maximum",
    "precision",
    "pattern",
    "format",
    "enum",
)

PROPERTY_FIELDS = (
    "name",
    "displayName",
    "description",
    "valueType",
    "required",
    "sampleValue",
    "path",
    "jsonLdTerm",
    "constraints",
    "metadata",
)

SOURCE_FIELDS = ("entityName", "regionsCovered", "updateFrequency", "notes", "apiEndpoint")

OTHER_CATEGORY = {"id": "other", "name": "Other", "description": "", "order": 999}


def new_property_id() -> str:
    return f"prop-{epoch_ms()}-{secrets.token_hex(3)}"


def clean_constraints(constraints: Optional[dict]) -> Optional[dict]:
    """Drop unknown and empty constraint entries; None when nothing is left."""
    if not constraints:
        return None
    cleaned = {}
    for key in CONSTRAINT_KEYS:
        value = constraints.get(key)
        if value is None or value == "" or value == []:
            continue
        cleaned[key] = value
    return cleaned or None


def _touch(vocab_type: dict, user_ref: dict) -> dict:
    vocab_type["updatedAt"] = now_iso()
    vocab_type["updatedBy"] = user_ref
    return vocab_type


# =============================================================================
# Vocab types
# =============================================================================


def filter_vocab_types(vocab_types: list[dict], category: Optional[str], search: Optional[str]) -> list[dict]:
    if category:
        vocab_types = [vt for vt in vocab_types if vt.get("category") == category]
    if search and len(search) >= 2:
        query = search.lower()
        vocab_types = [
            vt for vt in vocab_types
            if query in (vt.get("name") or "").lower()
            or query in (vt.get("description") or "").lower()
        ]
    return vocab_types


def build_vocab_type(body: dict, user_ref: dict) -> dict:
    name = body.get("name")
    if not name:
        raise ValidationError("Name is required")
    now = now_iso()
    return {
        "id": body.get("id") or slugify(name),
        "name": name,
        "description": body.get("description") or "",
        "category": body.get("category") or "other",
        "parentTypeId": body.get("parentTypeId") or None,
        "properties": body.get("properties") or [],
        "sources": body.get("sources") or [],
        "createdAt": now,
        "updatedAt": now,
        "createdBy": user_ref,
    }


def apply_vocab_type_update(existing: dict, body: dict, user_ref: dict) -> dict:
    """Merge a PUT body; ``parentTypeId`` may be explicitly cleared with null."""
    updated = dict(existing)
    for field in ("name", "description", "category", "properties", "sources"):
        updated[field] = coalesce(body.get(field), existing.get(field))
    if "parentTypeId" in body:
        updated["parentTypeId"] = body["parentTypeId"]
    return _touch(updated, user_ref)


def get_vocab_type_or_404(vocab_type_id: str) -> dict:
    vocab_type = vocab_type_store.get(vocab_type_id)
    if vocab_type is None:
        raise NotFoundError("Vocab type not found")
    vocab_type.setdefault("properties", [])
    vocab_type.setdefault("sources", [])
    return vocab_type


# =============================================================================
# Properties
# =============================================================================


def build_property(body: dict) -> dict:
    name = body.get("name")
    if not name:
        raise ValidationError("Property name is required")
    prop = {
        "id": body.get("id") or new_property_id(),
        "name": name,
        "displayName": body.get("displayName") or name,
        "description": body.get("description") or "",
        "valueType": body.get("valueType") or "string",
        "required": bool(body.get("required")),
        "sampleValue": body.get("sampleValue") or "",
        "path": body.get("path") or "",
        "metadata": body.get("metadata") or {},
    }
    if body.get("jsonLdTerm"):
        prop["jsonLdTerm"] = body["jsonLdTerm"]
    constraints = clean_constraints(body.get("constraints"))
    if constraints:
        prop["constraints"] = constraints
    return prop


def add_property(vocab_type: dict, body: dict, user_ref: dict) -> dict:
    prop = build_property(body)
    if any(p.get("name") == prop["name"] for p in vocab_type["properties"]):
        raise ConflictError("Property with this name already exists")
    vocab_type["properties"].append(prop)
    return _touch(vocab_type, user_ref)


def _property_index(vocab_type: dict, property_id: str) -> int:
    for index, prop in enumerate(vocab_type["properties"]):
        if prop.get("id") == property_id:
            return index
    raise NotFoundError("Property not found")


def update_property(vocab_type: dict, property_id: str, body: dict, user_ref: dict) -> dict:
    index = _property_index(vocab_type, property_id)
    current = vocab_type["properties"][index]
    new_name = body.get("name")
    if new_name and new_name != current.get("name"):
        if any(p.get("name") == new_name for p in vocab_type["properties"]):
            raise ConflictError("Property with this name already exists")

    updated = dict(current)
    for field in PROPERTY_FIELDS:
        if field == "constraints":
            continue
        updated[field] = coalesce(body.get(field), current.get(field))
    if "constraints" in body:
        constraints = clean_constraints(body["constraints"])
        if constraints:
            updated["constraints"] = constraints
        else:
            updated.pop("constraints", None)
    vocab_type["properties"][index] = {k: v for k, v in updated.items() if v is not None}
    return _touch(vocab_type, user_ref)


def delete_property(vocab_type: dict, property_id: str, user_ref: dict) -> dict:
    index = _property_index(vocab_type, property_id)
    del vocab_type["properties"][index]
    return _touch(vocab_type, user_ref)


def move_properties(source: dict, target: dict, property_ids: list[str], user_ref: dict) -> tuple[dict, dict]:
    """Move properties between vocab types; moved properties get fresh ids."""
    if source["id"] == target["id"]:
        raise ValidationError("Source and target vocab types must differ")

    wanted = set(property_ids)
    moving = [p for p in source["properties"] if p.get("id") in wanted]
    if not moving:
        raise ValidationError("No properties to move")

    target_names = {p.get("name") for p in target["properties"]}
    clashes = sorted(p["name"] for p in moving if p.get("name") in target_names)
    if clashes:
        raise ConflictError(f"Target already has properties named: {', '.join(clashes)}")

    moved_ids = {p["id"] for p in moving}
    source["properties"] = [p for p in source["properties"] if p.get("id") not in moved_ids]
    for prop in moving:
        target["properties"].append({**prop, "id": new_property_id()})

    log.info(f"Moved {len(moving)} properties from {source['id']} to {target['id']}")
    return _touch(source, user_ref), _touch(target, user_ref)


# =============================================================================
# Sources
# =============================================================================


def add_source(vocab_type: dict, body: dict, user_ref: dict) -> dict:
    entity_id = body.get("entityId")
    if not entity_id:
        raise ValidationError("Entity ID is required")
    if any(s.get("entityId") == entity_id for s in vocab_type["sources"]):
        raise ConflictError("This entity is already a source for this vocab type")
    vocab_type["sources"].append({
        "entityId": entity_id,
        "entityName": body.get("entityName") or "",
        "regionsCovered": body.get("regionsCovered") or [],
        "updateFrequency": body.get("updateFrequency") or "",
        "notes": body.get("notes") or "",
        "apiEndpoint": body.get("apiEndpoint") or "",
        "addedAt": now_iso(),
        "addedBy": user_ref,
    })
    return _touch(vocab_type, user_ref)


def _source_index(vocab_type: dict, entity_id: str) -> int:
    for index, source in enumerate(vocab_type["sources"]):
        if source.get("entityId") == entity_id:
            return index
    raise NotFoundError("Source not found")


def update_source(vocab_type: dict, entity_id: str, body: dict, user_ref: dict) -> dict:
    index = _source_index(vocab_type, entity_id)
    current = vocab_type["sources"][index]
    vocab_type["sources"][index] = {
        **current,
        **{f: coalesce(body.get(f), current.get(f)) for f in SOURCE_FIELDS},
    }
    return _touch(vocab_type, user_ref)


def delete_source(vocab_type: dict, entity_id: str, user_ref: dict) -> dict:
    index = _source_index(vocab_type, entity_id)
    del vocab_type["sources"][index]
    return _touch(vocab_type, user_ref)


# =============================================================================
# Categories
# =============================================================================


def build_category(body: dict, categories: list[dict]) -> dict:
    name = (body.get("name") or "").strip()
    if not name:
        raise ValidationError("Name is required")
    if any((c.get("name") or "").lower() == name.lower() for c in categories):
        raise ConflictError("Category with this name already exists")

    max_order = max([0] + [c.get("order") or 0 for c in categories])
    return {
        "id": slugify(name),
        "name": name,
        "description": (body.get("description") or "").strip(),
        "order": coalesce(body.get("order"), max_order + 1),
    }


def group_by_category(categories: list[dict], vocab_types: list[dict]) -> list[dict]:
    """Categories in display order, each with its vocab types.

    Types whose category is ``other`` or unknown are collected under a
    trailing ``Other`` group.
    """
    ordered = sorted(categories, key=lambda c: c.get("order") or 0)
    known = {c["id"] for c in ordered if c.get("id") != "other"}
    groups = [
        {**c, "vocabTypes": [vt for vt in vocab_types if vt.get("category") == c["id"]]}
        for c in ordered
        if c.get("id") != "other"
    ]
    leftovers = [vt for vt in vocab_types if vt.get("category") not in known]
    if leftovers:
        groups.append({**OTHER_CATEGORY, "vocabTypes": leftovers})
    return groups


# =============================================================================
# Search, export, stats
# =============================================================================


def search_vocab_types(vocab_types: list[dict], q: Optional[str]) -> list[dict]:
    if not q or len(q) < 2:
        return []
    query = q.lower()

    def matches(vt: dict) -> bool:
        if query in (vt.get("name") or "").lower():
            return True
        if query in (vt.get("description") or "").lower():
            return True
        return any(
            query in (p.get("name") or "").lower()
            or query in (p.get("displayName") or "").lower()
            or query in (p.get("description") or "").lower()
            for p in vt.get("properties") or []
        )

    return [vt for vt in vocab_types if matches(vt)]


def dictionary_stats(vocab_types: list[dict], categories: list[dict]) -> dict:
    category_counts: dict[str, int] = {}
    for vt in vocab_types:
        category = vt.get("category") or "other"
        category_counts[category] = category_counts.get(category, 0) + 1
    return {
        "totalVocabTypes": len(vocab_types),
        "totalProperties": sum(len(vt.get("properties") or []) for vt in vocab_types),
        "totalSources": sum(len(vt.get("sources") or []) for vt in vocab_types),
        "totalCategories": len(categories),
        "categoryCounts": category_counts,
    }


def export_dictionary() -> dict:
    return {
        "exportedAt": now_iso(),
        "categories": category_store.all(),
        "vocabTypes": vocab_type_store.all(),
    }
