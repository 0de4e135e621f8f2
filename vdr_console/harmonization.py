# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Data harmonization: mapping furnisher fields onto the data dictionary.

Each mapping ties one field of one furnisher data source
(``entityId`` / ``sourceId`` / ``furnisherFieldId``) to one vocab
property (``vocabTypeId`` / ``vocabPropertyId``). A field maps to at
most one property.
"""
import logging
import uuid
from typing import Optional

from vdr_console.entities import load_entities, migrate_data_schema
from vdr_console.dictionary import vocab_type_store
from vdr_console.errors import ConflictError, ValidationError
from vdr_console.store import DocumentStore
from vdr_console.utils import coalesce, now_iso

log = logging.getLogger(__name__)

mapping_store = DocumentStore("field-mappings")

REQUIRED_FIELDS = ("entityId", "sourceId", "furnisherFieldId", "vocabTypeId", "vocabPropertyId")

UPDATABLE_FIELDS = (
    "entityName",
    "sourceName",
    "sourceType",
    "furnisherFieldName",
    "fieldPath",
    "vocabTypeId",
    "vocabTypeName",
    "vocabPropertyId",
    "vocabPropertyName",
    "transform",
    "notes",
)


def generate_field_path(entity_id: str, source_id: str, field_name: str) -> str:
    return f"{entity_id}.{source_id}.{field_name}"


def field_key(mapping: dict) -> tuple:
    return (mapping.get("entityId"), mapping.get("sourceId"), mapping.get("furnisherFieldId"))


def filter_mappings(
    mappings: list[dict],
    entity_id: Optional[str] = None,
    vocab_type_id: Optional[str] = None,
    source_id: Optional[str] = None,
) -> list[dict]:
    if entity_id:
        mappings = [m for m in mappings if m.get("entityId") == entity_id]
    if vocab_type_id:
        mappings = [m for m in mappings if m.get("vocabTypeId") == vocab_type_id]
    if source_id:
        mappings = [m for m in mappings if m.get("sourceId") == source_id]
    return mappings


def build_mapping(body: dict, existing: list[dict], user_ref: dict) -> dict:
    missing = [f for f in REQUIRED_FIELDS if not body.get(f)]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    key = field_key(body)
    if any(field_key(m) == key for m in existing):
        raise ConflictError("This field is already mapped")

    now = now_iso()
    mapping = {
        "id": str(uuid.uuid4()),
        "entityId": body["entityId"],
        "sourceId": body["sourceId"],
        "furnisherFieldId": body["furnisherFieldId"],
    }
    for field in UPDATABLE_FIELDS:
        mapping[field] = body.get(field)
    mapping["fieldPath"] = mapping["fieldPath"] or generate_field_path(
        body["entityId"], body["sourceId"], body.get("furnisherFieldName") or body["furnisherFieldId"]
    )
    mapping["createdAt"] = now
    mapping["updatedAt"] = now
    mapping["createdBy"] = user_ref
    return mapping


def apply_mapping_update(existing: dict, body: dict, user_ref: dict) -> dict:
    updated = dict(existing)
    for field in UPDATABLE_FIELDS:
        updated[field] = coalesce(body.get(field), existing.get(field))
    updated["updatedAt"] = now_iso()
    updated["updatedBy"] = user_ref
    return updated


def _source_index(entities: list[dict]) -> tuple[dict, dict]:
    entity_names = {}
    source_names = {}
    for entity in entities:
        entity_names[entity["id"]] = entity.get("name")
        for source in migrate_data_schema(entity.get("dataSchema")).get("sources", []):
            source_names[(entity["id"], source.get("id"))] = source.get("name")
    return entity_names, source_names


def mappings_with_details(mappings: list[dict]) -> list[dict]:
    """Mappings joined with current entity, source and vocabulary names.

    Names resolve to None when the referenced record no longer exists.
    """
    entity_names, source_names = _source_index(load_entities())
    vocab_types = {vt["id"]: vt for vt in vocab_type_store.all()}

    detailed = []
    for mapping in mappings:
        vocab_type = vocab_types.get(mapping.get("vocabTypeId"))
        prop = None
        if vocab_type:
            prop = next(
                (p for p in vocab_type.get("properties") or [] if p.get("id") == mapping.get("vocabPropertyId")),
                None,
            )
        detailed.append({
            **mapping,
            "entityName": entity_names.get(mapping.get("entityId")),
            "sourceName": source_names.get((mapping.get("entityId"), mapping.get("sourceId"))),
            "vocabTypeName": vocab_type.get("name") if vocab_type else None,
            "vocabPropertyName": (prop.get("displayName") or prop.get("name")) if prop else None,
        })
    return detailed


def harmonization_stats(mappings: list[dict]) -> dict:
    mapped_keys = {field_key(m) for m in mappings}
    unmapped = 0
    for entity in load_entities():
        for source in migrate_data_schema(entity.get("dataSchema")).get("sources", []):
            for field in source.get("fields") or []:
                if (entity["id"], source.get("id"), field.get("id")) not in mapped_keys:
                    unmapped += 1
    return {
        "totalMappings": len(mappings),
        "mappedEntities": len({m.get("entityId") for m in mappings}),
        "mappedVocabTypes": len({m.get("vocabTypeId") for m in mappings}),
        "unmappedFurnisherFields": unmapped,
    }
