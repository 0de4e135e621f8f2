# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Catalogue records: imported credentials and ecosystem tags."""
import logging
import re
import uuid
from typing import Optional

from vdr_console.orbit.client import OrbitError, get_orbit_client
from vdr_console.store import DocumentStore
from vdr_console.utils import now_iso

log = logging.getLogger(__name__)

credential_store = DocumentStore("catalogue-credentials")
tag_store = DocumentStore("ecosystem-tags")

DEFAULT_ECOSYSTEM_TAGS = [
    {"id": "bc-digital-trust", "name": "BC Digital Trust"},
    {"id": "sovrin", "name": "Sovrin"},
    {"id": "candy", "name": "CANdy"},
    {"id": "indicio", "name": "Indicio"},
    {"id": "other", "name": "Other"},
]


def list_tags() -> list[dict]:
    tag_store.seed(DEFAULT_ECOSYSTEM_TAGS)
    return tag_store.all()


def tag_id_for(name: str) -> str:
    return re.sub(r"\s+", "-", name.strip().lower())


def build_credential(
    schema_data: dict,
    cred_def_data: dict,
    ecosystem_tag_id: str,
    issuer_name: Optional[str],
    schema_source_url: Optional[str],
    cred_def_source_url: Optional[str],
    imported_by: str,
) -> dict:
    """Catalogue record for a schema + cred-def pair parsed from a ledger."""
    return {
        "id": str(uuid.uuid4()),
        "name": schema_data.get("name"),
        "version": schema_data.get("version"),
        "schemaId": schema_data.get("schemaId"),
        "credDefId": cred_def_data.get("credDefId"),
        "issuerDid": schema_data.get("issuerDid") or cred_def_data.get("issuerDid"),
        "issuerName": issuer_name or None,
        "attributes": schema_data.get("attributes") or [],
        "ecosystemTag": ecosystem_tag_id,
        "schemaSourceUrl": schema_source_url,
        "credDefSourceUrl": cred_def_source_url,
        "ledger": schema_data.get("ledger") or cred_def_data.get("ledger"),
        "usageType": "verification-only",
        "importedAt": now_iso(),
        "importedBy": imported_by,
        "orbitSchemaId": None,
        "orbitCredDefId": None,
        "orbitRegistrationError": None,
    }


async def register_with_orbit(credential: dict, schema_data: dict, cred_def_data: dict) -> dict:
    """Register the schema then the cred-def with Orbit.

    Failures are recorded on ``orbitRegistrationError``; the credential
    is returned either way so the import itself still succeeds.
    """
    client = get_orbit_client()
    try:
        orbit_schema_id = await client.register_schema(schema_data)
        credential["orbitSchemaId"] = orbit_schema_id
        credential["orbitCredDefId"] = await client.register_cred_def(
            {**cred_def_data, "name": schema_data.get("name")},
            orbit_schema_id,
        )
        log.info(f"Registered {credential['name']} with Orbit")
    except OrbitError as e:
        log.error(f"Orbit import failed: {e.message}")
        credential["orbitRegistrationError"] = e.message
    return credential


def save_credential(credential: dict) -> dict:
    """Store a new credential at the front of the catalogue."""
    credential_store.insert(credential, first=True)
    log.info(f"Imported credential: {credential['name']} {credential['version']}")
    return credential
