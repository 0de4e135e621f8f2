# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Badge definitions and their VDR export format.

A badge is awarded when a holder's data satisfies its eligibility
rules (combined with ``all`` or ``any``), proven by the configured
evidence sources and proof method.
"""
import logging
import re
from typing import Any, Optional

from vdr_console.errors import ConflictError, NotFoundError, ValidationError
from vdr_console.store import DocumentStore, SettingsStore
from vdr_console.utils import coalesce, drop_none, now_iso

log = logging.getLogger(__name__)

BADGE_EXPORT_SCHEMA = "https://openpropertyassociation.ca/schemas/badge-definition/v1"

DEFAULT_BADGE_CATEGORIES = [
    {
        "id": "equity",
        "label": "Equity Badges",
        "description": "Badges based on portfolio equity thresholds",
        "color": "#10B981",
    },
    {
        "id": "property-count",
        "label": "Property Count Badges",
        "description": "Badges based on number of properties owned",
        "color": "#6366F1",
    },
    {
        "id": "financial",
        "label": "Financial Status Badges",
        "description": "Badges related to mortgage, income, and credit status",
        "color": "#F59E0B",
    },
    {
        "id": "verification",
        "label": "Verification Badges",
        "description": "Badges for identity, title, and other verifications",
        "color": "#3B82F6",
    },
]

DEFAULT_PROOF_METHODS = [
    {
        "id": "range_proof",
        "label": "Range Proof",
        "description": "Proves a value falls within a range without revealing the exact value",
    },
    {
        "id": "count_proof",
        "label": "Count Proof",
        "description": "Proves a count meets or exceeds a threshold",
    },
    {
        "id": "credential_proof",
        "label": "Credential Proof",
        "description": "Proves possession of a valid credential",
    },
    {
        "id": "direct_attestation",
        "label": "Direct Attestation",
        "description": "Direct attestation from an authorized party",
    },
]

OPERATOR_LABELS = {
    "equals": "equals",
    "not_equals": "does not equal",
    "greater_than": "is greater than",
    "less_than": "is less than",
    "greater_or_equal": "is at least",
    "less_or_equal": "is at most",
    "contains": "contains",
    "exists": "exists",
    "count_gte": "count is at least",
}

EVIDENCE_TYPE_LABELS = {
    "credential_attestation": "Credential Attestation",
    "data_furnisher": "Data Furnisher",
    "self_attestation": "Self Attestation",
}

UPDATABLE_FIELDS = (
    "schemaId",
    "name",
    "description",
    "categoryId",
    "eligibilityRules",
    "ruleLogic",
    "evidenceConfig",
    "proofMethod",
    "templateUri",
    "templateAssetId",
    "status",
    "version",
)

badge_store = DocumentStore("badges")
badge_settings = SettingsStore(
    "badges",
    {"categories": DEFAULT_BADGE_CATEGORIES, "proofMethods": DEFAULT_PROOF_METHODS},
)


def generate_badge_id(name: str) -> str:
    """``Equity > $1M`` → ``equity-1m``."""
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, int):
        return f"{value:,}"
    if isinstance(value, float):
        return f"{value:,.3f}".rstrip("0").rstrip(".")
    return "" if value is None else str(value)


def generate_rule_description(
    rule: dict,
    vocab_type_name: Optional[str] = None,
    property_name: Optional[str] = None,
) -> str:
    """Readable form of a rule, e.g. ``equity is at least 1,000,000``."""
    prop = property_name or rule.get("vocabPropertyId") or ""
    operator = rule.get("operator")
    if operator == "exists":
        return f"{prop} must exist"
    label = OPERATOR_LABELS.get(operator, operator or "")
    return f"{prop} {label} {_format_value(rule.get('value'))}"


def update_settings(body: dict) -> dict:
    return badge_settings.update(lambda current: {
        "categories": body.get("categories") or current["categories"],
        "proofMethods": body.get("proofMethods") or current["proofMethods"],
    })


def filter_badges(
    badges: list[dict],
    category: Optional[str] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
) -> list[dict]:
    if category:
        badges = [b for b in badges if b.get("categoryId") == category]
    if status:
        badges = [b for b in badges if b.get("status") == status]
    if search and len(search) >= 2:
        query = search.lower()
        badges = [
            b for b in badges
            if query in (b.get("name") or "").lower()
            or query in (b.get("description") or "").lower()
            or query in (b.get("id") or "").lower()
        ]
    return badges


def get_badge_or_404(badge_id: str) -> dict:
    badge = badge_store.get(badge_id)
    if badge is None:
        raise NotFoundError("Badge not found")
    return badge


def create_badge(body: dict, user_ref: dict) -> dict:
    if not body.get("id") or not body.get("name"):
        raise ValidationError("ID and name are required")
    if badge_store.exists(body["id"]):
        raise ConflictError("Badge with this ID already exists")

    now = now_iso()
    badge = drop_none({
        "id": body["id"],
        "schemaId": body.get("schemaId") or "",
        "name": body["name"],
        "description": body.get("description") or "",
        "categoryId": body.get("categoryId") or "",
        "eligibilityRules": body.get("eligibilityRules") or [],
        "ruleLogic": body.get("ruleLogic") or "all",
        "evidenceConfig": body.get("evidenceConfig") or [],
        "proofMethod": body.get("proofMethod") or "credential_proof",
        "templateUri": body.get("templateUri") or None,
        "templateAssetId": body.get("templateAssetId") or None,
        "status": body.get("status") or "draft",
        "version": body.get("version") or "1.0",
        "createdAt": now,
        "updatedAt": now,
        "createdBy": user_ref,
    })
    badge_store.insert(badge)
    log.info(f"Created badge {badge['id']}")
    return badge


def apply_badge_update(existing: dict, body: dict, user_ref: dict) -> dict:
    updated = dict(existing)
    for field in UPDATABLE_FIELDS:
        updated[field] = coalesce(body.get(field), existing.get(field))
    updated["updatedAt"] = now_iso()
    updated["updatedBy"] = user_ref
    return drop_none(updated)


def update_badge(badge_id: str, body: dict, user_ref: dict) -> dict:
    updated = badge_store.update(badge_id, lambda stored: apply_badge_update(stored, body, user_ref))
    if updated is None:
        raise NotFoundError("Badge not found")
    return updated


def delete_badge(badge_id: str) -> None:
    if not badge_store.delete(badge_id):
        raise NotFoundError("Badge not found")


def badge_to_export_format(badge: dict) -> dict:
    """The published VDR representation of a badge."""
    rules = [
        drop_none({
            "vocabType": rule.get("vocabTypeId"),
            "property": rule.get("vocabPropertyId"),
            "operator": rule.get("operator"),
            "value": rule.get("value"),
            "description": rule.get("description") or generate_rule_description(rule),
        })
        for rule in badge.get("eligibilityRules") or []
    ]
    sources = [
        {
            "type": config.get("type"),
            "description": config.get("description") or "",
            "required": bool(config.get("required")),
        }
        for config in badge.get("evidenceConfig") or []
    ]
    metadata = {"createdAt": badge.get("createdAt")}
    if badge.get("status") == "published":
        metadata["publishedAt"] = now_iso()
    metadata["version"] = badge.get("version") or "1.0"

    return {
        "$schema": BADGE_EXPORT_SCHEMA,
        "id": badge["id"],
        "schemaId": badge.get("schemaId") or "",
        "name": badge.get("name"),
        "description": badge.get("description") or "",
        "category": badge.get("categoryId") or "",
        "eligibility": {"rules": rules, "logic": badge.get("ruleLogic") or "all"},
        "evidence": {"sources": sources, "proofMethod": badge.get("proofMethod")},
        "visual": drop_none({"templateUri": badge.get("templateUri")}),
        "metadata": metadata,
    }
