# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Asset manager: uploaded images and their VDR publishing targets.

Uploading is two steps: the file is stored under a random name
(``/api/assets``), then a managed-asset record describing it is
created (``/api/managed-assets``). The asset type decides where the
image lands in the VDR repository when published.
"""
import hashlib
import logging
import re
import uuid
from pathlib import Path
from typing import Optional

from vdr_console import config
from vdr_console.errors import ValidationError
from vdr_console.store import DocumentStore
from vdr_console.utils import coalesce, now_iso

log = logging.getLogger(__name__)

asset_store = DocumentStore("managed-assets")

ASSET_TYPE_CONFIG: dict[str, dict[str, str]] = {
    "entity-logo": {
        "label": "Entity Logo",
        "description": "Logo for an entity (issuer, furnisher, verifier)",
        "githubPath": "credentials/entities/logos",
        "filenamePattern": "{entity-id}.{ext}",
    },
    "credential-background": {
        "label": "Credential Background",
        "description": "Background image for credential cards",
        "githubPath": "credentials/vct/backgrounds",
        "filenamePattern": "{name}.{ext}",
    },
    "credential-icon": {
        "label": "Credential Icon",
        "description": "Icon for credential types",
        "githubPath": "credentials/vct/icons",
        "filenamePattern": "{name}.{ext}",
    },
}

ALLOWED_MIMETYPES = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/gif": "gif",
    "image/svg+xml": "svg",
    "image/webp": "webp",
}

UPDATABLE_FIELDS = ("name", "type", "entityId", "publishedUri", "isPublished")


def safe_name(name: str) -> str:
    name = re.sub(r"\s+", "-", name.lower())
    return re.sub(r"[^a-z0-9-]", "", name)


def _extension(filename: str) -> str:
    if "." in filename:
        return filename.rsplit(".", 1)[1] or "png"
    return "png"


def get_github_file_path(asset: dict) -> str:
    """Repository path for a published asset."""
    asset_config = ASSET_TYPE_CONFIG[asset["type"]]
    ext = _extension(asset.get("filename") or "")
    if asset["type"] == "entity-logo":
        return f"{asset_config['githubPath']}/{asset.get('entityId')}.{ext}"
    return f"{asset_config['githubPath']}/{safe_name(asset.get('name') or '')}.{ext}"


def get_published_uri(asset: dict, base_url: str) -> str:
    return f"{base_url.rstrip('/')}/{get_github_file_path(asset)}"


def asset_path(filename: str) -> Path:
    """Location of a stored upload; rejects names that escape the asset dir."""
    if not filename or "/" in filename or "\\" in filename or filename.startswith("."):
        raise ValidationError("Invalid filename")
    return config.ASSETS_DIR / filename


def store_upload(content: bytes, original_name: str, mimetype: str) -> dict:
    """Write an uploaded image to the asset directory.

    The stored name is a fresh uuid with the extension of the declared
    image type; the client filename is kept only as ``originalName``.

    Returns:
        ``{filename, originalName, mimetype, size, hash, uri}``.
    """
    if mimetype not in ALLOWED_MIMETYPES:
        raise ValidationError(f"Unsupported file type: {mimetype or 'unknown'}")

    filename = f"{uuid.uuid4()}.{ALLOWED_MIMETYPES[mimetype]}"
    config.ASSETS_DIR.mkdir(parents=True, exist_ok=True)
    asset_path(filename).write_bytes(content)

    digest = hashlib.sha256(content).hexdigest()
    log.info(f"Stored upload {original_name} as {filename} ({len(content)} bytes)")
    return {
        "filename": filename,
        "originalName": original_name,
        "mimetype": mimetype,
        "size": len(content),
        "hash": digest,
        "uri": f"/assets/{filename}",
    }


def remove_upload(filename: Optional[str]) -> bool:
    if not filename:
        return False
    try:
        path = asset_path(filename)
    except ValidationError:
        return False
    if path.exists():
        path.unlink()
        return True
    return False


def _validate_type(asset_type: Optional[str]) -> None:
    if asset_type not in ASSET_TYPE_CONFIG:
        raise ValidationError(
            f"Invalid asset type. Must be one of: {', '.join(ASSET_TYPE_CONFIG)}"
        )


def build_asset(body: dict, user_ref: dict) -> dict:
    """Managed-asset record for an already-uploaded file."""
    filename = body.get("filename")
    if not filename:
        raise ValidationError("filename is required")
    if not body.get("name"):
        raise ValidationError("Name is required")
    asset_type = body.get("type") or "entity-logo"
    _validate_type(asset_type)
    if not body.get("entityId"):
        raise ValidationError("entityId is required")

    path = asset_path(filename)
    if not path.exists():
        raise ValidationError(f"Uploaded file not found: {filename}")
    content = path.read_bytes()

    now = now_iso()
    return {
        "id": str(uuid.uuid4()),
        "filename": filename,
        "originalName": body.get("originalName") or filename,
        "name": body["name"],
        "type": asset_type,
        "entityId": body["entityId"],
        "mimetype": body.get("mimetype") or "",
        "size": len(content),
        "hash": hashlib.sha256(content).hexdigest(),
        "localUri": f"/assets/{filename}",
        "publishedUri": body.get("publishedUri"),
        "isPublished": bool(body.get("isPublished")),
        "createdAt": now,
        "updatedAt": now,
        "uploader": {
            "id": user_ref["id"],
            "login": user_ref["login"],
            "name": user_ref.get("name") or "",
        },
    }


def apply_asset_update(existing: dict, body: dict) -> dict:
    if body.get("type") is not None:
        _validate_type(body["type"])
    updated = dict(existing)
    for field in UPDATABLE_FIELDS:
        updated[field] = coalesce(body.get(field), existing.get(field))
    updated["updatedAt"] = now_iso()
    return updated


def filter_assets(assets: list[dict], asset_type: Optional[str], entity_id: Optional[str]) -> list[dict]:
    if asset_type:
        assets = [a for a in assets if a.get("type") == asset_type]
    if entity_id:
        assets = [a for a in assets if a.get("entityId") == entity_id]
    return assets


def publish_target(asset: dict) -> dict:
    return {
        "githubPath": get_github_file_path(asset),
        "publishedUri": get_published_uri(asset, config.VDR_BASE_URL),
    }
