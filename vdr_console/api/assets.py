# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Asset upload and managed-asset endpoints.

``/api/assets`` stores and serves raw image files;
``/api/managed-assets`` holds the records describing them.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import FileResponse

from vdr_console import assets, config
from vdr_console.api.models import ManagedAssetCreateRequest, ManagedAssetUpdateRequest
from vdr_console.assets import asset_store
from vdr_console.auth import User, require_user
from vdr_console.errors import ConsoleError

log = logging.getLogger(__name__)
router = APIRouter(prefix="/api/assets", tags=["assets"])
managed_router = APIRouter(prefix="/api/managed-assets", tags=["assets"])


# =============================================================================
# Files
# =============================================================================


@router.post("", status_code=201)
async def upload_asset(file: UploadFile = File(...), user: User = Depends(require_user)) -> dict:
    """Store an uploaded image under a generated name."""
    content = await file.read(config.MAX_UPLOAD_BYTES + 1)
    if len(content) > config.MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=413,
            detail=f"File too large (max {config.MAX_UPLOAD_BYTES} bytes)",
        )
    try:
        stored = assets.store_upload(content, file.filename or "", file.content_type or "")
    except ConsoleError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    log.info(f"Upload {stored['filename']} by {user.login}")
    return stored


@router.get("/{filename}")
def serve_asset(filename: str) -> FileResponse:
    try:
        path = assets.asset_path(filename)
    except ConsoleError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    if not path.is_file():
        raise HTTPException(status_code=404, detail="Asset file not found")
    return FileResponse(path)


# =============================================================================
# Managed assets
# =============================================================================


@managed_router.get("")
def list_managed_assets(
    asset_type: Optional[str] = Query(None, alias="type"),
    entity_id: Optional[str] = Query(None, alias="entityId"),
) -> list[dict]:
    return assets.filter_assets(asset_store.all(), asset_type, entity_id)


@managed_router.get("/{asset_id}")
def get_managed_asset(asset_id: str) -> dict:
    asset = asset_store.get(asset_id)
    if asset is None:
        raise HTTPException(status_code=404, detail="Asset not found")
    return asset


@managed_router.get("/{asset_id}/publish-target")
def get_publish_target(asset_id: str) -> dict:
    """Where the asset lands in the VDR repository and its public URI."""
    return assets.publish_target(get_managed_asset(asset_id))


@managed_router.post("", status_code=201)
def create_managed_asset(request: ManagedAssetCreateRequest, user: User = Depends(require_user)) -> dict:
    try:
        asset = assets.build_asset(request.body(), user.ref())
    except ConsoleError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    asset_store.insert(asset)
    log.info(f"Created {asset['type']} asset {asset['id']} for {asset['entityId']}")
    return asset


@managed_router.put("/{asset_id}")
def update_managed_asset(
    asset_id: str,
    request: ManagedAssetUpdateRequest,
    user: User = Depends(require_user),
) -> dict:
    body = request.body()
    try:
        updated = asset_store.update(asset_id, lambda stored: assets.apply_asset_update(stored, body))
    except ConsoleError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    if updated is None:
        raise HTTPException(status_code=404, detail="Asset not found")
    log.info(f"Updated asset {asset_id} by {user.login}")
    return updated


@managed_router.delete("/{asset_id}")
def delete_managed_asset(asset_id: str, user: User = Depends(require_user)) -> dict:
    asset = get_managed_asset(asset_id)
    asset_store.delete(asset_id)
    assets.remove_upload(asset.get("filename"))
    log.info(f"Deleted asset {asset_id} by {user.login}")
    return {"success": True}
