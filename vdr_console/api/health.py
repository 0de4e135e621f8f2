# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Health check endpoints.

| Endpoint     | Purpose                          | Status     |
|--------------|----------------------------------|------------|
| GET /livez   | Liveness: is the process alive?  | Always 200 |
| GET /healthz | Readiness: database reachable?   | 200 / 503  |
"""
import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from vdr_console.db import session as db_session

log = logging.getLogger(__name__)
router = APIRouter(tags=["health"])


@router.get("/livez")
async def livez():
    """Liveness probe, always 200."""
    return {"status": "alive", "service": "vdr-console"}


@router.get("/healthz")
async def healthz():
    """Readiness probe: 200 if the database answers, 503 otherwise."""
    if not db_session.check_database():
        log.warning("Health check: database unavailable")
        return JSONResponse(
            content={"status": "unhealthy", "database": "unavailable"},
            status_code=503,
        )
    return {"status": "ok", "database": "connected"}
