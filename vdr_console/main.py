# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""VDR Console FastAPI application.

One router per console app (entities, credential catalogue, data
dictionary, harmonization, assets, forms, schemas, badges, settings)
over a shared SQL database.
"""
import logging
import os
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from vdr_console import __version__, config
from vdr_console.auth import EXEMPT_PATHS, BearerTokenMiddleware
from vdr_console.catalogue.fetch import close_page_fetcher
from vdr_console.db.session import init_database
from vdr_console.entities import seed_entities
from vdr_console.logging_config import configure_logging
from vdr_console.orbit.client import close_orbit_client

configure_logging()
log = logging.getLogger("vdr-console")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    log.info("Starting VDR Console...")
    init_database()
    seed_entities()
    log.info("VDR Console started")

    yield

    log.info("Shutting down VDR Console...")
    await close_orbit_client()
    await close_page_fetcher()
    log.info("VDR Console stopped")


app = FastAPI(
    title="VDR Console",
    version=__version__,
    description="Administrative console for the verifiable data registry",
    lifespan=lifespan,
)


# -----------------------------------------------------------------------------
# Authentication Middleware
# -----------------------------------------------------------------------------

app.add_middleware(BearerTokenMiddleware)


# -----------------------------------------------------------------------------
# API Routers
# -----------------------------------------------------------------------------

from vdr_console.api import (  # noqa: E402
    assets,
    badges,
    credential_catalogue,
    dictionary,
    entities,
    forms,
    harmonization,
    health,
    schemas,
    settings,
)

app.include_router(health.router)
app.include_router(entities.router)
app.include_router(credential_catalogue.router)
app.include_router(dictionary.router)
app.include_router(harmonization.router)
app.include_router(assets.router)
app.include_router(assets.managed_router)
app.include_router(forms.router)
app.include_router(forms.settings_router)
app.include_router(schemas.router)
app.include_router(badges.router)
app.include_router(settings.router)


# -----------------------------------------------------------------------------
# Version Endpoint
# -----------------------------------------------------------------------------

@app.get("/version")
def version() -> dict:
    """Service version, build commit and database backend."""
    build_sha = os.getenv("GIT_SHA", "")
    info = {
        "service": "vdr-console",
        "version": __version__,
        "git_sha": build_sha or "unknown",
        "database": "sqlite" if config.DATABASE_URL.startswith("sqlite") else "postgresql",
    }
    if build_sha:
        repo = os.getenv("GITHUB_REPOSITORY", "Rich-Connexions-Ltd/vdr-console")
        info["short_sha"] = build_sha[:7]
        info["github_url"] = f"https://github.com/{repo}/commit/{build_sha}"
    return info


# -----------------------------------------------------------------------------
# Request Logging Middleware
# -----------------------------------------------------------------------------

@app.middleware("http")
async def request_logging(request: Request, call_next):
    """One log line per API call; probes are logged at debug level."""
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = int((time.perf_counter() - started) * 1000)

    level = logging.DEBUG if request.url.path in EXEMPT_PATHS else logging.INFO
    log.log(
        level,
        f"request_complete status={response.status_code} duration_ms={elapsed_ms}",
        extra={
            "route": request.url.path,
            "method": request.method,
            "status": response.status_code,
            "user": request.headers.get("x-user-login"),
        },
    )
    return response
