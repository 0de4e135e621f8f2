# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Request authentication for the console API.

Two layers:

- ``BearerTokenMiddleware`` checks the shared service token presented
  by the fronting proxy on every request except health probes.
- ``get_current_user`` / ``require_user`` resolve the acting user from
  the ``X-User-*`` headers the proxy sets after login. Write operations
  record this user as ``createdBy`` / ``updatedBy``.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

import vdr_console.config as _config

log = logging.getLogger(__name__)

# Paths exempt from bearer token auth (health probes)
EXEMPT_PATHS: set[str] = {"/livez", "/healthz", "/version"}

LOCAL_USER_ID = "local"


def _unauthorized(detail: str) -> JSONResponse:
    return JSONResponse(status_code=401, content={"detail": detail}, headers={"WWW-Authenticate": "Bearer"})


class BearerTokenMiddleware(BaseHTTPMiddleware):
    """Rejects calls that do not carry the proxy's service token.

    ``SERVICE_TOKEN`` is looked up per request so a reloaded config
    applies immediately. An empty token turns the check off.
    """

    async def dispatch(self, request: Request, call_next):
        expected = _config.SERVICE_TOKEN
        if not expected or request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        scheme, _, presented = request.headers.get("authorization", "").partition(" ")
        if scheme != "Bearer" or not presented:
            return _unauthorized("Missing or invalid Authorization header")
        if presented != expected:
            log.warning(f"Rejected service token from {request.client.host if request.client else 'unknown'}")
            return _unauthorized("Invalid bearer token")

        return await call_next(request)


@dataclass
class User:
    """The acting console user."""

    id: str
    login: str
    name: Optional[str] = None
    email: Optional[str] = None

    def ref(self) -> dict:
        """Compact ``{id, login, name}`` reference stored on records."""
        ref = {"id": self.id, "login": self.login}
        if self.name:
            ref["name"] = self.name
        return ref


def get_current_user(request: Request) -> Optional[User]:
    """Resolve the user from proxy headers, or None when anonymous.

    With ``REQUIRE_USER`` off, anonymous requests act as a local user.
    """
    user_id = request.headers.get("x-user-id")
    if user_id:
        return User(
            id=user_id,
            login=request.headers.get("x-user-login") or user_id,
            name=request.headers.get("x-user-name") or None,
            email=request.headers.get("x-user-email") or None,
        )
    if not _config.REQUIRE_USER:
        return User(id=LOCAL_USER_ID, login=LOCAL_USER_ID, name="Local User")
    return None


def require_user(user: Optional[User] = Depends(get_current_user)) -> User:
    """Dependency for write endpoints: 401 when no user is identified."""
    if user is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return user
