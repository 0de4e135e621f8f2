# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Orbit Credential Management API client.

Registers externally-anchored AnonCreds artifacts with Orbit so the
LOB can verify presentations against them:

- ``POST /api/lob/{lob_id}/schema/store`` imports a ledger schema and
  returns Orbit's internal schema id.
- ``POST /api/lob/{lob_id}/cred-def/store`` imports a credential
  definition against that internal schema id.

Configuration (base URL, LOB id, API key) is resolved on every call so
changes saved in settings apply without a restart.
"""
import logging
from typing import Any, Optional

import httpx

from vdr_console.orbit.settings import get_orbit_api_config

log = logging.getLogger(__name__)

CREDENTIAL_MGMT_API = "credentialMgmt"


class OrbitError(Exception):
    """Base class for Orbit integration failures."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class OrbitNotConfiguredError(OrbitError):
    """Raised when the API base URL or LOB id is missing."""


class OrbitRequestError(OrbitError):
    """Raised when Orbit rejects a request or cannot be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(message)


# =============================================================================
# Singleton
# =============================================================================

_client: Optional["OrbitClient"] = None


def get_orbit_client() -> "OrbitClient":
    """Get or create the Orbit client singleton."""
    global _client
    if _client is None:
        from vdr_console.config import ORBIT_TIMEOUT
        _client = OrbitClient(timeout=ORBIT_TIMEOUT)
    return _client


def reset_orbit_client() -> None:
    """Reset the singleton (for testing)."""
    global _client
    _client = None


async def close_orbit_client() -> None:
    """Close the HTTP client (call during shutdown)."""
    global _client
    if _client is not None:
        await _client.close()
        _client = None


# =============================================================================
# Client
# =============================================================================


class OrbitClient:
    """Async HTTP client for the Orbit credential-management API."""

    def __init__(
        self,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._http = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=10.0),
            transport=transport,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._http.aclose()

    def _resolve(self, api_type: str) -> tuple[str, str, dict]:
        """Return ``(base_url, lob_id, headers)`` or raise if unconfigured."""
        api_config = get_orbit_api_config(api_type)
        if not api_config:
            raise OrbitNotConfiguredError(
                "Orbit Credential Management API not configured. "
                "Please configure it in Settings → Orbit Configuration."
            )
        if not api_config["lobId"]:
            raise OrbitNotConfiguredError(
                "Orbit LOB ID not configured. "
                "Please configure it in Settings → Orbit Configuration."
            )

        headers = {"Content-Type": "application/json"}
        if api_config["apiKey"]:
            headers["api-key"] = api_config["apiKey"]
        return api_config["baseUrl"].rstrip("/"), api_config["lobId"], headers

    async def _post(self, what: str, url: str, payload: dict, headers: dict) -> dict:
        log.info(f"Orbit {what} import: POST {url}")
        try:
            response = await self._http.post(url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise OrbitRequestError(f"Failed to import {what} to Orbit: {e}") from e

        if not response.is_success:
            log.error(
                f"Orbit {what} import failed: {response.status_code} "
                f"{response.text[:500]}"
            )
            raise OrbitRequestError(
                f"Failed to import {what} to Orbit: {response.status_code} - {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            result = response.json()
        except ValueError as e:
            raise OrbitRequestError(f"Orbit returned invalid JSON for {what} import") from e
        if not isinstance(result, dict) or not isinstance(result.get("data") or {}, dict):
            raise OrbitRequestError(f"Unexpected response from Orbit for {what} import")
        return result

    async def register_schema(self, schema_data: dict) -> Any:
        """Import a ledger schema; returns Orbit's internal schema id."""
        base_url, lob_id, headers = self._resolve(CREDENTIAL_MGMT_API)
        payload = {
            "schemaInfo": {
                "schemaLedgerId": schema_data.get("schemaId"),
                "credentialFormat": "ANONCRED",
            }
        }
        result = await self._post(
            "schema", f"{base_url}/api/lob/{lob_id}/schema/store", payload, headers
        )
        return (result.get("data") or {}).get("schemaId") or result.get("schemaId")

    async def register_cred_def(self, cred_def_data: dict, orbit_schema_id: Any) -> Any:
        """Import a credential definition; returns Orbit's credential id."""
        base_url, lob_id, headers = self._resolve(CREDENTIAL_MGMT_API)
        name = cred_def_data.get("name") or "Imported credential"
        payload = {
            "schemaId": orbit_schema_id,
            "credentialDefinitionId": cred_def_data.get("credDefId"),
            "description": f"{name} - imported from external ledger",
            "addCredDef": False,
        }
        result = await self._post(
            "credential definition",
            f"{base_url}/api/lob/{lob_id}/cred-def/store",
            payload,
            headers,
        )
        return (result.get("data") or {}).get("credentialId") or result.get("credentialId")
