# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Orbit API configuration.

All Orbit APIs share one LOB id and API key; each API has its own
base URL. Values saved through the settings endpoints take precedence
over the ``VDR_CONSOLE_ORBIT_*`` environment variables.
"""
import logging
from typing import Optional

from vdr_console import config
from vdr_console.store import SettingsStore
from vdr_console.utils import now_iso

log = logging.getLogger(__name__)

orbit_settings = SettingsStore("orbit", {"lobId": "", "apiKey": "", "apis": {}})


def get_orbit_api_config(api_type: str) -> Optional[dict]:
    """``{baseUrl, lobId, apiKey}`` for one API, or None without a base URL."""
    stored = orbit_settings.get()
    api = (stored.get("apis") or {}).get(api_type) or {}
    base_url = api.get("baseUrl") or config.ORBIT_BASE_URLS.get(api_type, "")
    if not base_url:
        return None
    return {
        "baseUrl": base_url,
        "lobId": stored.get("lobId") or config.ORBIT_LOB_ID,
        "apiKey": stored.get("apiKey") or config.ORBIT_API_KEY,
    }


def get_orbit_status() -> dict:
    """Configuration summary for the settings screen; never includes the key."""
    stored = orbit_settings.get()
    lob_id = stored.get("lobId") or config.ORBIT_LOB_ID
    if stored.get("lobId"):
        source = "stored"
    elif config.ORBIT_LOB_ID:
        source = "environment"
    else:
        source = None

    apis = {}
    for api_type in config.ORBIT_API_TYPES:
        api_config = get_orbit_api_config(api_type)
        apis[api_type] = {
            "baseUrl": api_config["baseUrl"] if api_config else "",
            "configured": api_config is not None,
        }

    return {
        "configured": bool(lob_id),
        "lobId": lob_id,
        "hasApiKey": bool(stored.get("apiKey") or config.ORBIT_API_KEY),
        "source": source,
        "configuredAt": stored.get("configuredAt"),
        "configuredBy": stored.get("configuredBy"),
        "apis": apis,
    }


def save_orbit_credentials(lob_id: str, api_key: Optional[str], user_ref: dict) -> dict:
    """Store the shared LOB id; an empty key keeps the stored one."""
    def change(stored: dict) -> dict:
        stored["lobId"] = lob_id
        if api_key:
            stored["apiKey"] = api_key
        stored["configuredAt"] = now_iso()
        stored["configuredBy"] = user_ref
        return stored

    orbit_settings.update(change)
    log.info(f"Orbit credentials updated by {user_ref.get('login')}")
    return get_orbit_status()


def save_orbit_api(api_type: str, base_url: str, user_ref: dict) -> dict:
    """Store the base URL for one API type.

    Raises:
        ValueError: for an unknown API type.
    """
    if api_type not in config.ORBIT_API_TYPES:
        raise ValueError(f"Unknown Orbit API type: {api_type}")
    def change(stored: dict) -> dict:
        stored.setdefault("apis", {})[api_type] = {"baseUrl": base_url.strip()}
        stored["configuredAt"] = now_iso()
        stored["configuredBy"] = user_ref
        return stored

    orbit_settings.update(change)
    return get_orbit_status()
