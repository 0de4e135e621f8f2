# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""VDR Console configuration.

Configurable defaults may be overridden via environment variables.
Values are read at import time; tests reload this module after
changing the environment.
"""

import os
from pathlib import Path


def _get_data_dir() -> Path:
    """Resolve the data directory (database, uploaded assets, seeds)."""
    env_dir = os.getenv("VDR_CONSOLE_DATA_DIR")
    if env_dir:
        return Path(env_dir)
    return Path.home() / ".vdr-console"


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


# =============================================================================
# STORAGE
# =============================================================================

DATA_DIR: Path = _get_data_dir()

DATABASE_URL: str = os.getenv(
    "VDR_CONSOLE_DATABASE_URL",
    f"sqlite:///{DATA_DIR / 'vdr-console.db'}",
)

ASSETS_DIR: Path = Path(os.getenv("VDR_CONSOLE_ASSETS_DIR", str(DATA_DIR / "assets")))
SEED_DIR: Path = Path(os.getenv("VDR_CONSOLE_SEED_DIR", str(DATA_DIR / "seed")))

# =============================================================================
# NETWORK
# =============================================================================

HTTP_HOST: str = os.getenv("VDR_CONSOLE_HTTP_HOST", "0.0.0.0")
HTTP_PORT: int = int(os.getenv("VDR_CONSOLE_HTTP_PORT", "5174"))

# =============================================================================
# LOGGING
# =============================================================================

LOG_LEVEL: str = os.getenv("VDR_CONSOLE_LOG_LEVEL", os.getenv("LOG_LEVEL", "INFO"))
LOG_FORMAT: str = os.getenv("VDR_CONSOLE_LOG_FORMAT", "json")  # json | text

# =============================================================================
# AUTHENTICATION
# =============================================================================

# Shared bearer token between the console and its fronting proxy.
# Empty disables token checks (local development).
SERVICE_TOKEN: str = os.getenv("VDR_CONSOLE_SERVICE_TOKEN", "")

# When false, requests without X-User-* headers act as a local user.
REQUIRE_USER: bool = _env_bool("VDR_CONSOLE_REQUIRE_USER", "true")

# =============================================================================
# ORBIT
# =============================================================================

ORBIT_LOB_ID: str = os.getenv("VDR_CONSOLE_ORBIT_LOB_ID", "")
ORBIT_API_KEY: str = os.getenv("VDR_CONSOLE_ORBIT_API_KEY", "")
ORBIT_TIMEOUT: float = float(os.getenv("VDR_CONSOLE_ORBIT_TIMEOUT", "30.0"))

# Per-API base URLs. credentialMgmt is used by the credential catalogue.
ORBIT_API_TYPES: tuple[str, ...] = (
    "lob",
    "registerSocket",
    "connection",
    "holder",
    "verifier",
    "issuer",
    "chat",
    "credentialMgmt",
)

ORBIT_BASE_URLS: dict[str, str] = {
    "lob": os.getenv("VDR_CONSOLE_ORBIT_LOB_URL", ""),
    "registerSocket": os.getenv("VDR_CONSOLE_ORBIT_SOCKET_URL", ""),
    "connection": os.getenv("VDR_CONSOLE_ORBIT_CONNECTION_URL", ""),
    "holder": os.getenv("VDR_CONSOLE_ORBIT_HOLDER_URL", ""),
    "verifier": os.getenv("VDR_CONSOLE_ORBIT_VERIFIER_URL", ""),
    "issuer": os.getenv("VDR_CONSOLE_ORBIT_ISSUER_URL", ""),
    "chat": os.getenv("VDR_CONSOLE_ORBIT_CHAT_URL", ""),
    "credentialMgmt": os.getenv("VDR_CONSOLE_ORBIT_CREDENTIAL_MGMT_URL", ""),
}

# =============================================================================
# LEDGER PAGE IMPORT
# =============================================================================

SCRAPE_TIMEOUT: float = float(os.getenv("VDR_CONSOLE_SCRAPE_TIMEOUT", "15.0"))
SCRAPE_USER_AGENT: str = os.getenv(
    "VDR_CONSOLE_SCRAPE_USER_AGENT",
    "Mozilla/5.0 (compatible; CredentialCatalogue/1.0)",
)

# =============================================================================
# PUBLISHING
# =============================================================================

# Base URL under which the VDR repository content is served.
VDR_BASE_URL: str = os.getenv(
    "VDR_CONSOLE_VDR_BASE_URL",
    "https://openpropertyassociation.ca",
)

# Public origin for published forms (publicUrl = <origin>/f/<slug>).
FORMS_PUBLIC_URL: str = os.getenv("VDR_CONSOLE_FORMS_PUBLIC_URL", "http://localhost:5173")

# =============================================================================
# UPLOADS & IDS
# =============================================================================

MAX_UPLOAD_BYTES: int = int(os.getenv("VDR_CONSOLE_MAX_UPLOAD_BYTES", str(5 * 1024 * 1024)))
ENTITY_ID_PREFIX: str = os.getenv("VDR_CONSOLE_ENTITY_ID_PREFIX", "copa-")
