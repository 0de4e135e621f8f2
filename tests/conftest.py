# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Pytest fixtures for VDR Console tests."""
import importlib
import os
import tempfile
from pathlib import Path
from typing import AsyncGenerator, Generator

import pytest
from httpx import ASGITransport, AsyncClient

from vdr_console.catalogue.fetch import reset_page_fetcher
from vdr_console.orbit.client import reset_orbit_client

# Environment variables a test run controls; restored afterwards.
_ENV_KEYS = (
    "VDR_CONSOLE_DATA_DIR",
    "VDR_CONSOLE_DATABASE_URL",
    "VDR_CONSOLE_REQUIRE_USER",
    "VDR_CONSOLE_SERVICE_TOKEN",
    "VDR_CONSOLE_ORBIT_LOB_ID",
    "VDR_CONSOLE_ORBIT_API_KEY",
    "VDR_CONSOLE_ORBIT_CREDENTIAL_MGMT_URL",
    "VDR_CONSOLE_LOG_FORMAT",
)

TEST_USER_HEADERS = {
    "X-User-Id": "1001",
    "X-User-Login": "octocat",
    "X-User-Name": "Octo Cat",
    "X-User-Email": "octocat@example.com",
}

OTHER_USER_HEADERS = {
    "X-User-Id": "2002",
    "X-User-Login": "hubot",
}


def _reload_app_modules() -> None:
    """Reload config, then the engine, then the app, in dependency order."""
    import vdr_console.config as config_module
    importlib.reload(config_module)

    import vdr_console.db.session as session_module
    importlib.reload(session_module)

    import vdr_console.main as main_module
    importlib.reload(main_module)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def console_env(temp_dir: Path, request) -> Generator[Path, None, None]:
    """Isolated data directory and SQLite database for one test.

    Extra environment variables can be supplied with
    ``@pytest.mark.console_env({"NAME": "value"})``.
    """
    marker = request.node.get_closest_marker("console_env")
    extra = marker.args[0] if marker else {}

    original = {key: os.environ.get(key) for key in (*_ENV_KEYS, *extra)}
    for key in original:
        os.environ.pop(key, None)

    os.environ["VDR_CONSOLE_DATA_DIR"] = str(temp_dir)
    os.environ["VDR_CONSOLE_LOG_FORMAT"] = "text"
    os.environ.update(extra)

    reset_orbit_client()
    reset_page_fetcher()
    _reload_app_modules()

    from vdr_console.db.session import init_database
    init_database()

    yield temp_dir

    reset_orbit_client()
    reset_page_fetcher()
    for key, value in original.items():
        if value is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = value

    import vdr_console.config as config_module
    importlib.reload(config_module)


@pytest.fixture
async def client(console_env: Path) -> AsyncGenerator[AsyncClient, None]:
    """Test client over the ASGI app with isolated storage.

    ASGITransport does not run the lifespan, so ``console_env`` has
    already created the tables.
    """
    import vdr_console.main as main_module

    async with AsyncClient(
        transport=ASGITransport(app=main_module.app),
        base_url="http://test",
    ) as async_client:
        yield async_client


@pytest.fixture
def user_headers() -> dict:
    return dict(TEST_USER_HEADERS)


@pytest.fixture
def other_user_headers() -> dict:
    return dict(OTHER_USER_HEADERS)


@pytest.fixture
def user_ref() -> dict:
    return {"id": "1001", "login": "octocat", "name": "Octo Cat"}


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "console_env(env): extra environment variables for the console_env fixture"
    )
