"""Pytest configuration and shared fixtures for moxie-server tests.

This module provides common fixtures used across all test modules,
including test app creation and async client setup.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from moxie_server import create_app
from moxie_server.config import MoxieServerSettings


@pytest.fixture
def files_dir(tmp_path):
    """Directory the filesystem plugin is allowed to access in tests."""
    path = tmp_path / "files"
    path.mkdir()
    return path


@pytest.fixture
def test_settings(tmp_path, files_dir):
    """Create test settings with isolated temporary directories.

    Args:
        tmp_path: Pytest fixture providing a temporary directory.
        files_dir: Allowed directory for the filesystem plugin.

    Returns:
        MoxieServerSettings: Settings instance configured for testing.
    """
    return MoxieServerSettings(
        host="127.0.0.1",
        port=8000,
        ollama_host="http://localhost:11434",
        data_dir=str(tmp_path),
        conversations_dir="conversations",
        plugins_data_dir="plugins",
        personas_dir="personas",
        enabled_plugins=["moxie.filesystem", "moxie.api"],
        plugin_configs={
            "moxie.filesystem": {"allowed_paths": [str(files_dir)], "allow_write": True}
        },
        log_level="DEBUG",
        cors_origins=["*"],
    )


@pytest.fixture
def test_app(test_settings):
    """Create a FastAPI test application instance.

    Args:
        test_settings: Test settings fixture.

    Returns:
        FastAPI: Configured test application.
    """
    return create_app(settings=test_settings)


@pytest_asyncio.fixture
async def async_client(test_app):
    """Create an async HTTP client for testing FastAPI endpoints.

    Args:
        test_app: Test application fixture.

    Yields:
        AsyncClient: Async HTTP client for making test requests.
    """
    # Trigger the lifespan startup manually for tests
    async with test_app.router.lifespan_context(test_app):
        transport = ASGITransport(app=test_app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
