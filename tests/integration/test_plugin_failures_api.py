"""Integration tests for plugins that fail to initialize at startup."""

import pytest
from httpx import AsyncClient

from moxie_server.config import MoxieServerSettings


@pytest.fixture
def test_settings(tmp_path):
    """Settings whose filesystem plugin config lacks the required allowed_paths."""
    return MoxieServerSettings(
        data_dir=str(tmp_path),
        enabled_plugins=["moxie.filesystem", "moxie.api"],
        plugin_configs={"moxie.filesystem": {"allow_write": True}},
        log_level="DEBUG",
    )


@pytest.mark.asyncio
async def test_startup_continues_after_init_failure(async_client: AsyncClient):
    """Test that init stops at the failing plugin but the server still starts."""
    response = await async_client.get("/api/v1/plugins")

    states = {p["id"]: p["state"] for p in response.json()["plugins"]}
    assert states == {"moxie.filesystem": "error", "moxie.api": "registered"}

    health = (await async_client.get("/api/v1/health")).json()
    assert health["plugins_registered"] == 2
    assert health["plugins_active"] == 0


@pytest.mark.asyncio
async def test_remaining_plugin_can_be_initialized(async_client: AsyncClient):
    """Test that plugins left registered can be initialized individually."""
    response = await async_client.post("/api/v1/plugins/moxie.api/init")

    assert response.status_code == 200
    assert response.json()["state"] == "active"


@pytest.mark.asyncio
async def test_retry_then_init_fails_again(async_client: AsyncClient):
    """Test that retry resets a failed plugin and init reports the failure."""
    response = await async_client.post("/api/v1/plugins/moxie.filesystem/retry")
    assert response.json()["state"] == "registered"

    response = await async_client.post("/api/v1/plugins/moxie.filesystem/init")

    assert response.status_code == 409
    error = response.json()["detail"]["error"]
    assert error["code"] == "plugin_init_failed"
    assert "Missing required field: allowed_paths" in error["message"]

    state = (await async_client.get("/api/v1/plugins/moxie.filesystem")).json()["state"]
    assert state == "error"
