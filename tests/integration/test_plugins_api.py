"""Integration tests for the plugin lifecycle API endpoints."""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_list_plugins(async_client: AsyncClient):
    """Test that both built-in plugins are listed in load order."""
    response = await async_client.get("/api/v1/plugins")

    assert response.status_code == 200
    plugins = response.json()["plugins"]
    assert [p["id"] for p in plugins] == ["moxie.filesystem", "moxie.api"]
    assert [p["load_order"] for p in plugins] == [1, 2]
    assert all(p["state"] == "active" for p in plugins)

    filesystem = plugins[0]
    assert filesystem["manifest"]["version"] == "1.0.0"
    assert filesystem["manifest"]["category"] == "filesystem"
    assert [f["name"] for f in filesystem["manifest"]["config_schema"]] == [
        "allowed_paths",
        "allow_write",
        "max_file_size",
    ]
    assert {t["name"] for t in filesystem["tools"]} == {
        "read_file",
        "list_directory",
        "write_file",
    }


@pytest.mark.asyncio
async def test_get_plugin(async_client: AsyncClient):
    """Test fetching a single plugin."""
    response = await async_client.get("/api/v1/plugins/moxie.api")

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == "moxie.api"
    assert data["manifest"]["name"] == "Custom API"
    assert data["tools"] == []


@pytest.mark.asyncio
async def test_get_plugin_not_found(async_client: AsyncClient):
    """Test that an unknown plugin id returns 404."""
    response = await async_client.get("/api/v1/plugins/moxie.unknown")

    assert response.status_code == 404
    assert response.json()["detail"]["error"]["code"] == "plugin_not_found"


@pytest.mark.asyncio
async def test_disable_and_enable_plugin(async_client: AsyncClient):
    """Test that disabling a plugin hides its tools until it is enabled again."""
    response = await async_client.post("/api/v1/plugins/moxie.filesystem/disable")
    assert response.status_code == 200
    assert response.json() == {"id": "moxie.filesystem", "state": "disabled"}

    tools = (await async_client.get("/api/v1/tools")).json()["tools"]
    assert "read_file" not in {t["name"] for t in tools}

    response = await async_client.post("/api/v1/plugins/moxie.filesystem/enable")
    assert response.json()["state"] == "active"

    tools = (await async_client.get("/api/v1/tools")).json()["tools"]
    assert "read_file" in {t["name"] for t in tools}


@pytest.mark.asyncio
async def test_shutdown_and_init_plugin(async_client: AsyncClient):
    """Test that a shut down plugin can be initialized again."""
    response = await async_client.post("/api/v1/plugins/moxie.api/shutdown")
    assert response.json()["state"] == "registered"

    response = await async_client.post("/api/v1/plugins/moxie.api/init")
    assert response.json()["state"] == "active"


@pytest.mark.asyncio
async def test_retry_active_plugin_is_noop(async_client: AsyncClient):
    """Test that retry only affects plugins in the error state."""
    response = await async_client.post("/api/v1/plugins/moxie.api/retry")

    assert response.status_code == 200
    assert response.json()["state"] == "active"


@pytest.mark.asyncio
async def test_lifecycle_unknown_plugin(async_client: AsyncClient):
    """Test that lifecycle actions on unknown plugins return 404."""
    for action in ("init", "enable", "disable", "shutdown", "retry"):
        response = await async_client.post(f"/api/v1/plugins/nope/{action}")
        assert response.status_code == 404
