"""Unit tests for the OllamaClient wrapper."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from moxie_server.ollama import OllamaClient, OllamaError


@pytest.fixture
def mock_ollama_async_client():
    """Create a mock ollama.AsyncClient."""
    with patch("moxie_server.ollama.client.ollama.AsyncClient") as mock_class:
        mock_instance = AsyncMock()
        mock_class.return_value = mock_instance
        yield mock_instance


@pytest.fixture
def ollama_client(mock_ollama_async_client):
    """Create an OllamaClient with mocked AsyncClient."""
    return OllamaClient(host="http://localhost:11434")


def stream_of(chunks):
    """Make the mocked chat() return an async iterator over chunks."""

    async def _iterate():
        for chunk in chunks:
            yield chunk

    return _iterate()


def test_client_initialization():
    """Test that OllamaClient initializes correctly."""
    with patch("moxie_server.ollama.client.ollama.AsyncClient") as mock_class:
        client = OllamaClient(host="http://test:11434")

    assert client.host == "http://test:11434"
    mock_class.assert_called_once_with(host="http://test:11434")


@pytest.mark.asyncio
async def test_check_connection_success(ollama_client, mock_ollama_async_client):
    """Test successful connection check."""
    mock_ollama_async_client.list.return_value = {"models": []}

    assert await ollama_client.check_connection() is True
    mock_ollama_async_client.list.assert_called_once()


@pytest.mark.asyncio
async def test_check_connection_failure(ollama_client, mock_ollama_async_client):
    """Test connection check when Ollama is unreachable."""
    mock_ollama_async_client.list.side_effect = Exception("Connection refused")

    assert await ollama_client.check_connection() is False


@pytest.mark.asyncio
async def test_chat_stream_converts_chunks(ollama_client, mock_ollama_async_client):
    """Test that pydantic chunks are converted to dicts."""
    model_chunk = MagicMock()
    model_chunk.model_dump.return_value = {"message": {"content": "Hi"}, "done": False}
    mock_ollama_async_client.chat.return_value = stream_of(
        [model_chunk, {"message": {"content": "!"}, "done": True}]
    )

    chunks = [
        chunk
        async for chunk in ollama_client.chat_stream(
            "llama3.2", [{"role": "user", "content": "Hello"}]
        )
    ]

    assert chunks == [
        {"message": {"content": "Hi"}, "done": False},
        {"message": {"content": "!"}, "done": True},
    ]
    kwargs = mock_ollama_async_client.chat.call_args.kwargs
    assert kwargs["model"] == "llama3.2"
    assert kwargs["stream"] is True


@pytest.mark.asyncio
async def test_chat_collects_content(ollama_client, mock_ollama_async_client):
    """Test that chat() joins the streamed content."""
    mock_ollama_async_client.chat.return_value = stream_of(
        [
            {"message": {"role": "assistant", "content": "Hello"}, "done": False},
            {"message": {"role": "assistant", "content": " world"}, "done": False},
            {"message": {"role": "assistant", "content": ""}, "done": True},
        ]
    )

    assert await ollama_client.chat("llama3.2", []) == "Hello world"


@pytest.mark.asyncio
async def test_chat_without_done_marker(ollama_client, mock_ollama_async_client):
    """Test that an interrupted stream raises OllamaError."""
    mock_ollama_async_client.chat.return_value = stream_of(
        [{"message": {"content": "Hel"}, "done": False}]
    )

    with pytest.raises(OllamaError, match="Stream ended without completion marker"):
        await ollama_client.chat("llama3.2", [])


@pytest.mark.asyncio
async def test_chat_stream_propagates_errors(ollama_client, mock_ollama_async_client):
    """Test that request failures are re-raised."""
    mock_ollama_async_client.chat.side_effect = Exception("model not found")

    with pytest.raises(Exception, match="model not found"):
        await ollama_client.chat("missing", [])
