"""Unit tests for language model providers and the provider factory."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from openai import APIConnectionError

from moxie_server.conversations import Message
from moxie_server.ollama import OllamaError
from moxie_server.providers import (
    InvalidResponseError,
    OllamaProvider,
    OpenAICompatProvider,
    ProviderError,
    ProviderFactory,
    ProviderNotConfiguredError,
    UnknownProviderError,
)
from moxie_server.providers.openai_compat import format_tool_call
from moxie_server.services import extract_tool_calls


def completion(content=None, tool_calls=None):
    message = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def openai_client(result=None, error=None) -> MagicMock:
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=result, side_effect=error)
    return client


@pytest.mark.asyncio
async def test_ollama_provider_sends_dicts():
    """Test that the Ollama provider converts messages for the client."""
    client = AsyncMock()
    client.chat.return_value = "Hi"
    provider = OllamaProvider(client)

    reply = await provider.chat([Message.system("S"), Message.user("U")], "llama3.2")

    assert reply == "Hi"
    assert provider.name == "ollama"
    client.chat.assert_awaited_once_with(
        model="llama3.2",
        messages=[{"role": "system", "content": "S"}, {"role": "user", "content": "U"}],
    )


@pytest.mark.asyncio
async def test_ollama_provider_incomplete_stream():
    """Test that an incomplete stream becomes InvalidResponseError."""
    client = AsyncMock()
    client.chat.side_effect = OllamaError("Stream ended without completion marker")

    with pytest.raises(InvalidResponseError):
        await OllamaProvider(client).chat([Message.user("U")], "llama3.2")


@pytest.mark.asyncio
async def test_openai_provider_text_reply():
    """Test a plain completion."""
    client = openai_client(completion(content="Hello"))
    provider = OpenAICompatProvider(client=client)

    reply = await provider.chat([Message.user("Hi")], "gpt-4o-mini")

    assert reply == "Hello"
    client.chat.completions.create.assert_awaited_once_with(
        model="gpt-4o-mini", messages=[{"role": "user", "content": "Hi"}]
    )


@pytest.mark.asyncio
async def test_openai_provider_converts_native_tool_calls():
    """Test that native function calls come back as tool_call blocks."""
    tool_calls = [
        SimpleNamespace(
            function=SimpleNamespace(name="read_file", arguments='{"path": "/tmp/a"}')
        ),
        SimpleNamespace(function=SimpleNamespace(name="list_directory", arguments="")),
    ]
    provider = OpenAICompatProvider(client=openai_client(completion(tool_calls=tool_calls)))

    reply = await provider.chat([Message.user("Hi")], "gpt-4o-mini")

    calls = extract_tool_calls(reply)
    assert [(c.name, c.arguments) for c in calls] == [
        ("read_file", {"path": "/tmp/a"}),
        ("list_directory", {}),
    ]


@pytest.mark.asyncio
async def test_openai_provider_no_choices():
    """Test that an empty choice list is an invalid response."""
    provider = OpenAICompatProvider(client=openai_client(SimpleNamespace(choices=[])))

    with pytest.raises(InvalidResponseError, match="No choices"):
        await provider.chat([Message.user("Hi")], "gpt-4o-mini")


@pytest.mark.asyncio
async def test_openai_provider_request_error():
    """Test that SDK errors become ProviderError."""
    error = APIConnectionError(request=httpx.Request("POST", "https://api.example/v1"))
    provider = OpenAICompatProvider(client=openai_client(error=error))

    with pytest.raises(ProviderError, match="Request failed"):
        await provider.chat([Message.user("Hi")], "gpt-4o-mini")


def test_format_tool_call_invalid_arguments():
    """Test that unparsable arguments become an empty object."""
    block = format_tool_call("ping", "{broken")

    assert extract_tool_calls(block)[0].arguments == {}


def test_factory_ollama():
    """Test creating the Ollama provider, case-insensitively."""
    factory = ProviderFactory(ollama_client=AsyncMock())

    assert isinstance(factory.from_name("Ollama"), OllamaProvider)
    assert factory.available == ["ollama"]


def test_factory_openai_reuses_provider():
    """Test that the OpenAI provider is created once and reused."""
    factory = ProviderFactory(openai_base_url="http://localhost:1234/v1", openai_api_key="k")

    first = factory.from_name("openai")
    second = factory.from_name("OPENAI")

    assert isinstance(first, OpenAICompatProvider)
    assert first is second
    assert first.base_url == "http://localhost:1234/v1"
    assert factory.available == ["openai"]


def test_factory_not_configured():
    """Test that providers without configuration are refused."""
    factory = ProviderFactory()

    with pytest.raises(ProviderNotConfiguredError):
        factory.from_name("ollama")
    with pytest.raises(ProviderNotConfiguredError):
        factory.from_name("openai")


def test_factory_unknown_provider():
    """Test that unknown names raise UnknownProviderError."""
    with pytest.raises(UnknownProviderError, match="Unknown provider: anthropic"):
        ProviderFactory().from_name("anthropic")
