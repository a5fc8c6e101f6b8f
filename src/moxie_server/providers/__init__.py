"""Language model providers.

A provider turns a list of messages into the assistant's reply text.
Tool calls travel inside that text as tool_call blocks.
"""

from moxie_server.providers.base import (
    InvalidResponseError,
    LLMProvider,
    ProviderError,
    ProviderNotConfiguredError,
    UnknownProviderError,
)
from moxie_server.providers.factory import ProviderFactory
from moxie_server.providers.ollama import OllamaProvider
from moxie_server.providers.openai_compat import OpenAICompatProvider

__all__ = [
    "InvalidResponseError",
    "LLMProvider",
    "OllamaProvider",
    "OpenAICompatProvider",
    "ProviderError",
    "ProviderFactory",
    "ProviderNotConfiguredError",
    "UnknownProviderError",
]
