"""Lookup of language model providers by name."""

import logging

from moxie_server.ollama import OllamaClient
from moxie_server.providers.base import (
    LLMProvider,
    ProviderNotConfiguredError,
    UnknownProviderError,
)
from moxie_server.providers.ollama import OllamaProvider
from moxie_server.providers.openai_compat import OpenAICompatProvider

logger = logging.getLogger(__name__)


class ProviderFactory:
    """Creates providers by name from the shared clients and settings."""

    def __init__(
        self,
        ollama_client: OllamaClient | None = None,
        openai_base_url: str | None = None,
        openai_api_key: str | None = None,
    ):
        self.ollama_client = ollama_client
        self.openai_base_url = openai_base_url
        self.openai_api_key = openai_api_key
        self._openai: OpenAICompatProvider | None = None

    @property
    def available(self) -> list[str]:
        """Names of the providers that can currently be created."""
        names = []
        if self.ollama_client is not None:
            names.append("ollama")
        if self.openai_base_url:
            names.append("openai")
        return names

    def from_name(self, name: str) -> LLMProvider:
        """Get a provider by case-insensitive name.

        Raises:
            UnknownProviderError: If the name is not a known provider
            ProviderNotConfiguredError: If the provider lacks configuration
        """
        key = name.strip().lower()
        if key == "ollama":
            if self.ollama_client is None:
                raise ProviderNotConfiguredError(name, "no Ollama client")
            return OllamaProvider(self.ollama_client)
        if key == "openai":
            if not self.openai_base_url:
                raise ProviderNotConfiguredError(name, "openai_base_url is not set")
            if self._openai is None:
                self._openai = OpenAICompatProvider(
                    base_url=self.openai_base_url, api_key=self.openai_api_key
                )
                logger.info(f"Created OpenAI-compatible provider for {self.openai_base_url}")
            return self._openai
        raise UnknownProviderError(name)
