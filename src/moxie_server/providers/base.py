"""Language model provider interface and errors."""

from typing import Protocol

from moxie_server.conversations import Message


class ProviderError(Exception):
    """Base class for language model provider failures."""


class UnknownProviderError(ProviderError):
    """Raised when a provider name is not recognised."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown provider: {name}")


class ProviderNotConfiguredError(ProviderError):
    """Raised when a provider is known but lacks required settings."""

    def __init__(self, name: str, reason: str):
        super().__init__(f"Provider not configured: {name} ({reason})")


class InvalidResponseError(ProviderError):
    """Raised when a provider returns a response that cannot be used."""


class LLMProvider(Protocol):
    """A language model that turns a message sequence into a reply text."""

    name: str

    async def chat(self, messages: list[Message], model: str) -> str:
        """Send messages to the model and return the assistant reply text."""
        ...
