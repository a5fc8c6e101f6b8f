"""Async Ollama client wrapper.

This module provides an async wrapper around the ollama.AsyncClient for
communicating with the Ollama API. The client is designed to be created
once at startup and reused across requests.
"""

import logging
from typing import Any, AsyncIterator

import ollama

logger = logging.getLogger(__name__)


class OllamaError(Exception):
    """Raised when Ollama returns no usable response."""


class OllamaClient:
    """Async client for interacting with the Ollama API.

    All chat operations use streaming; chat() collects the stream for
    callers that only need the final text.

    Attributes:
        host: The Ollama server URL (e.g., "http://localhost:11434")
        _client: The underlying ollama.AsyncClient instance
    """

    def __init__(self, host: str) -> None:
        """Initialize the Ollama client.

        Args:
            host: The Ollama server URL
        """
        self.host = host
        self._client = ollama.AsyncClient(host=host)
        logger.info(f"OllamaClient initialized with host: {host}")

    async def check_connection(self) -> bool:
        """Check if the Ollama server is reachable.

        Returns:
            bool: True if connection is successful, False otherwise
        """
        try:
            await self._client.list()
            logger.debug("Ollama connection check: successful")
            return True
        except Exception as e:
            logger.warning(f"Ollama connection check failed: {e}")
            return False

    async def chat_stream(
        self,
        model: str,
        messages: list[dict[str, Any]],
        options: dict[str, Any] | None = None,
    ) -> AsyncIterator[dict[str, Any]]:
        """Stream chat responses from Ollama.

        Args:
            model: The model name to use for the chat
            messages: List of message dicts in Ollama format:
                      [{"role": "user", "content": "..."}, ...]
            options: Optional model parameters (temperature, etc.)

        Yields:
            dict: Response chunks from Ollama. Each chunk contains:
                  - model: str - The model name
                  - message: dict - Contains role and content
                  - done: bool - True on the final chunk

        Raises:
            Exception: If the Ollama API request fails
        """
        try:
            logger.debug(
                f"Starting chat stream with model: {model} ({len(messages)} messages)"
            )

            async for chunk in await self._client.chat(
                model=model,
                messages=messages,
                stream=True,
                options=options,
            ):
                if hasattr(chunk, "model_dump"):
                    chunk_dict = chunk.model_dump()
                elif isinstance(chunk, dict):
                    chunk_dict = chunk
                else:
                    chunk_dict = vars(chunk)

                yield chunk_dict

            logger.debug("Chat stream completed")

        except Exception as e:
            logger.error(f"Chat stream failed: {e}")
            raise

    async def chat(
        self,
        model: str,
        messages: list[dict[str, Any]],
        options: dict[str, Any] | None = None,
    ) -> str:
        """Send a chat request and collect the complete response text.

        Args:
            model: The model name to use for the chat
            messages: List of message dicts in Ollama format
            options: Optional model parameters

        Returns:
            str: The concatenated content of all chunks

        Raises:
            OllamaError: If the stream ends without a completion marker
            Exception: If the Ollama API request fails
        """
        content_parts = []
        done = False

        async for chunk in self.chat_stream(model, messages, options):
            message = chunk.get("message") or {}
            content = message.get("content") or ""
            if content:
                content_parts.append(content)
            if chunk.get("done"):
                done = True
                break

        if not done:
            raise OllamaError("Stream ended without completion marker")

        return "".join(content_parts)

    async def close(self) -> None:
        """Close the client and clean up resources.

        ollama.AsyncClient uses httpx internally which handles cleanup.
        """
        logger.debug("OllamaClient closed")
