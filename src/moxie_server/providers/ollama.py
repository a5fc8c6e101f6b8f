"""Provider backed by a local Ollama server."""

import logging

from moxie_server.conversations import Message
from moxie_server.ollama import OllamaClient, OllamaError
from moxie_server.providers.base import InvalidResponseError

logger = logging.getLogger(__name__)


class OllamaProvider:
    """LLMProvider using the shared OllamaClient."""

    name = "ollama"

    def __init__(self, client: OllamaClient):
        self.client = client

    async def chat(self, messages: list[Message], model: str) -> str:
        """Send messages to Ollama and collect the streamed reply.

        Raises:
            InvalidResponseError: If the stream ends without completing
            Exception: If the Ollama request itself fails
        """
        logger.debug(f"Sending {len(messages)} messages to Ollama model {model}")
        try:
            return await self.client.chat(
                model=model, messages=[m.to_dict() for m in messages]
            )
        except OllamaError as e:
            raise InvalidResponseError(str(e)) from e
