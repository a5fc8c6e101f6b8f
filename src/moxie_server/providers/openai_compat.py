"""Provider for OpenAI-compatible chat completion APIs.

Works with OpenAI itself and with servers exposing the same API, such as
Groq, vLLM or LM Studio, by pointing base_url at them.
"""

import json
import logging

from openai import AsyncOpenAI, OpenAIError

from moxie_server.conversations import Message
from moxie_server.providers.base import InvalidResponseError, ProviderError

logger = logging.getLogger(__name__)

OPENAI_BASE_URL = "https://api.openai.com/v1"
GROQ_BASE_URL = "https://api.groq.com/openai/v1"


def format_tool_call(name: str, arguments: str) -> str:
    """Render a native function call as a tool_call block.

    Args:
        name: Function name
        arguments: JSON-encoded arguments as returned by the API
    """
    try:
        parsed = json.loads(arguments) if arguments else {}
    except json.JSONDecodeError:
        parsed = {}
    body = json.dumps({"name": name, "arguments": parsed}, indent=2)
    return f"```tool_call\n{body}\n```"


class OpenAICompatProvider:
    """LLMProvider for OpenAI-compatible endpoints."""

    name = "openai"

    def __init__(
        self,
        base_url: str = OPENAI_BASE_URL,
        api_key: str | None = None,
        timeout: float = 120.0,
        client: AsyncOpenAI | None = None,
    ):
        """Initialize the provider.

        Args:
            base_url: API base URL, e.g. "http://localhost:1234/v1" for LM Studio
            api_key: API key; local servers usually accept any value
            timeout: Request timeout in seconds
            client: Preconfigured client, mainly for tests
        """
        self.base_url = base_url
        self._client = client or AsyncOpenAI(
            base_url=base_url, api_key=api_key or "not-needed", timeout=timeout
        )

    async def chat(self, messages: list[Message], model: str) -> str:
        """Request a chat completion.

        Native tool calls in the response are converted to tool_call
        blocks so they are handled like any other tool request.

        Raises:
            ProviderError: If the request fails
            InvalidResponseError: If the response has no choices
        """
        logger.debug(f"Sending {len(messages)} messages to {self.base_url} model {model}")
        try:
            completion = await self._client.chat.completions.create(
                model=model,
                messages=[m.to_dict() for m in messages],
            )
        except OpenAIError as e:
            raise ProviderError(f"Request failed: {e}") from e

        if not completion.choices:
            raise InvalidResponseError("No choices in response")

        message = completion.choices[0].message
        if message.tool_calls:
            logger.debug(f"Converting {len(message.tool_calls)} native tool calls")
            return "\n\n".join(
                format_tool_call(tc.function.name, tc.function.arguments)
                for tc in message.tool_calls
            )

        return message.content or ""
