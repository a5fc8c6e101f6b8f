"""Chat engine: runs a conversation turn with tool calling.

A turn loads the conversation history, builds the system prompt (with
the catalog of available tools), sends everything to the language model
and executes the tool calls found in its reply. Tool results are fed back
to the model until it answers without requesting tools or the iteration
limit is reached.

Only the user message and the final assistant reply are persisted; the
tool call and tool result messages of a turn live in memory only.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Protocol

from moxie_server.conversations import ConversationMemory, Message
from moxie_server.plugins import PluginRegistry, ToolDefinition, ToolResult
from moxie_server.providers import LLMProvider
from moxie_server.services.errors import (
    ChatProviderError,
    ConversationMemoryError,
    MaxIterationsExceededError,
)
from moxie_server.services.personas import DEFAULT, resolve_persona
from moxie_server.services.tool_calls import (
    ToolCall,
    build_system_prompt,
    extract_tool_calls,
    to_pretty_json,
)

logger = logging.getLogger(__name__)

MAX_TOOL_ITERATIONS = 10
DEFAULT_PROVIDER = "ollama"
DEFAULT_MODEL = "llama3.2"


class ProviderResolver(Protocol):
    def from_name(self, name: str) -> LLMProvider: ...


class PersonaResolver(Protocol):
    def resolve(self, persona: str) -> str: ...


@dataclass
class ChatRequest:
    """A user message to process.

    Attributes:
        message: The user's message
        conversation_id: Existing conversation to continue (new one if None)
        system_prompt: Explicit system prompt, takes precedence over persona
        persona: Persona name used when no explicit system prompt is given
        provider: Name of the language model provider
        model: Model name passed to the provider
    """

    message: str
    conversation_id: str | None = None
    system_prompt: str | None = None
    persona: str | None = None
    provider: str = DEFAULT_PROVIDER
    model: str = DEFAULT_MODEL


@dataclass
class ToolCallSummary:
    """Name and outcome of a tool call made during a turn."""

    name: str
    success: bool


@dataclass
class ChatResponse:
    """Result of a completed turn."""

    message: str
    conversation_id: str
    tool_calls: list[ToolCallSummary] = field(default_factory=list)


@dataclass
class ToolCallEvent:
    """Notification about a tool call executed during a turn."""

    conversation_id: str
    iteration: int
    call: ToolCall
    result: ToolResult


EventCallback = Callable[[ToolCallEvent], Awaitable[None]]


class ChatEngine:
    """Orchestrates chat turns between memory, model and plugins."""

    def __init__(
        self,
        registry: PluginRegistry,
        memory: ConversationMemory,
        providers: ProviderResolver,
        personas: PersonaResolver | None = None,
        system_prompt: str = DEFAULT,
        max_iterations: int = MAX_TOOL_ITERATIONS,
    ):
        """Initialize the engine.

        Args:
            registry: Registry providing tools
            memory: Conversation store
            providers: Lookup for language model providers by name
            personas: Persona lookup; built-in personas only when None
            system_prompt: Prompt used when a request names no prompt or persona
            max_iterations: Maximum number of model calls per turn
        """
        self.registry = registry
        self.memory = memory
        self.providers = providers
        self.personas = personas
        self.system_prompt = system_prompt
        self.max_iterations = max_iterations

    async def available_tools(self) -> list[ToolDefinition]:
        """Get the tools currently offered to the model."""
        return await self.registry.all_tools()

    def resolve_system_prompt(self, request: ChatRequest) -> str:
        """Pick the base system prompt: explicit > persona > default."""
        if request.system_prompt is not None:
            return request.system_prompt
        if request.persona is not None:
            if self.personas is not None:
                return self.personas.resolve(request.persona)
            return resolve_persona(request.persona)
        return self.system_prompt

    async def chat(
        self, request: ChatRequest, on_event: EventCallback | None = None
    ) -> ChatResponse:
        """Process a chat request.

        Args:
            request: The request to process
            on_event: Optional coroutine called after each tool call

        Returns:
            ChatResponse: The final reply, conversation id and tool call summaries

        Raises:
            ConversationMemoryError: If loading or saving messages fails
            ChatProviderError: If the provider is unknown or its call fails
            MaxIterationsExceededError: If the model keeps requesting tools
        """
        conversation_id = request.conversation_id or str(uuid.uuid4())

        try:
            history = await self.memory.get_conversation(conversation_id)
        except Exception as e:
            raise ConversationMemoryError(str(e)) from e

        tools = await self.registry.all_tools()
        system_prompt = build_system_prompt(self.resolve_system_prompt(request), tools)

        user_message = Message.user(request.message)
        messages = [Message.system(system_prompt), *history, user_message]

        await self._save(conversation_id, user_message)

        try:
            provider = self.providers.from_name(request.provider)
        except Exception as e:
            raise ChatProviderError(str(e)) from e

        logger.info(
            f"Chat turn for conversation {conversation_id}: {len(history)} prior messages, "
            f"{len(tools)} tools, provider={provider.name} model={request.model}"
        )

        summaries: list[ToolCallSummary] = []
        iterations = 0

        while True:
            iterations += 1
            if iterations > self.max_iterations:
                logger.warning(
                    f"Conversation {conversation_id} exceeded {self.max_iterations} tool iterations"
                )
                raise MaxIterationsExceededError(self.max_iterations)

            try:
                reply = await provider.chat(messages, request.model)
            except Exception as e:
                logger.error(f"Provider {provider.name} failed: {e}")
                raise ChatProviderError(str(e)) from e

            calls = extract_tool_calls(reply)
            if calls is None:
                break

            logger.debug(f"Iteration {iterations}: {len(calls)} tool call(s)")
            for call in calls:
                result = await self._dispatch(call)
                summaries.append(ToolCallSummary(name=call.name, success=result.success))

                messages.append(
                    Message.assistant(
                        f"Tool call: {call.name} with arguments: {to_pretty_json(call.arguments)}"
                    )
                )
                messages.append(
                    Message.system(
                        f"Tool result for {call.name}: {to_pretty_json(result.to_dict())}"
                    )
                )

                if on_event is not None:
                    await on_event(
                        ToolCallEvent(
                            conversation_id=conversation_id,
                            iteration=iterations,
                            call=call,
                            result=result,
                        )
                    )

        await self._save(conversation_id, Message.assistant(reply))

        return ChatResponse(
            message=reply, conversation_id=conversation_id, tool_calls=summaries
        )

    async def _dispatch(self, call: ToolCall) -> ToolResult:
        try:
            return await self.registry.execute(call.name, call.arguments)
        except Exception as e:
            logger.warning(f"Tool {call.name} failed: {e}")
            return ToolResult.failure(str(e))

    async def _save(self, conversation_id: str, message: Message) -> int:
        try:
            return await self.memory.save_message(conversation_id, message)
        except Exception as e:
            raise ConversationMemoryError(str(e)) from e
