"""Chat API endpoints.

This module provides the endpoints that run a chat turn through the chat
engine, either returning the final reply at once or streaming tool activity
and the final reply via SSE.
"""

import asyncio
import logging
from typing import Any, AsyncIterator

from fastapi import APIRouter, Depends, HTTPException, Request
from sse_starlette.sse import EventSourceResponse

from moxie_server.dependencies import get_chat_engine
from moxie_server.models.chat import (
    ChatRequest,
    ChatResponse,
    DoneEvent,
    ErrorEvent,
    MessageCompleteEvent,
    ToolCallEventData,
    ToolCallSummaryResponse,
)
from moxie_server.services import (
    ChatEngine,
    ChatError,
    ChatProviderError,
    ConversationMemoryError,
    MaxIterationsExceededError,
    ToolCallEvent,
)
from moxie_server.services import ChatRequest as EngineChatRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/chat", tags=["chat"])

_STATUS_CODES: dict[type[ChatError], int] = {
    MaxIterationsExceededError: 422,
    ChatProviderError: 502,
    ConversationMemoryError: 500,
}


def _to_engine_request(body: ChatRequest, request: Request) -> EngineChatRequest:
    """Fill provider and model defaults from the server settings."""
    settings = request.app.state.settings
    return EngineChatRequest(
        message=body.message,
        conversation_id=body.conversation_id,
        system_prompt=body.system_prompt,
        persona=body.persona,
        provider=body.provider or settings.default_provider,
        model=body.model or settings.default_model,
    )


def _error_detail(error: ChatError) -> dict[str, Any]:
    details: dict[str, Any] = {}
    if isinstance(error, MaxIterationsExceededError):
        details["max_iterations"] = error.max_iterations
    return {"code": error.code, "message": str(error), "details": details}


@router.post("", response_model=ChatResponse)
async def chat(
    body: ChatRequest,
    request: Request,
    engine: ChatEngine = Depends(get_chat_engine),
) -> ChatResponse:
    """Send a message and receive the final assistant reply.

    Tool calls requested by the model are executed server-side; the
    response lists them in order with their outcome.

    Args:
        body: Chat request containing the message and options
        request: FastAPI request object
        engine: Injected chat engine

    Returns:
        ChatResponse with the final reply and the conversation id

    Raises:
        HTTPException: 422 if the tool iteration limit is exceeded,
            502 if the provider fails, 500 if the conversation store fails
    """
    try:
        result = await engine.chat(_to_engine_request(body, request))
    except ChatError as e:
        logger.error(f"Chat turn failed: {e}")
        raise HTTPException(
            status_code=_STATUS_CODES.get(type(e), 500),
            detail={"error": _error_detail(e)},
        )

    return ChatResponse.model_validate(result)


@router.post("/stream")
async def chat_stream(
    body: ChatRequest,
    request: Request,
    engine: ChatEngine = Depends(get_chat_engine),
) -> EventSourceResponse:
    """Run a chat turn and stream its progress via Server-Sent Events (SSE).

    SSE Events:
        - tool_call: After each executed tool call
        - message_complete: The final reply
        - error: If the turn fails
        - done: Stream is complete (not sent after an error)

    Args:
        body: Chat request containing the message and options
        request: FastAPI request object
        engine: Injected chat engine

    Returns:
        EventSourceResponse with SSE events
    """
    engine_request = _to_engine_request(body, request)
    events: asyncio.Queue[ToolCallEvent] = asyncio.Queue()

    async def on_event(event: ToolCallEvent) -> None:
        await events.put(event)

    async def event_generator() -> AsyncIterator[dict[str, str]]:
        """Generate SSE events while the turn runs."""
        turn = asyncio.create_task(engine.chat(engine_request, on_event=on_event))

        try:
            while True:
                getter = asyncio.ensure_future(events.get())
                done, _ = await asyncio.wait(
                    {getter, turn}, return_when=asyncio.FIRST_COMPLETED
                )
                if getter not in done:
                    getter.cancel()
                    break

                event = getter.result()
                yield {
                    "event": "tool_call",
                    "data": _tool_call_event(event).model_dump_json(),
                }

                if await request.is_disconnected():
                    logger.warning("Client disconnected during chat stream")
                    turn.cancel()
                    return

            # Drain events queued right before the turn finished
            while not events.empty():
                yield {
                    "event": "tool_call",
                    "data": _tool_call_event(events.get_nowait()).model_dump_json(),
                }

            try:
                result = turn.result()
            except ChatError as e:
                logger.error(f"Chat stream failed: {e}")
                yield {
                    "event": "error",
                    "data": ErrorEvent(**_error_detail(e)).model_dump_json(),
                }
                return
            except Exception as e:
                logger.error(f"Unexpected error during chat stream: {e}")
                error_event = ErrorEvent(
                    code="internal_error",
                    message=f"Failed to complete chat turn: {str(e)}",
                )
                yield {"event": "error", "data": error_event.model_dump_json()}
                return

            complete_event = MessageCompleteEvent(
                conversation_id=result.conversation_id,
                message=result.message,
                tool_calls=[
                    ToolCallSummaryResponse.model_validate(summary)
                    for summary in result.tool_calls
                ],
            )
            yield {
                "event": "message_complete",
                "data": complete_event.model_dump_json(),
            }
            yield {
                "event": "done",
                "data": DoneEvent(
                    conversation_id=result.conversation_id
                ).model_dump_json(),
            }
        finally:
            if not turn.done():
                turn.cancel()

    return EventSourceResponse(event_generator())


def _tool_call_event(event: ToolCallEvent) -> ToolCallEventData:
    return ToolCallEventData(
        conversation_id=event.conversation_id,
        iteration=event.iteration,
        call_id=event.call.id,
        name=event.call.name,
        arguments=event.call.arguments,
        success=event.result.success,
        error=event.result.error,
    )
