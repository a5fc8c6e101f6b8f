"""Exceptions raised by the chat engine."""


class ChatError(Exception):
    """Base class for errors that end a chat turn."""

    code = "chat_error"


class ChatProviderError(ChatError):
    """The language model provider failed or could not be created."""

    code = "provider_error"

    def __init__(self, message: str):
        super().__init__(f"Provider error: {message}")


class ConversationMemoryError(ChatError):
    """Loading or saving conversation messages failed."""

    code = "memory_error"

    def __init__(self, message: str):
        super().__init__(f"Memory error: {message}")


class MaxIterationsExceededError(ChatError):
    """The model kept requesting tools beyond the iteration limit."""

    code = "max_iterations_exceeded"

    def __init__(self, max_iterations: int):
        self.max_iterations = max_iterations
        super().__init__("Max tool iterations exceeded")
