"""Ollama client wrapper and integration layer.

This package provides the async client used to talk to a local Ollama
server. All Ollama interactions are async and use streaming.
"""

from moxie_server.ollama.client import OllamaClient, OllamaError

__all__ = ["OllamaClient", "OllamaError"]
