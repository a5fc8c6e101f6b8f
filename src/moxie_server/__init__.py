"""moxie-server: AI assistant server with plugin-based tool calling.

This package provides a REST API and SSE streaming interface for chatting
with a language model that can call tools offered by plugins, managing the
plugin lifecycle and browsing stored conversations.
"""

from moxie_server.app import VERSION, create_app

__version__ = VERSION

__all__ = ["create_app", "__version__"]
