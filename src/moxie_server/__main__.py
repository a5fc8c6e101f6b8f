"""CLI entry point for moxie-server.

This module provides the command-line interface for starting the moxie-server.
It can be invoked as `moxie-server` (via the script entry point) or
`python -m moxie_server`.
"""

import argparse
import logging
import sys
from typing import Any

import uvicorn

from moxie_server import __version__, create_app
from moxie_server.config import MoxieServerSettings


def main() -> None:
    """Main entry point for the moxie-server CLI.

    Parses command-line arguments and starts the uvicorn server with the
    FastAPI application.
    """
    parser = argparse.ArgumentParser(
        prog="moxie-server",
        description="AI assistant server with plugin-based tool calling",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"moxie-server {__version__}",
    )

    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host to bind the server to (default: 127.0.0.1, can be set via MOXIE_HOST)",
    )

    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to bind the server to (default: 8000, can be set via MOXIE_PORT)",
    )

    parser.add_argument(
        "--ollama-host",
        type=str,
        default=None,
        help="Ollama server URL (default: http://localhost:11434, can be set via MOXIE_OLLAMA_HOST)",
    )

    parser.add_argument(
        "--provider",
        type=str,
        default=None,
        help="Default language model provider (default: ollama, can be set via MOXIE_DEFAULT_PROVIDER)",
    )

    parser.add_argument(
        "--model",
        type=str,
        default=None,
        help="Default model name (default: llama3.2, can be set via MOXIE_DEFAULT_MODEL)",
    )

    parser.add_argument(
        "--data-dir",
        type=str,
        default=None,
        help="Base directory for all data (default: ., can be set via MOXIE_DATA_DIR)",
    )

    parser.add_argument(
        "--plugins-config",
        type=str,
        default=None,
        help="JSON file with plugin configurations, relative to the data dir "
        "(can be set via MOXIE_PLUGINS_CONFIG_FILE)",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO, can be set via MOXIE_LOG_LEVEL)",
    )

    args = parser.parse_args()

    # Build settings, CLI args override environment variables
    settings_kwargs: dict[str, Any] = {}
    if args.host is not None:
        settings_kwargs["host"] = args.host
    if args.port is not None:
        settings_kwargs["port"] = args.port
    if args.ollama_host is not None:
        settings_kwargs["ollama_host"] = args.ollama_host
    if args.provider is not None:
        settings_kwargs["default_provider"] = args.provider
    if args.model is not None:
        settings_kwargs["default_model"] = args.model
    if args.data_dir is not None:
        settings_kwargs["data_dir"] = args.data_dir
    if args.plugins_config is not None:
        settings_kwargs["plugins_config_file"] = args.plugins_config
    if args.log_level is not None:
        settings_kwargs["log_level"] = args.log_level

    settings = MoxieServerSettings(**settings_kwargs)

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Create the FastAPI app
    app = create_app(settings=settings)

    # Start uvicorn
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    sys.exit(main())
