"""Text protocol for tool calls.

Tools are advertised to the model inside the system prompt, and the model
requests a tool by answering with a fenced block:

    ```tool_call
    {"name": "read_file", "arguments": {"path": "/tmp/notes.txt"}}
    ```

This module builds the advertisement and scans model output for such
blocks.
"""

import json
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any

from moxie_server.plugins import ToolDefinition

logger = logging.getLogger(__name__)

TOOL_CALL_FENCE = "```tool_call"
FENCE = "```"


@dataclass
class ToolCall:
    """A tool invocation requested by the model."""

    name: str
    arguments: dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))


def to_pretty_json(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False)


def build_system_prompt(base_prompt: str, tools: list[ToolDefinition]) -> str:
    """Append the tool catalog and calling instructions to a system prompt.

    Args:
        base_prompt: The persona or explicit system prompt
        tools: Tools of all active plugins

    Returns:
        str: The base prompt unchanged when there are no tools, otherwise
             the base prompt followed by the tool list, the tool_call
             format and the JSON schemas of all tools
    """
    if not tools:
        return base_prompt

    tools_description = "\n".join(f"- {t.name}: {t.description}" for t in tools)
    tools_json = to_pretty_json([t.to_dict() for t in tools])

    return (
        f"{base_prompt}\n\n## Available Tools\n\n"
        f"You have access to the following tools:\n\n{tools_description}\n\n"
        "To use a tool, respond with a JSON block in this format:\n"
        f'{TOOL_CALL_FENCE}\n{{\n  "name": "tool_name",\n  "arguments": {{}}\n}}\n{FENCE}\n\n'
        f"Tool schemas:\n```json\n{tools_json}\n{FENCE}"
    )


def extract_tool_calls(content: str) -> list[ToolCall] | None:
    """Find the tool calls requested in a model response.

    Every "```tool_call" fence opens a block that runs to the next "```".
    A block counts when its content is a JSON object with a string "name"
    and an object "arguments"; anything else is skipped.

    Args:
        content: The model's response text

    Returns:
        The calls in the order they appear, or None if there are none
    """
    calls = []

    for segment in content.split(TOOL_CALL_FENCE)[1:]:
        end = segment.find(FENCE)
        if end == -1:
            continue

        try:
            data = json.loads(segment[:end].strip())
        except json.JSONDecodeError:
            logger.debug("Skipping tool_call block with invalid JSON")
            continue

        if not isinstance(data, dict):
            continue
        name = data.get("name")
        arguments = data.get("arguments")
        if not isinstance(name, str) or not isinstance(arguments, dict):
            logger.debug("Skipping tool_call block without name or arguments")
            continue

        calls.append(ToolCall(name=name, arguments=arguments))

    return calls or None
