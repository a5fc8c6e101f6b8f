"""Personas: named system prompts for the assistant.

Four personas are built in. Additional personas can be dropped into the
configured personas directory as markdown files; the file name without
the .md extension is the persona name.
"""

import logging
from pathlib import Path
from typing import TypedDict

logger = logging.getLogger(__name__)

DEFAULT = (
    "You are Moxie, a helpful AI assistant. You can use tools to help answer "
    "questions and complete tasks. Be concise and helpful in your responses."
)

BUSINESS_ANALYST = """You are a skilled business analyst assistant. Your role is to help business owners understand their data and make informed decisions.

When analyzing data:
1. Gather context first - use tools to get the actual data
2. Present data clearly with tables and key metrics
3. Provide insights, not just numbers - explain what it means
4. Suggest actionable next steps when appropriate

Format your responses as:
1. **Summary** - One sentence answer
2. **Key Metrics** - Important numbers
3. **Analysis** - What this means for the business
4. **Recommendations** - Suggested actions (if appropriate)

Always use actual data from tools - never make up numbers."""

TECH_SUPPORT = """You are a technical support assistant. Help users troubleshoot issues with their systems.

When helping:
1. Ask clarifying questions to understand the problem
2. Use available tools to gather diagnostic information
3. Provide step-by-step solutions
4. Explain what caused the issue when possible

Be patient and clear in your explanations."""

DATA_ENTRY = """You are a data entry assistant. Help users input and manage data efficiently.

When handling data:
1. Confirm the data before making changes
2. Validate inputs against expected formats
3. Report any issues or anomalies
4. Summarize what was done after completion

Always ask for confirmation before writing or modifying data."""

BUILTIN_PERSONAS: dict[str, str] = {
    "default": DEFAULT,
    "business_analyst": BUSINESS_ANALYST,
    "tech_support": TECH_SUPPORT,
    "data_entry": DATA_ENTRY,
}

PERSONA_ALIASES: dict[str, str] = {
    "analyst": "business_analyst",
    "support": "tech_support",
    "data": "data_entry",
}


class PersonaInfo(TypedDict):
    """Listing entry for a persona."""

    name: str
    aliases: list[str]
    builtin: bool
    preview: str


def resolve_persona(persona: str) -> str:
    """Get the system prompt of a built-in persona.

    Names are matched case-insensitively. Unknown names fall back to the
    default prompt with a note naming the requested persona.

    Args:
        persona: Persona name or alias (e.g. "analyst")

    Returns:
        str: The persona's system prompt
    """
    key = persona.strip().lower()
    key = PERSONA_ALIASES.get(key, key)
    if key in BUILTIN_PERSONAS:
        return BUILTIN_PERSONAS[key]
    return f"{DEFAULT}\n\nNote: Unknown persona '{persona}', using default."


def _preview(content: str, max_length: int = 250) -> str:
    if len(content) <= max_length:
        return content
    return content[: max_length - 3].rstrip() + "..."


class PersonaService:
    """Resolves personas from the built-ins and a directory of custom prompts."""

    def __init__(self, personas_dir: Path | None = None):
        """Initialize the service.

        Args:
            personas_dir: Directory with custom persona .md files (optional)
        """
        self.personas_dir = personas_dir

    def _custom_files(self) -> dict[str, Path]:
        """Map lowercased persona names to their .md files.

        When two files differ only in case, the first in sorted order wins.
        """
        if self.personas_dir is None or not self.personas_dir.is_dir():
            return {}
        files: dict[str, Path] = {}
        for path in sorted(self.personas_dir.glob("*.md")):
            if path.is_file():
                files.setdefault(path.stem.lower(), path)
        return files

    def _read(self, path: Path) -> str | None:
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to read persona file {path.name}: {e}")
            return None
        return content if content.strip() else None

    def resolve(self, persona: str) -> str:
        """Get the system prompt for a persona.

        Built-in personas and their aliases take precedence; otherwise a
        custom persona file of that name is used. Unknown names behave
        like resolve_persona().
        """
        key = persona.strip().lower()
        if key in BUILTIN_PERSONAS or key in PERSONA_ALIASES:
            return resolve_persona(persona)

        path = self._custom_files().get(key)
        if path is not None:
            content = self._read(path)
            if content is not None:
                logger.debug(f"Using custom persona '{key}'")
                return content

        return resolve_persona(persona)

    def list_personas(self) -> list[PersonaInfo]:
        """List built-in personas followed by custom personas."""
        personas = [
            PersonaInfo(
                name=name,
                aliases=sorted(a for a, target in PERSONA_ALIASES.items() if target == name),
                builtin=True,
                preview=_preview(prompt),
            )
            for name, prompt in BUILTIN_PERSONAS.items()
        ]

        for name, path in self._custom_files().items():
            if name in BUILTIN_PERSONAS or name in PERSONA_ALIASES:
                continue
            content = self._read(path)
            if content is None:
                continue
            personas.append(
                PersonaInfo(name=name, aliases=[], builtin=False, preview=_preview(content))
            )

        return personas
