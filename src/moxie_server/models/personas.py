"""Pydantic models for persona listings."""

from pydantic import BaseModel, Field


class PersonaResponse(BaseModel):
    """A persona that can be selected by name in a chat request."""

    name: str = Field(description="Persona name")
    aliases: list[str] = Field(default_factory=list, description="Alternative names")
    builtin: bool = Field(description="Whether the persona ships with the server")
    preview: str = Field(default="", description="Start of the persona prompt")


class PersonaListResponse(BaseModel):
    """Response for GET /api/v1/personas."""

    personas: list[PersonaResponse]
