"""Persona listing endpoint."""

from fastapi import APIRouter, Depends

from moxie_server.dependencies import get_persona_service
from moxie_server.models.personas import PersonaListResponse, PersonaResponse
from moxie_server.services import PersonaService

router = APIRouter(prefix="/api/v1/personas", tags=["personas"])


@router.get("", response_model=PersonaListResponse)
async def list_personas(
    service: PersonaService = Depends(get_persona_service),
) -> PersonaListResponse:
    """List built-in personas followed by custom personas from the personas directory."""
    return PersonaListResponse(
        personas=[PersonaResponse(**persona) for persona in service.list_personas()]
    )
