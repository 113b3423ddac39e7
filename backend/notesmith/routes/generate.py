"""
NoteSmith Backend — Note Generation Routes
============================================

What:  POST /api/notes/generate and GET /api/purposes.
How:   Resolves the optional purpose tag to its catalog entry and delegates
       to NoteService.generate_note, which always returns a note.
Who:   Called by the note editor ("Create" page) of the frontend.

The response is the StructuredNote serialized with `formattedContent`.
Nothing is stored here; the client saves the note through the persistence
API it already uses.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends

from notesmith.dependencies import get_note_service
from notesmith.schemas.note import (
    ErrorResponse,
    GenerateNoteRequest,
    PurposeDefinition,
    StructuredNote,
)
from notesmith.services.note_service import NoteService
from notesmith.services.purposes import PURPOSE_CATALOG, get_purpose

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Notes"])


@router.post(
    "/notes/generate",
    response_model=StructuredNote,
    responses={
        200: {"description": "Structured note (model or heuristic)", "model": StructuredNote},
        400: {"description": "Unknown purpose", "model": ErrorResponse},
    },
    summary="Structure raw content into a note",
    description=(
        "Turns free-form text into {title, summary, formattedContent, tags}. "
        "Uses the configured language model and falls back to deterministic "
        "templates when the model is unavailable or answers with invalid JSON."
    ),
)
async def generate_note(
    body: GenerateNoteRequest,
    service: NoteService = Depends(get_note_service),
) -> StructuredNote:
    purpose = get_purpose(body.purpose) if body.purpose is not None else None

    logger.info(
        "Generate request: chars=%d purpose=%s tone=%s format=%s",
        len(body.content),
        purpose.tag.value if purpose else "none",
        body.config.tone.value,
        body.config.format.value,
    )
    return await service.generate_note(body.content, body.config, purpose)


@router.get(
    "/purposes",
    response_model=List[PurposeDefinition],
    summary="List the available note purposes",
)
async def list_purposes() -> List[PurposeDefinition]:
    return list(PURPOSE_CATALOG)
