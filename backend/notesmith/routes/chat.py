"""
NoteSmith Backend — Chat & Image Routes
=========================================

What:  POST /api/chat            action-aware chatbot reply
       POST /api/images/analyze  question about an image
How:   The chat route prepends the JSON action instructions, asks
       NoteService.chat_with_ai for a reply and parses it into a ChatAction.
       A create_note action is returned as a NoteRecord for the caller to
       persist; a delete_note action only reports the requested note ID.
       Notes sent with the request are listed in the system message so the
       model can refer to their IDs.
"""

import logging

from fastapi import APIRouter, Depends

from notesmith.dependencies import get_note_service
from notesmith.exceptions import ValidationError
from notesmith.schemas.note import (
    ChatMessage,
    ChatRequest,
    ChatResponse,
    ErrorResponse,
    ImageAnalysisRequest,
    ImageAnalysisResult,
)
from notesmith.services.chat_actions import (
    build_chat_system_message,
    format_note_context,
    parse_chat_reply,
)
from notesmith.services.note_service import NoteService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Chat"])


@router.post(
    "/chat",
    response_model=ChatResponse,
    responses={
        400: {"description": "Every message is blank", "model": ErrorResponse},
    },
    summary="Chat with the notes assistant",
)
async def chat(
    body: ChatRequest,
    service: NoteService = Depends(get_note_service),
) -> ChatResponse:
    if not any(message.content.strip() for message in body.messages):
        raise ValidationError(message="Messages cannot be empty", field="messages")

    system_message = build_chat_system_message(format_note_context(body.notes))
    history = [ChatMessage(role="system", content=system_message)]
    history.extend(body.messages)

    reply = await service.chat_with_ai(history)
    action = parse_chat_reply(reply)
    logger.info("Chat reply parsed: action=%s", action.action)

    return ChatResponse(
        reply=action.reply,
        action=action.action,
        note=action.to_note_record(),
        note_id=action.note_id or None,
    )


@router.post(
    "/images/analyze",
    response_model=ImageAnalysisResult,
    responses={
        400: {"description": "Missing prompt/image or image too large", "model": ErrorResponse},
    },
    summary="Ask a question about an image",
)
async def analyze_image(
    body: ImageAnalysisRequest,
    service: NoteService = Depends(get_note_service),
) -> ImageAnalysisResult:
    return await service.analyze_image_note(body.image, body.mime_type, body.prompt)
