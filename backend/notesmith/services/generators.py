"""
NoteSmith Backend — Note Generators
=====================================

What:  The two NoteGenerator strategies.
       RemoteGenerator:    schema-constrained call to the chat model.
       HeuristicGenerator: marker extraction → purpose classification →
                           segmentation → purpose template.
Who:   Composed by NoteService: remote first, heuristic on any failure.
"""

import json
import logging
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from notesmith.exceptions import MalformedResponseError
from notesmith.schemas.note import GenerationConfig, PurposeDefinition, StructuredNote
from notesmith.services.llm_base import NoteGenerator
from notesmith.services.openrouter_client import OpenRouterClient
from notesmith.services.prompts import (
    STRUCTURED_NOTE_RESPONSE_FORMAT,
    build_system_instruction,
    compose_user_content,
    extract_action_context,
)
from notesmith.services.purposes import classify_purpose
from notesmith.services.renderers import render_note

logger = logging.getLogger(__name__)


class RemoteGenerator(NoteGenerator):
    """
    Generates notes with the chat-completion model.

    The model's JSON is trusted as-is once it parses and has the
    StructuredNote fields; tag counts and content quality are not checked.
    """

    name = "remote"

    def __init__(self, client: OpenRouterClient):
        self.client = client

    async def generate(
        self,
        raw_content: str,
        config: GenerationConfig,
        purpose: Optional[PurposeDefinition] = None,
    ) -> StructuredNote:
        messages = [
            {"role": "system", "content": build_system_instruction(config, purpose)},
            {"role": "user", "content": compose_user_content(raw_content, purpose)},
        ]
        text = await self.client.complete(
            messages,
            response_format=STRUCTURED_NOTE_RESPONSE_FORMAT,
        )
        if not text.strip():
            raise MalformedResponseError(message="Failed to generate content")

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise MalformedResponseError(
                message="AI response was not valid JSON",
                context={"error": str(e), "preview": text[:120]},
            ) from e

        try:
            note = StructuredNote.model_validate(data)
        except PydanticValidationError as e:
            raise MalformedResponseError(
                message="AI response did not match the note structure",
                context={"errors": e.error_count()},
            ) from e

        # A note always carries a title and a body; blank ones go to the fallback.
        blank = [
            name
            for name, value in (("title", note.title), ("formattedContent", note.formatted_content))
            if not value.strip()
        ]
        if blank:
            raise MalformedResponseError(
                message="AI response left required note fields blank",
                context={"blank_fields": blank},
            )
        return note


class HeuristicGenerator(NoteGenerator):
    """
    Builds notes locally from the raw text. Never raises.

    When the caller chose a purpose, its tag decides the template. Otherwise
    the instruction recovered from after the last "Action Requested:" marker
    is classified, and content without a marker renders the default shape.
    """

    name = "heuristic"

    async def generate(
        self,
        raw_content: str,
        config: GenerationConfig,
        purpose: Optional[PurposeDefinition] = None,
    ) -> StructuredNote:
        return self.synthesize(raw_content, config, purpose)

    def synthesize(
        self,
        raw_content: str,
        config: GenerationConfig,
        purpose: Optional[PurposeDefinition] = None,
    ) -> StructuredNote:
        """Synchronous core of generate(); pure function of its arguments."""
        composed = compose_user_content(raw_content, purpose)
        content, extracted = extract_action_context(composed)

        instruction = purpose.instructions if purpose is not None and purpose.instructions else extracted
        tag = purpose.tag if purpose is not None else classify_purpose(instruction)

        logger.debug("Heuristic note: purpose=%s chars=%d", tag.value, len(content))
        return render_note(tag, content or raw_content, config, instruction)
