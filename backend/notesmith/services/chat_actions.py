"""
NoteSmith Backend — Chatbot Action Parser
===========================================

What:  Parses the JSON "action" replies the chatbot is asked to produce and
       turns create-note actions into NoteRecord hand-offs.
How:   The model is told (CHAT_ACTION_SCHEMA_PROMPT) to answer with
           {"reply": str, "action": "none" | "create_note" | "delete_note",
            "note": {"title", "summary", "content"} | null, "noteId": str}
       parse_chat_reply() strips Markdown code fences and parses that JSON.
       Anything unparseable becomes a plain reply with action "none".
       format_note_context() lists the caller's notes so the model can
       reference their IDs.
Who:   POST /api/chat.
"""

import json
import logging
import re
from typing import Any, Dict, Literal, Optional, Sequence

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from notesmith.schemas.note import ChatNoteContext, NoteRecord

logger = logging.getLogger(__name__)

ChatActionType = Literal["none", "create_note", "delete_note"]

CHAT_ACTION_SCHEMA_PROMPT = (
    "Respond ONLY with compact JSON matching this schema:\n"
    '{"reply": string,\n'
    ' "action": "none" | "create_note" | "delete_note",\n'
    ' "note": {"title": string, "summary": string, "content": string} | null,\n'
    ' "noteId": string}\n'
    'If action is "none" set note to null and noteId to "".\n'
    'Example create: {"reply":"Summarizing sprint demo.","action":"create_note",'
    '"note":{"title":"Sprint Demo Recap","summary":"Key wins.","content":"Detailed note."},"noteId":""}\n'
    'Example delete: {"reply":"Removing note 123.","action":"delete_note","note":null,"noteId":"123"}'
)

NO_CONTEXT_HINT = (
    'If unsure, ask clarifying questions but still respond with JSON (action:"none").'
)

_CODE_FENCE = re.compile(r"```json|```", re.IGNORECASE)

NOTE_TITLE_MAX_LENGTH = 140

MAX_CONTEXT_NOTES = 5
MAX_CONTEXT_TAGS = 5


class ChatNotePayload(BaseModel):
    title: str = ""
    summary: str = ""
    content: str = ""


class ChatAction(BaseModel):
    reply: str
    action: ChatActionType = "none"
    note: Optional[ChatNotePayload] = None
    note_id: str = Field(default="", alias="noteId")

    model_config = {"populate_by_name": True}

    def to_note_record(self) -> Optional[NoteRecord]:
        """NoteRecord for a create_note action, None for anything else."""
        if self.action != "create_note" or self.note is None:
            return None
        note = self.note
        return NoteRecord(
            title=note.title[:NOTE_TITLE_MAX_LENGTH] or "Untitled",
            summary=note.summary or note.content[:160] or "AI generated note",
            content=note.content or note.summary or "AI created note.",
            tags=["chatbot"],
            type="text",
        )


def format_note_context(notes: Sequence[ChatNoteContext]) -> str:
    """
    List the caller's notes for the system message.

    Only the first five notes and five tags per note are included:

        Note 1:
        ID: 42
        Title: Sprint Demo
        Summary: Key wins.
        Tags: #work #demo
    """
    blocks = []
    for index, note in enumerate(notes[:MAX_CONTEXT_NOTES], start=1):
        tags = " ".join(f"#{tag}" for tag in note.tags[:MAX_CONTEXT_TAGS])
        blocks.append(
            f"Note {index}:\nID: {note.id}\nTitle: {note.title}\n"
            f"Summary: {note.summary}\nTags: {tags or 'none'}"
        )
    return "\n\n".join(blocks)


def build_chat_system_message(note_context: str = "") -> str:
    """System message for the action-aware chatbot, optionally listing notes."""
    if note_context:
        return (
            f"{CHAT_ACTION_SCHEMA_PROMPT}\n"
            "Use the following existing notes when deciding actions and referencing IDs:\n"
            f"{note_context}"
        )
    return f"{CHAT_ACTION_SCHEMA_PROMPT}\n{NO_CONTEXT_HINT}"


def parse_chat_reply(text: str) -> ChatAction:
    """
    Parse a chatbot reply. Never raises.

    Returns ChatAction(reply=text) when the reply is not the expected JSON.
    """
    cleaned = _CODE_FENCE.sub("", text.strip()).strip()
    try:
        data: Any = json.loads(cleaned)
    except json.JSONDecodeError:
        return ChatAction(reply=text)

    if not isinstance(data, dict):
        return ChatAction(reply=text)

    data = _normalize(data, fallback_reply=text)
    try:
        return ChatAction.model_validate(data)
    except PydanticValidationError as e:
        logger.info("Chat reply JSON did not match action schema: %d errors", e.error_count())
        return ChatAction(reply=text)


def _normalize(data: Dict[str, Any], fallback_reply: str) -> Dict[str, Any]:
    # Models often send null for noteId or omit reply; coerce before validating.
    normalized = dict(data)
    if not isinstance(normalized.get("reply"), str):
        normalized["reply"] = fallback_reply
    note_id = normalized.get("noteId")
    normalized["noteId"] = "" if note_id is None else str(note_id).strip()
    if normalized.get("action") is None:
        normalized["action"] = "none"
    return normalized
