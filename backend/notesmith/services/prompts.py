"""
NoteSmith Backend — Prompt Templates
======================================

What:  Text sent to the chat-completion model and the JSON-schema constraint
       for structured notes.
Who:   RemoteGenerator (note generation), HeuristicGenerator (reuses
       compose_user_content / extract_action_context), NoteService (chat).
"""

from typing import Any, Dict, Optional, Tuple

from notesmith.schemas.note import ACTION_MARKER, GenerationConfig, PurposeDefinition

CHAT_SYSTEM_PROMPT = (
    "You are a helpful AI assistant for a note-taking app. "
    "Answer questions clearly and concisely."
)

STRUCTURED_NOTE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "required": ["title", "summary", "formattedContent", "tags"],
    "properties": {
        "title": {"type": "string", "description": "Catchy note title"},
        "summary": {"type": "string", "description": "Two sentence summary"},
        "formattedContent": {"type": "string", "description": "Markdown note body"},
        "tags": {
            "type": "array",
            "minItems": 3,
            "maxItems": 5,
            "items": {"type": "string"},
        },
    },
}

STRUCTURED_NOTE_RESPONSE_FORMAT: Dict[str, Any] = {
    "type": "json_schema",
    "json_schema": {
        "name": "StructuredNote",
        "schema": STRUCTURED_NOTE_SCHEMA,
    },
}


def build_system_instruction(
    config: GenerationConfig,
    purpose: Optional[PurposeDefinition] = None,
) -> str:
    """System prompt embedding tone, format and the optional purpose mode."""
    lines = [
        "You are an expert personal assistant and note-taker.",
        "Convert the provided raw input into a structured, highly organized note.",
        f"Tone: {config.tone.value}",
        f"Preferred Format: {config.format.value}",
    ]
    if purpose is not None:
        lines.append(f"Current Action Mode: {purpose.label}")
        lines.append(f"Objective: {purpose.instructions}")
    lines.extend([
        "Always follow the current action mode if provided.",
        "",
        "You must respond with a valid JSON object containing exactly these fields:",
        "- title: A catchy but descriptive title (string)",
        "- summary: A 2-sentence executive summary (string)",
        "- formattedContent: The full note formatted in Markdown (string)",
        "- tags: 3-5 relevant category tags (array of strings)",
        "",
        "Respond ONLY with valid JSON, no markdown code blocks or other text.",
    ])
    return "\n".join(lines)


def compose_user_content(raw_content: str, purpose: Optional[PurposeDefinition] = None) -> str:
    """Append the purpose instruction after the marker, when there is one."""
    if purpose is not None and purpose.instructions:
        return f"{raw_content}\n\n{ACTION_MARKER} {purpose.instructions}"
    return raw_content


def extract_action_context(composed: str) -> Tuple[str, Optional[str]]:
    """
    Split composed user content back into (content, instruction).

    Uses the LAST occurrence of the marker, so raw text that itself quotes
    "Action Requested:" keeps that text in the content. Both halves are
    stripped; an empty instruction becomes None.

    >>> extract_action_context("A Action Requested: B Action Requested: C")
    ('A Action Requested: B', 'C')
    """
    index = composed.rfind(ACTION_MARKER)
    if index == -1:
        return composed.strip(), None
    content = composed[:index].strip()
    instruction = composed[index + len(ACTION_MARKER):].strip()
    return content, instruction or None
