"""
NoteSmith Backend — Pydantic Data Model
=========================================

What:  Pydantic models for the generation pipeline and its HTTP surface.
How:   Inputs (GenerationConfig, PurposeDefinition) are frozen; outputs
       (StructuredNote, NoteRecord) are plain models that serialize with the
       camelCase field names the frontend and the upstream JSON schema use.
Who:   Used by services as domain types and by route handlers as
       request/response contracts.
"""

import enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


# Literal separating raw content from an appended purpose instruction.
ACTION_MARKER = "Action Requested:"


# ══════════════════════════════════════════════════════════════════════════
# Enumerations
# ══════════════════════════════════════════════════════════════════════════


class Tone(str, enum.Enum):
    PROFESSIONAL = "professional"
    CREATIVE = "creative"
    CONCISE = "concise"


class NoteFormat(str, enum.Enum):
    BULLET_POINTS = "bullet_points"
    PARAGRAPH = "paragraph"
    FLASHCARDS = "flashcards"


class PurposeTag(str, enum.Enum):
    """
    Closed set of output shapes a caller can ask for.

    DEFAULT is never in the catalog; it is what the classifier returns when
    no purpose can be inferred.
    """

    SMART_NOTES = "smart_notes"
    SUMMARY = "summary"
    KEY_POINTS = "key_points"
    QA = "qa"
    FLASHCARDS = "flashcards"
    REWRITE_SOCIAL = "rewrite_social"
    FAQS = "faqs"
    MEETING_NOTES = "meeting_notes"
    DEFAULT = "default"


# ══════════════════════════════════════════════════════════════════════════
# Pipeline Inputs
# ══════════════════════════════════════════════════════════════════════════


class GenerationConfig(BaseModel):
    """Caller-supplied style preferences for one generation call."""

    tone: Tone = Field(default=Tone.PROFESSIONAL, description="Voice of the note")
    format: NoteFormat = Field(
        default=NoteFormat.BULLET_POINTS,
        description="Preferred body layout",
    )

    model_config = ConfigDict(frozen=True, use_enum_values=False)


class PurposeDefinition(BaseModel):
    """
    One entry of the purpose catalog.

    `instructions` is sent to the remote model verbatim and doubles as the
    text the classifier matches when only the composed content survives.
    """

    tag: PurposeTag
    label: str
    instructions: str

    model_config = ConfigDict(frozen=True)


# ══════════════════════════════════════════════════════════════════════════
# Pipeline Outputs
# ══════════════════════════════════════════════════════════════════════════


class NoteRecord(BaseModel):
    """
    What:  Hand-off shape for the persistence collaborator.
    Why:   Storage keeps the Markdown body under `content`, not
           `formattedContent`; this is the only place that rename happens.
    """

    title: str
    content: str
    summary: str
    tags: List[str] = Field(default_factory=list)
    type: Literal["text", "voice", "link", "media"] = "text"


class StructuredNote(BaseModel):
    """
    Canonical output of note generation.

    Python code uses `formatted_content`; JSON (upstream responses, API
    responses) uses `formattedContent`. Both names are accepted on input.
    """

    title: str = Field(description="Note title")
    summary: str = Field(default="", description="Short executive summary")
    formatted_content: str = Field(
        alias="formattedContent",
        description="Full note body in Markdown",
    )
    tags: List[str] = Field(default_factory=list, description="Category tags")

    model_config = ConfigDict(populate_by_name=True)

    def to_record(self, note_type: str = "text") -> NoteRecord:
        return NoteRecord(
            title=self.title,
            content=self.formatted_content,
            summary=self.summary,
            tags=list(self.tags),
            type=note_type,
        )


class ImageAnalysisResult(StructuredNote):
    """StructuredNote-shaped answer to a question about an image."""

    intent: str = Field(description="Classified intent of the image prompt")


class ChatMessage(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str


# ══════════════════════════════════════════════════════════════════════════
# Request / Response Models — HTTP surface
# ══════════════════════════════════════════════════════════════════════════


class GenerateNoteRequest(BaseModel):
    """
    What:  Body of POST /api/notes/generate.
    How:   `purpose` is a catalog tag; the route resolves it to the full
           PurposeDefinition before calling NoteService.
    """

    content: str = Field(description="Raw text to structure")
    config: GenerationConfig = Field(default_factory=GenerationConfig)
    purpose: Optional[PurposeTag] = Field(
        default=None,
        description="Catalog purpose; omitted means let the model decide",
    )


class ChatNoteContext(BaseModel):
    """A note the caller already has, listed so the chatbot can reference its ID."""

    id: str
    title: str
    summary: str = ""
    tags: List[str] = Field(default_factory=list)


class ChatRequest(BaseModel):
    """
    What:  Body of POST /api/chat.
    How:   `notes` is optional context supplied by the caller (only the first
           five are shown to the model); nothing is looked up server-side.
    """

    messages: List[ChatMessage] = Field(min_length=1)
    notes: List[ChatNoteContext] = Field(
        default_factory=list,
        description="Existing notes the assistant may reference or delete",
    )


class ChatResponse(BaseModel):
    reply: str
    action: str = "none"
    note: Optional[NoteRecord] = None
    note_id: Optional[str] = None


class ImageAnalysisRequest(BaseModel):
    image: str = Field(description="Data URL or bare base64 image payload")
    mime_type: Optional[str] = Field(default=None, description="MIME type of a bare payload")
    prompt: str = Field(description="Question about the image")


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Example:
        {
            "error": "validation_error",
            "message": "Prompt is required for image analysis",
            "details": {"field": "prompt"},
            "request_id": "1f2e3d4c"
        }
    """

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="healthy, or degraded when only fallback is available")
    version: str = Field(description="Application version")
    remote_configured: bool = Field(description="Whether an upstream API key is set")
    uptime_seconds: float = Field(description="Seconds since service started")
