"""
NoteSmith Backend — Custom Exception Hierarchy
================================================

What:  Application-specific exceptions for the generation pipeline.
Why:   The orchestrator needs to tell "upstream failed, synthesize locally"
       apart from "caller sent something invalid", and the HTTP layer needs
       a status code for each without leaking upstream details.
How:   Each exception carries a message and an optional context dict.
       Global exception handlers (registered in main.py) turn them into
       structured JSON error responses.
Who:   Raised by the OpenRouter client, the remote generator and request
       validation; caught by NoteService (fallback) and the HTTP layer.
When:  During a generation, chat or image request.

Exception Hierarchy:
    NoteSmithError (base)
    ├── ValidationError            → 400 Bad Request (client can fix)
    ├── ConfigurationError         → remote generation not configured
    └── LLMServiceError            → 503 Service Unavailable
        └── MalformedResponseError → upstream answered with unusable content

Note generation never lets these escape: NoteService.generate_note treats
every NoteSmithError from the remote path as a signal to synthesize the note
locally. Only chat/image helpers and request validation surface them.
"""

from typing import Any, Dict, Optional


class NoteSmithError(Exception):
    """
    Base exception for all NoteSmith application errors.

    What:    Root of the exception hierarchy.
    Why:     NoteService catches this one type to decide on the fallback.
    How:     Stores a human-readable message and optional context for debugging.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        # Why separate context: upstream status codes, request IDs and
        # response previews belong in logs, not in API responses
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(NoteSmithError):
    """
    Raised when caller input fails validation.

    What:    The caller sent data that passes the schema but can't be used.
    When:    Blank image prompt, oversized image payload, unknown purpose tag,
             chat history where every message is blank.
    HTTP:    400 Bad Request

    Why 400 (not 422):
        FastAPI already answers schema errors with 422; 400 marks the
        business-rule checks made by the service itself.

    Example response:
        {
            "error": "validation_error",
            "message": "Prompt is required for image analysis",
            "details": {"field": "prompt"}
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class ConfigurationError(NoteSmithError):
    """
    Raised when a remote call is attempted without an API key.

    When:    OpenRouterClient.complete() with TEXT_AI_API_KEY unset.
    Effect:  generate_note falls back to the heuristic note; chat answers
             with its apology. NoteService normally avoids the call
             altogether when the client is not configured.
    """

    def __init__(
        self,
        message: str = "TEXT_AI_API_KEY is not set",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class LLMServiceError(NoteSmithError):
    """
    Raised when the chat-completion service fails.

    What:    The upstream model could not be reached or refused the request.
    When:    Connection errors, timeouts, non-2xx responses.
    HTTP:    503 Service Unavailable

    Why no retry here:
        A failed call is reported once. For notes the local fallback is the
        recovery path; retrying would only delay the answer the caller gets.

    Context commonly carries `request_id`, `status_code` and `error_type`.
    """

    def __init__(
        self,
        message: str = "AI generation service is temporarily unavailable",
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if status_code is not None:
            ctx["status_code"] = status_code
        super().__init__(message=message, context=ctx)
        self.status_code = status_code


class MalformedResponseError(LLMServiceError):
    """
    Raised when the service answered but its content is unusable.

    When:    A response body that is not JSON, empty message content, content
             that is not valid JSON, JSON without the StructuredNote shape,
             or a note whose title or body is blank.
    """

    def __init__(
        self,
        message: str = "AI service returned an unusable response",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
