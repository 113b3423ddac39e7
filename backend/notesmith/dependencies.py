"""
FastAPI dependencies for the NoteSmith API.

The NoteService instance is built by the application factory and stored on
`app.state`; routes receive it through `Depends(get_note_service)` so tests
can swap it with `app.dependency_overrides`.
"""

from fastapi import Request

from notesmith.services.note_service import NoteService


def get_note_service(request: Request) -> NoteService:
    """Return the NoteService attached to the running app."""
    service = getattr(request.app.state, "note_service", None)
    if service is None:
        raise RuntimeError("NoteService not initialized")
    return service
