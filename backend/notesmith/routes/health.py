"""
NoteSmith Backend — Health Check Route
========================================

What:  GET /health for container probes and monitoring.
How:   Reports whether the remote model is configured. The service can
       always answer generation requests (heuristic fallback), so a missing
       key only marks it "degraded"; no upstream call is made here.
"""

import time

from fastapi import APIRouter, Depends

from notesmith import __version__
from notesmith.dependencies import get_note_service
from notesmith.schemas.note import HealthResponse
from notesmith.services.note_service import NoteService

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(service: NoteService = Depends(get_note_service)) -> HealthResponse:
    remote = service.remote_configured
    return HealthResponse(
        status="healthy" if remote else "degraded",
        version=__version__,
        remote_configured=remote,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
