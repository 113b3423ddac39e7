"""
NoteSmith Backend — Package Initializer
========================================

What: Marks the `notesmith` directory as a Python package.
Why:  Enables imports like `from notesmith.config import settings`.
Who:  Used by pytest, uvicorn (`notesmith.main:app`) and any caller embedding
      the generation pipeline directly.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   NoteService (Orchestrator)        │  ← remote call, then fallback
    ├──────────────────┬──────────────────┤
    │ RemoteGenerator  │ HeuristicGenerator│
    │ (OpenRouter)     │ classify→segment→ │
    │                  │ render            │
    ├──────────────────┴──────────────────┤
    │        Schemas (pydantic)           │  ← StructuredNote, configs
    └─────────────────────────────────────┘

    Persistence is not part of this package: finished notes are handed off
    as `NoteRecord` objects to whatever storage layer the caller owns.
"""

__version__ = "1.0.0"
