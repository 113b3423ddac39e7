"""
NoteSmith Backend — Note Generator Interface
==============================================

What:  Abstract base class for anything that can turn raw content into a
       StructuredNote.
How:   Two implementations exist:
           RemoteGenerator    — asks the chat-completion model (may fail)
           HeuristicGenerator — local templates (never fails)
       NoteService tries the remote one and falls back to the heuristic one.
Who:   NoteService; tests substitute their own implementations.

Contract:
    - generate() receives the raw content, the generation config and the
      optional purpose picked by the caller.
    - Implementations that can fail raise a NoteSmithError subclass
      (LLMServiceError, MalformedResponseError, ConfigurationError); the
      orchestrator decides what to do with it.
"""

from abc import ABC, abstractmethod
from typing import Optional

from notesmith.schemas.note import GenerationConfig, PurposeDefinition, StructuredNote


class NoteGenerator(ABC):
    """Strategy interface for note generation."""

    #: Short name used in logs ("remote", "heuristic").
    name: str = "generator"

    @abstractmethod
    async def generate(
        self,
        raw_content: str,
        config: GenerationConfig,
        purpose: Optional[PurposeDefinition] = None,
    ) -> StructuredNote:
        """
        Produce a structured note.

        Args:
            raw_content: Text exactly as the caller supplied it.
            config: Tone and format preferences.
            purpose: Catalog entry chosen by the caller, if any.

        Returns:
            StructuredNote with title, summary, formatted_content and tags.

        Raises:
            NoteSmithError: Only implementations backed by a remote service.
        """
        ...
