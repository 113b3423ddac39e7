"""
NoteSmith Backend — Purpose Catalog & Classifier
==================================================

What:  The fixed catalog of note purposes and the keyword classifier that
       infers a purpose from a free-text instruction.
How:   The catalog is a read-only tuple of frozen PurposeDefinition models.
       The classifier lowercases the instruction and tests an ordered table
       of regular expressions; the first match wins.
Who:   Catalog: exposed to callers (GET /api/purposes) and resolved by the
       generate route. Classifier: used by HeuristicGenerator when the caller
       did not pick a purpose explicitly.

Priority Order:
    The patterns overlap ("concise" appears in the flashcards instructions,
    "highlights" in the smart-notes ones), so the table order is part of the
    contract. An instruction mentioning both "summary" and "flashcards"
    classifies as SUMMARY.
"""

import re
from types import MappingProxyType
from typing import Mapping, Optional, Pattern, Tuple

from notesmith.exceptions import ValidationError
from notesmith.schemas.note import PurposeDefinition, PurposeTag

PURPOSE_CATALOG: Tuple[PurposeDefinition, ...] = (
    PurposeDefinition(
        tag=PurposeTag.SMART_NOTES,
        label="Generate smart notes",
        instructions=(
            "Transform the content into well-structured smart notes with sections, "
            "highlights, and actionable takeaways."
        ),
    ),
    PurposeDefinition(
        tag=PurposeTag.SUMMARY,
        label="Create summary",
        instructions=(
            "Provide a concise executive summary capturing the main thesis and "
            "supporting ideas."
        ),
    ),
    PurposeDefinition(
        tag=PurposeTag.KEY_POINTS,
        label="Extract key points",
        instructions="List the most important bullet points or insights from the content.",
    ),
    PurposeDefinition(
        tag=PurposeTag.QA,
        label="Generate Q&A",
        instructions="Create thoughtful question and answer pairs based on the article.",
    ),
    PurposeDefinition(
        tag=PurposeTag.FLASHCARDS,
        label="Convert to flashcards",
        instructions="Turn the content into concise flashcards with prompts and answers.",
    ),
    PurposeDefinition(
        tag=PurposeTag.REWRITE_SOCIAL,
        label="Rewrite as blog / LinkedIn post",
        instructions=(
            "Rewrite the content in a polished, first-person voice suitable for a "
            "LinkedIn or blog post."
        ),
    ),
    PurposeDefinition(
        tag=PurposeTag.FAQS,
        label="Extract FAQs / insights",
        instructions="Surface frequently asked questions and insights with answers.",
    ),
    PurposeDefinition(
        tag=PurposeTag.MEETING_NOTES,
        label="Create meeting notes",
        instructions=(
            "Convert the content into a meeting-style note with agenda, discussion "
            "points, decisions, and next steps."
        ),
    ),
)

_CATALOG_BY_TAG: Mapping[PurposeTag, PurposeDefinition] = MappingProxyType(
    {purpose.tag: purpose for purpose in PURPOSE_CATALOG}
)

# Ordered: earlier rows win when several patterns match.
PURPOSE_PATTERNS: Tuple[Tuple[PurposeTag, Pattern[str]], ...] = (
    (PurposeTag.SMART_NOTES, re.compile(r"smart|structured|sections")),
    (PurposeTag.SUMMARY, re.compile(r"summary|summarize|concise")),
    (PurposeTag.KEY_POINTS, re.compile(r"key points|bullets|highlights")),
    (PurposeTag.QA, re.compile(r"q&a|question|answer")),
    (PurposeTag.FLASHCARDS, re.compile(r"flashcard|prompt and answer")),
    (PurposeTag.REWRITE_SOCIAL, re.compile(r"rewrite|linkedin|blog|first-person")),
    (PurposeTag.FAQS, re.compile(r"faq|frequently asked|insight")),
    (PurposeTag.MEETING_NOTES, re.compile(r"meeting|agenda|decisions|next steps")),
)


def get_purpose(tag: PurposeTag) -> PurposeDefinition:
    """
    Look up the catalog entry for `tag`.

    Raises:
        ValidationError: for DEFAULT (not a catalog entry) or unknown values.
    """
    try:
        return _CATALOG_BY_TAG[PurposeTag(tag)]
    except (KeyError, ValueError):
        raise ValidationError(
            message=f"Unknown purpose '{tag}'",
            field="purpose",
            context={"allowed": [p.tag.value for p in PURPOSE_CATALOG]},
        )


def classify_purpose(instruction: Optional[str]) -> PurposeTag:
    """
    Infer a purpose tag from a free-text instruction.

    Returns PurposeTag.DEFAULT for None, "" and instructions that match no
    pattern. Never raises.
    """
    if not instruction:
        return PurposeTag.DEFAULT
    normalized = instruction.lower()
    for tag, pattern in PURPOSE_PATTERNS:
        if pattern.search(normalized):
            return tag
    return PurposeTag.DEFAULT
