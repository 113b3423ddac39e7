"""
NoteSmith Backend — Sentence / Paragraph Segmenter
====================================================

What:  Splits free-form text into sentences and paragraphs.
Who:   Used by the purpose renderers to build fallback notes.

All functions are total: any string, including "", yields a (possibly
empty) list and never raises.
"""

import re
from typing import List, Optional

_WHITESPACE_RUN = re.compile(r"\s+")

# Terminal punctuation stays attached to the sentence it ends.
_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")

_PARAGRAPH_BREAK = re.compile(r"\n{2,}")

_TERMINAL_PUNCTUATION = re.compile(r"[.!?]")

TITLE_MAX_LENGTH = 90


def segment_sentences(text: str, max_sentences: Optional[int] = None) -> List[str]:
    """
    Split text into sentences, preserving order.

    Whitespace runs (including newlines) collapse to single spaces first, so
    paragraph structure is not visible at sentence level. Text without
    terminal punctuation comes back as a single sentence.

    Args:
        text: Any string.
        max_sentences: Keep at most this many sentences (None = all).
    """
    normalized = _WHITESPACE_RUN.sub(" ", text).strip()
    sentences = [s for s in _SENTENCE_BOUNDARY.split(normalized) if s]
    if max_sentences is not None:
        sentences = sentences[:max_sentences]
    return sentences


def segment_paragraphs(text: str) -> List[str]:
    """Split on blank lines (two or more newlines), trimming each paragraph."""
    return [p.strip() for p in _PARAGRAPH_BREAK.split(text) if p.strip()]


def make_title(text: str, fallback: str = "Untitled Note") -> str:
    """
    Derive a title from the first sentence of `text`.

    Every `.`, `!` and `?` is removed (not only the trailing one) and the
    result is cut to 90 characters. Returns `fallback` when nothing is left.
    """
    first = segment_sentences(text, 1)
    if not first:
        return fallback
    title = _TERMINAL_PUNCTUATION.sub("", first[0])[:TITLE_MAX_LENGTH]
    return title or fallback
