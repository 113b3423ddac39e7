"""
NoteSmith Backend — Purpose Renderers
=======================================

What:  Deterministic templates that turn raw text into a StructuredNote for
       each PurposeTag, without any model call.
How:   `RenderContext.build()` segments the content once; one renderer per
       tag turns that context into title, summary, Markdown body and tags.
       `RENDERERS` maps every PurposeTag to its renderer and is checked for
       completeness at import time.
Who:   Called by HeuristicGenerator when the remote model is unavailable or
       answered with something unusable.

Output Shapes (user-visible, keep stable):
    smart_notes     ### Overview / ### Highlights / ### Next Steps
    summary         ### Executive Summary + **Key Insights** bullets
    key_points      ### Key Points bullets
    qa              ### Generated Q&A, up to 3 Q/A pairs
    flashcards      ### Flashcards, up to 3 cards
    rewrite_social  "Hey everyone — " + summary, then every paragraph
    faqs            ### FAQs & Insights, up to 4 Q/A pairs
    meeting_notes   ### Agenda Highlights / ### Discussion Notes /
                    ### Decisions & Next Steps
    default         bullets or paragraphs + italic trailing instruction line

Every renderer is pure and total: the same arguments always give the same
note, and empty content still produces a non-empty title and body.
"""

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, List, Mapping, Optional, Sequence, Tuple

from notesmith.schemas.note import GenerationConfig, PurposeTag, StructuredNote
from notesmith.services.segmenter import make_title, segment_paragraphs, segment_sentences

FALLBACK_TITLE = "AI Draft"
FALLBACK_SUMMARY = "Summary unavailable (content too short)."
FALLBACK_NOTICE = "AI fallback output."

MAX_SENTENCES = 6

_FLASHCARD_PROMPT_SPLIT = re.compile(r"[:-]")
_FAQ_QUESTION_SPLIT = re.compile(r"[:.-]")


@dataclass(frozen=True)
class RenderContext:
    """Values shared by every renderer, derived once per call."""

    title: str
    summary: str
    sentences: Tuple[str, ...]
    paragraphs: Tuple[str, ...]
    key_points: Tuple[str, ...]
    config: GenerationConfig
    instruction: Optional[str]

    @classmethod
    def build(
        cls,
        content: str,
        config: GenerationConfig,
        instruction: Optional[str] = None,
    ) -> "RenderContext":
        summary_sentences = segment_sentences(content, 2)
        sentences = segment_sentences(content, MAX_SENTENCES)
        return cls(
            title=make_title(content, FALLBACK_TITLE),
            summary=" ".join(summary_sentences) if summary_sentences else FALLBACK_SUMMARY,
            sentences=tuple(sentences),
            paragraphs=tuple(segment_paragraphs(content)),
            key_points=tuple(f"- {sentence}" for sentence in sentences),
            config=config,
            instruction=instruction,
        )

    @property
    def tone(self) -> str:
        return self.config.tone.value

    @property
    def format(self) -> str:
        return self.config.format.value


Renderer = Callable[[RenderContext], StructuredNote]


def format_sections(sections: Sequence[Tuple[str, Sequence[str]]]) -> str:
    """Render (heading, lines) pairs as `### heading` blocks separated by a blank line."""
    return "\n\n".join(
        f"### {heading}\n" + "\n".join(body) for heading, body in sections
    )


def _lead_phrase(sentence: str, splitter: re.Pattern, fallback: str) -> str:
    # Text before the first separator; an empty lead means the sentence
    # starts with the separator.
    return splitter.split(sentence, maxsplit=1)[0] or fallback


def _note(ctx: RenderContext, suffix: Optional[str], body: str, tags: List[str]) -> StructuredNote:
    title = f"{ctx.title} — {suffix}" if suffix else ctx.title
    return StructuredNote(
        title=title,
        summary=ctx.summary,
        formatted_content=body,
        tags=tags,
    )


# ══════════════════════════════════════════════════════════════════════════
# Per-purpose renderers
# ══════════════════════════════════════════════════════════════════════════


def render_smart_notes(ctx: RenderContext) -> StructuredNote:
    body = format_sections([
        ("Overview", [ctx.summary]),
        ("Highlights", ctx.key_points[:4]),
        ("Next Steps", ctx.key_points[4:]),
    ])
    return _note(ctx, "Smart Notes", body, ["smart-notes", ctx.tone, ctx.format])


def render_summary(ctx: RenderContext) -> StructuredNote:
    body = (
        f"### Executive Summary\n{ctx.summary}\n\n"
        f"**Key Insights**\n" + "\n".join(ctx.key_points)
    )
    return _note(ctx, "Summary", body, ["summary", ctx.tone])


def render_key_points(ctx: RenderContext) -> StructuredNote:
    body = "### Key Points\n" + "\n".join(ctx.key_points)
    return _note(ctx, "Key Points", body, ["key-points", ctx.format])


def render_qa(ctx: RenderContext) -> StructuredNote:
    pairs = [
        f"**Q{i}:** What is the main idea {'here' if i == 1 else 'next'}?\n"
        f"**A{i}:** {sentence}"
        for i, sentence in enumerate(ctx.sentences[:3], start=1)
    ]
    body = "### Generated Q&A\n" + "\n\n".join(pairs)
    return _note(ctx, "Q&A", body, ["qa", "insights"])


def render_flashcards(ctx: RenderContext) -> StructuredNote:
    cards = [
        f"**Card {i}**\n"
        f"**Prompt:** {_lead_phrase(sentence, _FLASHCARD_PROMPT_SPLIT, 'Key idea')}\n"
        f"**Answer:** {sentence}"
        for i, sentence in enumerate(ctx.sentences[:3], start=1)
    ]
    body = "### Flashcards\n" + "\n\n".join(cards)
    return _note(ctx, "Flashcards", body, ["flashcards", "study"])


def render_rewrite_social(ctx: RenderContext) -> StructuredNote:
    body = f"Hey everyone — {ctx.summary}\n\n" + "\n\n".join(ctx.paragraphs)
    return _note(ctx, "Social Rewrite", body, ["rewrite", "social"])


def render_faqs(ctx: RenderContext) -> StructuredNote:
    pairs = [
        f"**Q{i}:** {_lead_phrase(sentence, _FAQ_QUESTION_SPLIT, 'Key takeaway')}?\n"
        f"**A:** {sentence}"
        for i, sentence in enumerate(ctx.sentences[:4], start=1)
    ]
    body = "### FAQs & Insights\n" + "\n\n".join(pairs)
    return _note(ctx, "FAQs", body, ["faqs", "insights"])


def render_meeting_notes(ctx: RenderContext) -> StructuredNote:
    body = format_sections([
        ("Agenda Highlights", ctx.key_points[:3]),
        ("Discussion Notes", ctx.paragraphs[:2]),
        ("Decisions & Next Steps", ctx.key_points[3:6]),
    ])
    return _note(ctx, "Meeting Notes", body, ["meeting-notes", "recap"])


def render_default(ctx: RenderContext) -> StructuredNote:
    if ctx.config.format.value == "paragraph":
        lead = "\n\n".join(ctx.paragraphs)
    else:
        lead = "\n".join(ctx.key_points)
    body = f"{lead}\n\n_{ctx.instruction or FALLBACK_NOTICE}_"
    return _note(ctx, None, body, ["ai-fallback", ctx.tone, ctx.format])


RENDERERS: Mapping[PurposeTag, Renderer] = MappingProxyType({
    PurposeTag.SMART_NOTES: render_smart_notes,
    PurposeTag.SUMMARY: render_summary,
    PurposeTag.KEY_POINTS: render_key_points,
    PurposeTag.QA: render_qa,
    PurposeTag.FLASHCARDS: render_flashcards,
    PurposeTag.REWRITE_SOCIAL: render_rewrite_social,
    PurposeTag.FAQS: render_faqs,
    PurposeTag.MEETING_NOTES: render_meeting_notes,
    PurposeTag.DEFAULT: render_default,
})

_missing = set(PurposeTag) - set(RENDERERS)
if _missing:
    raise RuntimeError(f"No renderer registered for: {sorted(t.value for t in _missing)}")


def render_note(
    tag: PurposeTag,
    content: str,
    config: GenerationConfig,
    instruction: Optional[str] = None,
) -> StructuredNote:
    """
    Build a fallback note for `tag` from raw `content`.

    Args:
        tag: Output shape to produce.
        content: Raw text, already stripped of any appended instruction.
        config: Tone/format; some shapes echo them as tags.
        instruction: Free-text instruction, echoed by the default shape.
    """
    ctx = RenderContext.build(content, config, instruction)
    return RENDERERS[PurposeTag(tag)](ctx)
