"""
NoteSmith Backend — Note Service (Generation Orchestrator)
============================================================

What:  Entry point for note generation, chat replies and image questions.
How:   Composes a RemoteGenerator (chat-completion model) with a
       HeuristicGenerator (local templates) and decides which answer the
       caller gets.
Who:   Route handlers and any caller embedding the pipeline.

Orchestration Flow (generate_note):
    ┌──────────────┐  ok   ┌────────────────┐
    │ RemoteGen.   │──────▶│ StructuredNote │
    └──────┬───────┘       └────────────────┘
           │ LLMServiceError / MalformedResponseError /
           │ ConfigurationError / unexpected error
           ▼
    ┌──────────────────────────────────────────┐
    │ HeuristicGenerator                       │
    │ last-marker split → classify → segment → │
    │ render                                   │
    └──────────────────────────────────────────┘

    One remote attempt per call. There is no retry: the heuristic note is
    the recovery path, and generate_note never raises.

Chat and image analysis follow the same single-call pattern but have no
local synthesis: on failure they answer with a fixed apology.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from notesmith.config import Settings
from notesmith.exceptions import MalformedResponseError, NoteSmithError, ValidationError
from notesmith.schemas.note import (
    ChatMessage,
    GenerationConfig,
    ImageAnalysisResult,
    PurposeDefinition,
    StructuredNote,
)
from notesmith.services.generators import HeuristicGenerator, RemoteGenerator
from notesmith.services.image_intent import (
    MULTIMODAL_SYSTEM_PROMPT,
    classify_image_intent,
    system_prompt_for,
    title_for,
)
from notesmith.services.llm_base import NoteGenerator
from notesmith.services.openrouter_client import OpenRouterClient
from notesmith.services.prompts import CHAT_SYSTEM_PROMPT

logger = logging.getLogger(__name__)

CHAT_FALLBACK_REPLY = (
    "I'm having trouble connecting to the internet right now (Check API Key). "
    "But I'm here to help!"
)
CHAT_EMPTY_REPLY = "No response generated."
IMAGE_FALLBACK_REPLY = "I couldn't analyze this image right now. Please try again shortly."

# Decoded size limit for inline (data URL / base64) images.
MAX_IMAGE_BYTES = 2 * 1024 * 1024

SUMMARY_PREVIEW_LENGTH = 200

HistoryItem = Union[ChatMessage, Dict[str, Any]]


class NoteService:
    """
    Orchestrates note generation with a deterministic fallback.

    Dependencies are injected: pass OpenRouterClient instances (or None to
    run heuristic-only), or override the generators directly in tests.
    """

    def __init__(
        self,
        client: Optional[OpenRouterClient] = None,
        image_client: Optional[OpenRouterClient] = None,
        remote: Optional[NoteGenerator] = None,
        heuristic: Optional[HeuristicGenerator] = None,
        max_history: int = 6,
        image_max_tokens: int = 700,
        image_temperature: float = 0.4,
    ):
        self.client = client
        self.image_client = image_client or client
        if remote is None and client is not None and client.configured:
            remote = RemoteGenerator(client)
        self.remote = remote
        self.heuristic = heuristic or HeuristicGenerator()
        self.max_history = max_history
        self.image_max_tokens = image_max_tokens
        self.image_temperature = image_temperature

    @classmethod
    def from_settings(cls, settings: Settings) -> "NoteService":
        """Wire clients from Settings. Used by the application factory."""
        client = OpenRouterClient.from_settings(settings)
        image_client = None
        if settings.image_api_key and settings.image_api_key != client.api_key:
            image_client = OpenRouterClient.from_settings(settings, api_key=settings.image_api_key)
        return cls(
            client=client,
            image_client=image_client,
            max_history=settings.text_ai_max_history,
            image_max_tokens=settings.image_ai_max_tokens,
            image_temperature=settings.image_ai_temperature,
        )

    @property
    def remote_configured(self) -> bool:
        return self.remote is not None

    async def aclose(self) -> None:
        """Release HTTP connections held by the injected clients."""
        if self.image_client is not None and self.image_client is not self.client:
            await self.image_client.aclose()
        if self.client is not None:
            await self.client.aclose()

    # ── Note generation ───────────────────────────────────────────────────

    async def generate_note(
        self,
        raw_content: str,
        config: GenerationConfig,
        purpose: Optional[PurposeDefinition] = None,
    ) -> StructuredNote:
        """
        Turn raw text into a StructuredNote. Never raises.

        Args:
            raw_content: Pasted text, transcript, article body, chat log …
            config: Tone / format preferences.
            purpose: Catalog entry chosen by the caller. When omitted the
                     fallback infers one from any "Action Requested:"
                     instruction inside raw_content.

        Returns:
            The model's note, or a heuristic note tagged by its template
            (e.g. "ai-fallback" for the default shape).
        """
        if self.remote is None:
            logger.info("No remote generator configured; using heuristic note")
            return self.heuristic.synthesize(raw_content, config, purpose)

        try:
            note = await self.remote.generate(raw_content, config, purpose)
            logger.info(
                "Remote note generated: purpose=%s tags=%d",
                purpose.tag.value if purpose else "none",
                len(note.tags),
            )
            return note
        except NoteSmithError as e:
            logger.warning(
                "AI generation failed, using heuristic fallback: %s | context=%s",
                e.message,
                e.context,
            )
        except Exception as e:
            logger.error(
                "Unexpected error during AI generation, using heuristic fallback: %s",
                str(e),
                exc_info=True,
            )

        return self.heuristic.synthesize(raw_content, config, purpose)

    # ── Chat ──────────────────────────────────────────────────────────────

    def normalize_history(self, history: Sequence[HistoryItem]) -> List[Dict[str, str]]:
        """
        Keep system messages, then the last `max_history` non-empty turns.

        Content is stripped; messages that are empty after stripping are
        dropped before the window is applied.
        """
        system: List[Dict[str, str]] = []
        turns: List[Dict[str, str]] = []
        for item in history:
            message = item if isinstance(item, ChatMessage) else ChatMessage.model_validate(item)
            content = message.content.strip()
            if not content:
                continue
            entry = {"role": message.role, "content": content}
            (system if message.role == "system" else turns).append(entry)
        return system + turns[-self.max_history:]

    async def chat_with_ai(self, history: Sequence[HistoryItem]) -> str:
        """
        Reply to a chat conversation.

        Returns the model's text, "No response generated." when the model
        answered with nothing, or a fixed apology when the call failed.
        """
        if self.client is None:
            return CHAT_FALLBACK_REPLY

        messages = [{"role": "system", "content": CHAT_SYSTEM_PROMPT}]
        messages.extend(self.normalize_history(history))

        try:
            reply = await self.client.complete(messages)
        except NoteSmithError as e:
            logger.warning("Chat error: %s | context=%s", e.message, e.context)
            return CHAT_FALLBACK_REPLY
        except Exception as e:
            logger.error("Unexpected chat error: %s", str(e), exc_info=True)
            return CHAT_FALLBACK_REPLY
        return reply or CHAT_EMPTY_REPLY

    # ── Image analysis ────────────────────────────────────────────────────

    async def analyze_image_note(
        self,
        image: str,
        mime_type: Optional[str],
        prompt: str,
    ) -> ImageAnalysisResult:
        """
        Answer a question about an image as a StructuredNote-shaped result.

        Args:
            image: `data:` URL, http(s) URL, or bare base64 payload.
            mime_type: MIME type for a bare payload (default image/png).
            prompt: The user's question.

        Raises:
            ValidationError: Blank prompt, missing image, or an inline image
                             above 2 MB.
        """
        if not prompt or not prompt.strip():
            raise ValidationError(message="Prompt is required for image analysis", field="prompt")

        image_url = to_image_url(image, mime_type)
        intent = classify_image_intent(prompt)

        messages = [
            {"role": "system", "content": MULTIMODAL_SYSTEM_PROMPT},
            {"role": "system", "content": system_prompt_for(intent)},
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt.strip()},
                    {"type": "image_url", "image_url": {"url": image_url}},
                ],
            },
        ]

        tags = ["image", intent.value]
        answer = ""
        if self.image_client is not None:
            try:
                answer = (await self.image_client.complete(
                    messages,
                    max_tokens=self.image_max_tokens,
                    temperature=self.image_temperature,
                )).strip()
                if not answer:
                    raise MalformedResponseError(message="Empty AI response")
            except NoteSmithError as e:
                logger.warning("Image analysis failed: %s | context=%s", e.message, e.context)
                answer = ""
            except Exception as e:
                logger.error("Unexpected image analysis error: %s", str(e), exc_info=True)
                answer = ""

        if not answer:
            answer = IMAGE_FALLBACK_REPLY
            tags.append("ai-unavailable")

        summary = answer
        if len(answer) > SUMMARY_PREVIEW_LENGTH:
            summary = answer[:SUMMARY_PREVIEW_LENGTH] + "…"

        return ImageAnalysisResult(
            title=title_for(intent),
            summary=summary,
            formatted_content=f"Question: {prompt}\n\n{answer}",
            tags=tags,
            intent=intent.value,
        )


def to_image_url(image: str, mime_type: Optional[str] = None) -> str:
    """
    Normalize an image argument to something the model accepts.

    http(s) URLs pass through. Data URLs pass through after a size check.
    Anything else is treated as bare base64 and wrapped in a data URL.
    """
    image = (image or "").strip()
    if not image:
        raise ValidationError(message="An image is required for image analysis", field="image")

    if image.startswith(("http://", "https://")):
        return image

    if image.startswith("data:"):
        _, _, payload = image.partition(",")
        if not payload:
            raise ValidationError(message="Malformed data URL provided", field="image")
        data_url = image
    else:
        payload = image
        data_url = f"data:{mime_type or 'image/png'};base64,{image}"

    estimated_size = len(payload) * 3 / 4
    if estimated_size > MAX_IMAGE_BYTES:
        raise ValidationError(
            message="Image too large. Maximum size is 2MB. Please compress or resize your image.",
            field="image",
            context={"estimated_bytes": int(estimated_size)},
        )
    return data_url
