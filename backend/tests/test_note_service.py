"""
NoteSmith Backend — Note Service Unit Tests
=============================================

What:  Tests for the NoteService orchestrator.
Why:   generate_note must always return a note, whatever the upstream does.
How:   OpenRouter is replaced by httpx.MockTransport handlers (see conftest)
       or by AsyncMock generators; nothing touches the network.

What we test:
    ✅ Remote success returns the model's note unchanged
    ✅ Non-2xx, transport error, invalid JSON, wrong shape, empty reply
       and unexpected exceptions all fall back to the heuristic note
    ✅ No client configured → heuristic note, no request sent
    ✅ Prompt payload carries purpose mode and action marker
    ✅ Chat: history window, apology on failure, empty reply text
    ✅ Image analysis: intent, titles, truncation, validation, fallback
"""

import httpx
import pytest
from unittest.mock import AsyncMock

from notesmith.exceptions import ValidationError
from notesmith.schemas.note import ChatMessage, GenerationConfig, PurposeTag, StructuredNote
from notesmith.services.note_service import (
    CHAT_EMPTY_REPLY,
    CHAT_FALLBACK_REPLY,
    IMAGE_FALLBACK_REPLY,
    MAX_IMAGE_BYTES,
    NoteService,
    to_image_url,
)
from notesmith.services.prompts import CHAT_SYSTEM_PROMPT
from notesmith.services.purposes import PURPOSE_CATALOG, get_purpose

SKY_TEXT = "The sky is blue. Water is wet. Fire is hot."

MEETING_TEXT = (
    "Agenda: budget review. We discussed hiring plans.\n\n"
    "Decision: hire two engineers. Next steps: post the roles."
    "\n\nAction Requested: Please create meeting notes with agenda and decisions"
)

REMOTE_NOTE = {
    "title": "Colours of Nature",
    "summary": "Facts about the world. Nothing more.",
    "formattedContent": "## Facts\n- Sky\n- Water",
    "tags": ["nature", "facts", "science"],
}


def _summary_heuristic_note(config: GenerationConfig) -> StructuredNote:
    return NoteService(client=None).heuristic.synthesize(
        SKY_TEXT, config, get_purpose(PurposeTag.SUMMARY)
    )


class TestGenerateNoteRemote:
    """generate_note() with a configured remote model."""

    @pytest.mark.asyncio
    async def test_remote_success(self, make_client, completion_response, generation_config):
        client = make_client(lambda request: completion_response(REMOTE_NOTE))
        service = NoteService(client=client)

        note = await service.generate_note(SKY_TEXT, generation_config)

        assert note.title == "Colours of Nature"
        assert note.formatted_content == "## Facts\n- Sky\n- Water"
        assert note.tags == ["nature", "facts", "science"]

    @pytest.mark.asyncio
    async def test_remote_payload(self, make_client, completion_response, generation_config):
        client = make_client(lambda request: completion_response(REMOTE_NOTE))
        service = NoteService(client=client)
        purpose = get_purpose(PurposeTag.SUMMARY)

        await service.generate_note(SKY_TEXT, generation_config, purpose)

        body = client.sent[0]["body"]
        system, user = body["messages"]
        assert system["role"] == "system"
        assert "Current Action Mode: Create summary" in system["content"]
        assert user["content"] == f"{SKY_TEXT}\n\nAction Requested: {purpose.instructions}"
        assert body["response_format"]["json_schema"]["name"] == "StructuredNote"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "handler",
        [
            pytest.param(lambda request: httpx.Response(500, text="boom"), id="http-500"),
            pytest.param(lambda request: httpx.Response(200, text="not json"), id="non-json-body"),
        ],
    )
    async def test_http_failures_fall_back(self, make_client, generation_config, handler):
        service = NoteService(client=make_client(handler))
        purpose = get_purpose(PurposeTag.SUMMARY)

        note = await service.generate_note(SKY_TEXT, generation_config, purpose)

        assert note == _summary_heuristic_note(generation_config)
        assert note.title == "The sky is blue — Summary"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "content",
        [
            pytest.param("Here is your note!", id="prose"),
            pytest.param("[1, 2]", id="wrong-json-type"),
            pytest.param({"title": "Only a title"}, id="missing-fields"),
            pytest.param("", id="empty"),
            pytest.param(
                {"title": "", "summary": "", "formattedContent": "", "tags": []},
                id="all-blank",
            ),
            pytest.param({"title": "x", "formattedContent": ""}, id="blank-body"),
            pytest.param({"title": "   ", "formattedContent": "## Body"}, id="blank-title"),
        ],
    )
    async def test_unusable_content_falls_back(
        self, make_client, completion_response, generation_config, content
    ):
        client = make_client(lambda request: completion_response(content))
        service = NoteService(client=client)

        note = await service.generate_note(
            SKY_TEXT, generation_config, get_purpose(PurposeTag.SUMMARY)
        )

        assert note == _summary_heuristic_note(generation_config)

    @pytest.mark.asyncio
    async def test_transport_error_falls_back(self, make_client, generation_config):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        service = NoteService(client=make_client(handler))

        note = await service.generate_note(
            SKY_TEXT, generation_config, get_purpose(PurposeTag.SUMMARY)
        )

        assert note.tags == ["summary", "professional"]

    @pytest.mark.asyncio
    async def test_unexpected_exception_falls_back(self, generation_config):
        remote = AsyncMock()
        remote.generate = AsyncMock(side_effect=RuntimeError("bug"))
        service = NoteService(remote=remote)

        note = await service.generate_note(SKY_TEXT, generation_config)

        remote.generate.assert_awaited_once()
        assert note.tags == ["ai-fallback", "professional", "bullet_points"]

    @pytest.mark.asyncio
    async def test_meeting_instruction_inferred_on_fallback(self, make_client, generation_config):
        service = NoteService(client=make_client(lambda request: httpx.Response(503)))

        note = await service.generate_note(MEETING_TEXT, generation_config)

        body = note.formatted_content
        agenda = body.index("### Agenda Highlights")
        discussion = body.index("### Discussion Notes")
        decisions = body.index("### Decisions & Next Steps")
        assert agenda < discussion < decisions
        assert note.tags == ["meeting-notes", "recap"]
        assert "Action Requested" not in body


class TestGenerateNoteHeuristicOnly:
    """generate_note() with no remote model configured."""

    @pytest.mark.asyncio
    async def test_summary_scenario(self, heuristic_service, generation_config):
        note = await heuristic_service.generate_note(
            SKY_TEXT, generation_config, get_purpose(PurposeTag.SUMMARY)
        )

        assert note.title == "The sky is blue — Summary"
        assert note.summary == "The sky is blue. Water is wet."
        assert "### Executive Summary" in note.formatted_content
        assert "**Key Insights**" in note.formatted_content
        assert note.tags == ["summary", "professional"]

    @pytest.mark.asyncio
    async def test_empty_content_without_purpose(self, heuristic_service, generation_config):
        note = await heuristic_service.generate_note("", generation_config)

        assert note.title == "AI Draft"
        assert note.summary == "Summary unavailable (content too short)."
        assert note.formatted_content.endswith("_AI fallback output._")
        assert note.tags == ["ai-fallback", "professional", "bullet_points"]

    @pytest.mark.asyncio
    async def test_unconfigured_client_never_called(self, make_client, generation_config):
        client = make_client(lambda request: httpx.Response(200), api_key=None)
        service = NoteService(client=client)

        assert service.remote_configured is False
        note = await service.generate_note(SKY_TEXT, generation_config)

        assert client.sent == []
        assert note.title == "The sky is blue"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("purpose", list(PURPOSE_CATALOG) + [None])
    @pytest.mark.parametrize("text", ["x", "One sentence only", SKY_TEXT, "\n\n  Trailing.  \n"])
    async def test_always_non_empty(self, heuristic_service, generation_config, purpose, text):
        note = await heuristic_service.generate_note(text, generation_config, purpose)

        assert note.title
        assert note.formatted_content
        assert note.tags

    @pytest.mark.asyncio
    async def test_explicit_purpose_wins_over_embedded_marker(
        self, heuristic_service, generation_config
    ):
        note = await heuristic_service.generate_note(
            MEETING_TEXT, generation_config, get_purpose(PurposeTag.FLASHCARDS)
        )

        assert note.tags == ["flashcards", "study"]


class TestChatWithAI:
    """Tests for chat_with_ai() and normalize_history()."""

    @pytest.mark.asyncio
    async def test_reply_and_system_prompt(self, make_client, completion_response):
        client = make_client(lambda request: completion_response("Hello!"))
        service = NoteService(client=client)

        reply = await service.chat_with_ai([ChatMessage(role="user", content="hi")])

        assert reply == "Hello!"
        messages = client.sent[0]["body"]["messages"]
        assert messages[0] == {"role": "system", "content": CHAT_SYSTEM_PROMPT}
        assert messages[-1] == {"role": "user", "content": "hi"}

    def test_history_window_keeps_system_messages(self):
        service = NoteService(max_history=2)
        history = [{"role": "system", "content": "rules"}] + [
            {"role": "user", "content": f"m{i}"} for i in range(5)
        ] + [{"role": "assistant", "content": "   "}]

        assert service.normalize_history(history) == [
            {"role": "system", "content": "rules"},
            {"role": "user", "content": "m3"},
            {"role": "user", "content": "m4"},
        ]

    @pytest.mark.asyncio
    async def test_failure_returns_apology(self, make_client):
        service = NoteService(client=make_client(lambda request: httpx.Response(401)))

        reply = await service.chat_with_ai([{"role": "user", "content": "hi"}])

        assert reply == CHAT_FALLBACK_REPLY

    @pytest.mark.asyncio
    async def test_unexpected_exception_returns_apology(self, make_client):
        client = make_client(lambda request: httpx.Response(200))
        client.complete = AsyncMock(side_effect=RuntimeError("boom"))
        service = NoteService(client=client)

        reply = await service.chat_with_ai([{"role": "user", "content": "hi"}])

        assert reply == CHAT_FALLBACK_REPLY
        client.complete.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_no_client_returns_apology(self, heuristic_service):
        assert await heuristic_service.chat_with_ai([{"role": "user", "content": "hi"}]) == (
            CHAT_FALLBACK_REPLY
        )

    @pytest.mark.asyncio
    async def test_empty_reply(self, make_client, completion_response):
        service = NoteService(client=make_client(lambda request: completion_response("")))

        assert await service.chat_with_ai([{"role": "user", "content": "hi"}]) == CHAT_EMPTY_REPLY


class TestAnalyzeImageNote:
    """Tests for analyze_image_note() and to_image_url()."""

    @pytest.mark.asyncio
    async def test_ocr_answer(self, make_client, completion_response):
        client = make_client(lambda request: completion_response("  STOP  "))
        service = NoteService(client=client)

        result = await service.analyze_image_note("aGVsbG8=", "image/jpeg", "Read the sign")

        assert result.title == "Extracted Text"
        assert result.intent == "ocr"
        assert result.summary == "STOP"
        assert result.formatted_content == "Question: Read the sign\n\nSTOP"
        assert result.tags == ["image", "ocr"]

        body = client.sent[0]["body"]
        assert body["max_tokens"] == 700
        assert body["temperature"] == 0.4
        assert [m["role"] for m in body["messages"]] == ["system", "system", "user"]
        parts = body["messages"][2]["content"]
        assert parts[0] == {"type": "text", "text": "Read the sign"}
        assert parts[1]["image_url"]["url"] == "data:image/jpeg;base64,aGVsbG8="

    @pytest.mark.asyncio
    async def test_long_answer_summary_truncated(self, make_client, completion_response):
        answer = "a" * 250
        service = NoteService(client=make_client(lambda request: completion_response(answer)))

        result = await service.analyze_image_note("aGVsbG8=", None, "How heavy is it?")

        assert result.title == "Image Insight"
        assert result.summary == "a" * 200 + "…"
        assert result.formatted_content.endswith(answer)

    @pytest.mark.asyncio
    async def test_failure_returns_apology_note(self, make_client):
        service = NoteService(client=make_client(lambda request: httpx.Response(500)))

        result = await service.analyze_image_note("aGVsbG8=", None, "Describe the scene")

        assert result.summary == IMAGE_FALLBACK_REPLY
        assert result.tags == ["image", "description", "ai-unavailable"]

    @pytest.mark.asyncio
    async def test_unexpected_exception_returns_apology_note(self, make_client):
        client = make_client(lambda request: httpx.Response(200))
        client.complete = AsyncMock(side_effect=RuntimeError("boom"))
        service = NoteService(client=client)

        result = await service.analyze_image_note("aGVsbG8=", None, "Describe the scene")

        assert result.summary == IMAGE_FALLBACK_REPLY
        assert "ai-unavailable" in result.tags

    @pytest.mark.asyncio
    @pytest.mark.parametrize("prompt", ["", "   "])
    async def test_blank_prompt_rejected(self, heuristic_service, prompt):
        with pytest.raises(ValidationError) as exc_info:
            await heuristic_service.analyze_image_note("aGVsbG8=", None, prompt)
        assert exc_info.value.field == "prompt"

    def test_http_url_passes_through(self):
        assert to_image_url("https://example.com/a.png") == "https://example.com/a.png"

    def test_data_url_passes_through(self):
        assert to_image_url("data:image/gif;base64,R0lG") == "data:image/gif;base64,R0lG"

    def test_bare_payload_defaults_to_png(self):
        assert to_image_url("R0lG") == "data:image/png;base64,R0lG"

    @pytest.mark.parametrize("image", ["", "data:image/png;base64,"])
    def test_missing_image_rejected(self, image):
        with pytest.raises(ValidationError):
            to_image_url(image)

    def test_oversized_image_rejected(self):
        payload = "A" * (MAX_IMAGE_BYTES * 4 // 3 + 8)
        with pytest.raises(ValidationError) as exc_info:
            to_image_url(payload)
        assert "2MB" in exc_info.value.message
