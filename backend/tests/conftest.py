"""
NoteSmith Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   The upstream chat-completion service is replaced by
       httpx.MockTransport handlers, so no test touches the network.

Fixture Inventory:
    ├── generation_config:   default GenerationConfig (professional, bullets)
    ├── make_client:         factory → OpenRouterClient backed by a handler
    ├── completion_response: factory → httpx.Response shaped like OpenRouter
    ├── heuristic_service:   NoteService with no remote client
    └── make_test_client:    factory → httpx.AsyncClient bound to a test app
"""

import os

# Settings are read at import time; keep tests offline and quiet.
os.environ["TEXT_AI_API_KEY"] = ""
os.environ["IMAGE_AI_API_KEY"] = ""
os.environ["LOG_LEVEL"] = "WARNING"

import json
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from notesmith.config import Settings
from notesmith.schemas.note import GenerationConfig, NoteFormat, Tone
from notesmith.services.note_service import NoteService
from notesmith.services.openrouter_client import OpenRouterClient


@pytest.fixture
def generation_config() -> GenerationConfig:
    return GenerationConfig(tone=Tone.PROFESSIONAL, format=NoteFormat.BULLET_POINTS)


@pytest.fixture
def completion_response() -> Callable[..., httpx.Response]:
    """
    Builds an OpenRouter-style 200 response.

    Usage:
        completion_response("plain reply")
        completion_response({"title": ..., ...})   # JSON-encoded content
    """

    def _build(content: Any, status_code: int = 200) -> httpx.Response:
        if not isinstance(content, str):
            content = json.dumps(content)
        return httpx.Response(
            status_code,
            json={"choices": [{"message": {"role": "assistant", "content": content}}]},
        )

    return _build


@pytest.fixture
def make_client():
    """
    Factory for OpenRouterClient instances with a mocked transport.

    Every request the client sends is appended to `client.sent` as
    (request, decoded JSON body) for later assertions.

    Usage:
        client = make_client(lambda request: httpx.Response(500))
    """

    def _build(
        handler: Callable[[httpx.Request], httpx.Response],
        api_key: Optional[str] = "test-key-not-real",
    ) -> OpenRouterClient:
        sent: List[Dict[str, Any]] = []

        def recording_handler(request: httpx.Request) -> httpx.Response:
            sent.append({"request": request, "body": json.loads(request.content)})
            return handler(request)

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(recording_handler))
        client = OpenRouterClient(
            api_key=api_key,
            base_url="https://openrouter.test/api/v1",
            site_url="http://localhost:3000",
            app_name="NoteSmith Tests",
            http_client=http_client,
        )
        client.sent = sent
        return client

    return _build


@pytest.fixture
def heuristic_service() -> NoteService:
    """NoteService without any remote client: every note is synthesized locally."""
    return NoteService(client=None)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(_env_file=None, text_ai_api_key="", log_level="WARNING")


@pytest_asyncio.fixture
async def make_test_client(test_settings):
    """
    Factory for an HTTPX AsyncClient talking to a freshly created app.

    Usage:
        async def test_health(make_test_client):
            client = await make_test_client(NoteService(client=None))
            response = await client.get("/health")
    """
    from notesmith.main import create_app

    opened: List[AsyncClient] = []

    async def _build(service: NoteService) -> AsyncClient:
        app = create_app(app_settings=test_settings, note_service=service)
        client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
        opened.append(client)
        return client

    yield _build

    for client in opened:
        await client.aclose()
