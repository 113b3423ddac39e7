"""
NoteSmith Backend — OpenRouter Chat-Completion Client
=======================================================

What:  Thin async client for the OpenRouter (OpenAI-compatible) chat
       completions endpoint.
How:   Builds the request payload, POSTs it through an httpx.AsyncClient,
       translates transport/HTTP failures into LLMServiceError and flattens
       `choices[0].message.content` into plain text.
Who:   Constructed once by the application factory and injected into
       NoteService / RemoteGenerator. Tests pass an AsyncClient backed by
       httpx.MockTransport.

Failure Mapping:
    no API key configured          → ConfigurationError
    httpx.HTTPError (connect,      → LLMServiceError
      timeout, protocol)
    non-2xx status                 → LLMServiceError(status_code=...)
    2xx body that is not JSON      → MalformedResponseError

    A 2xx response whose message has no content is NOT an error here:
    complete() returns "" and each caller decides what an empty answer means.

There is no retry loop. A failed call is reported once and the caller falls
back immediately.
"""

import logging
import time
import uuid
from typing import Any, Dict, List, Optional

import httpx

from notesmith.config import Settings
from notesmith.exceptions import ConfigurationError, LLMServiceError, MalformedResponseError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_MODEL = "google/gemini-2.0-flash-001"


def extract_message_text(message: Any) -> str:
    """
    Flatten a chat message's `content` into text.

    Handles the shapes providers return: a plain string, a list of parts
    (strings or `{"type": "text", "text": ...}` objects) joined by blank
    lines, or an object carrying `text` or a nested `content`.
    Returns "" for anything else.
    """
    if not isinstance(message, dict):
        return ""
    return _flatten_content(message.get("content"))


def _flatten_content(content: Any) -> str:
    if not content:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = [_flatten_content(part) for part in content]
        return "\n\n".join(part for part in parts if part)
    if isinstance(content, dict):
        text = content.get("text")
        if isinstance(text, str):
            return text
        return _flatten_content(content.get("content"))
    return ""


class OpenRouterClient:
    """
    Async client for `POST {base_url}/chat/completions`.

    Owns an httpx.AsyncClient unless one is passed in; call aclose() on
    shutdown to release pooled connections.
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str = DEFAULT_MODEL,
        max_tokens: int = 1200,
        base_url: str = DEFAULT_BASE_URL,
        site_url: str = "http://localhost:3000",
        app_name: str = "AI Notes Generator",
        timeout: float = 60.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = (api_key or "").strip() or None
        self.model = model
        self.max_tokens = max_tokens
        self.endpoint = f"{base_url.rstrip('/')}/chat/completions"
        self.site_url = site_url
        self.app_name = app_name
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        api_key: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> "OpenRouterClient":
        """Build a client from Settings; `api_key` overrides the text key."""
        return cls(
            api_key=api_key if api_key is not None else settings.text_ai_api_key,
            model=settings.text_ai_model,
            max_tokens=settings.text_ai_max_tokens,
            base_url=settings.openrouter_base_url,
            site_url=settings.site_url,
            app_name=settings.app_name,
            timeout=settings.request_timeout,
            http_client=http_client,
        )

    @property
    def configured(self) -> bool:
        return self.api_key is not None

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": self.site_url,
            "X-Title": self.app_name,
        }

    def build_payload(
        self,
        messages: List[Dict[str, Any]],
        response_format: Optional[Dict[str, Any]] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens or self.max_tokens,
            "messages": messages,
        }
        if response_format is not None:
            payload["response_format"] = response_format
        if temperature is not None:
            payload["temperature"] = temperature
        return payload

    async def complete(
        self,
        messages: List[Dict[str, Any]],
        response_format: Optional[Dict[str, Any]] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """
        Send one chat-completion request and return the reply text.

        Args:
            messages: `[{"role": ..., "content": ...}]`; content may be a
                      string or a list of multimodal parts.
            response_format: Optional JSON-schema constraint.
            max_tokens: Overrides the client default for this call.
            temperature: Sent only when given.

        Returns:
            Flattened `choices[0].message.content`, "" when absent.

        Raises:
            ConfigurationError: No API key.
            LLMServiceError: Transport failure or non-2xx response.
            MalformedResponseError: 2xx response whose body is not JSON.
        """
        if not self.configured:
            raise ConfigurationError()

        request_id = str(uuid.uuid4())[:8]
        payload = self.build_payload(messages, response_format, max_tokens, temperature)
        start_time = time.time()

        logger.info(
            "[%s] OpenRouter request: model=%s messages=%d structured=%s",
            request_id,
            self.model,
            len(messages),
            response_format is not None,
        )

        try:
            response = await self._http.post(
                self.endpoint,
                json=payload,
                headers=self._headers(),
            )
        except httpx.HTTPError as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.warning(
                "[%s] OpenRouter call failed after %.0fms: %s",
                request_id,
                duration_ms,
                str(e) or type(e).__name__,
            )
            raise LLMServiceError(
                message="Could not reach the AI generation service.",
                context={"request_id": request_id, "error_type": type(e).__name__},
            ) from e

        duration_ms = (time.time() - start_time) * 1000

        if not response.is_success:
            detail = _error_detail(response)
            logger.warning(
                "[%s] OpenRouter returned %d after %.0fms: %s",
                request_id,
                response.status_code,
                duration_ms,
                detail,
            )
            raise LLMServiceError(
                message=f"OpenRouter API error: {response.status_code} - {detail}",
                status_code=response.status_code,
                context={"request_id": request_id},
            )

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponseError(
                message="AI service response was not valid JSON.",
                context={"request_id": request_id},
            ) from e

        text = _first_choice_text(data)
        logger.info(
            "[%s] OpenRouter completed in %.0fms, %d chars",
            request_id,
            duration_ms,
            len(text),
        )
        return text

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()


def _first_choice_text(data: Any) -> str:
    if not isinstance(data, dict):
        return ""
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0]
    if not isinstance(first, dict):
        return ""
    return extract_message_text(first.get("message"))


def _error_detail(response: httpx.Response) -> str:
    # OpenRouter reports {"error": {"message": ...}}; fall back to raw text.
    try:
        body = response.json()
    except ValueError:
        return response.text[:500]
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str):
        return error
    return response.text[:500]
