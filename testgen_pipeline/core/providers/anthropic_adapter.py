"""
Anthropic Messages API streaming adapter.

Talks to `/v1/messages` with `stream: true` over httpx and parses the
server-sent event stream:
  - content_block_delta (text_delta) -> yielded text
  - error                            -> ProviderError
  - message_stop                     -> end of stream
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import AsyncIterator

import httpx

from ...constants import (
    AI_TEMPERATURE,
    ANTHROPIC_API_VERSION,
    DEFAULT_ANTHROPIC_BASE_URL,
    GENERATION_TIMEOUT_SECONDS,
    PROVIDER_CONNECT_TIMEOUT_SECONDS,
)
from ..errors import (
    ProviderError,
    ProviderMalformedError,
    ProviderRateLimitedError,
    ProviderTimeoutError,
    ProviderUnauthorizedError,
    ProviderUnknownError,
)
from ..models import ModelConfig, PromptPayload
from .base import ProviderAdapter

logger = logging.getLogger(__name__)

# Max characters of a provider error body kept for logs
_MAX_ERROR_DETAIL_CHARS = 500

_STATUS_ERRORS: dict[int, type[ProviderError]] = {
    400: ProviderMalformedError,
    401: ProviderUnauthorizedError,
    403: ProviderUnauthorizedError,
    408: ProviderTimeoutError,
    413: ProviderMalformedError,
    422: ProviderMalformedError,
    429: ProviderRateLimitedError,
    504: ProviderTimeoutError,
    529: ProviderRateLimitedError,  # overloaded
}

_EVENT_ERRORS: dict[str, type[ProviderError]] = {
    "authentication_error": ProviderUnauthorizedError,
    "permission_error": ProviderUnauthorizedError,
    "rate_limit_error": ProviderRateLimitedError,
    "overloaded_error": ProviderRateLimitedError,
    "timeout_error": ProviderTimeoutError,
    "invalid_request_error": ProviderMalformedError,
    "request_too_large": ProviderMalformedError,
}


def error_for_status(status_code: int, detail: str = "") -> ProviderError:
    """Map an HTTP error status to a ProviderError subtype."""
    error_type = _STATUS_ERRORS.get(status_code, ProviderUnknownError)
    return error_type(f"Anthropic HTTP {status_code}: {detail[:_MAX_ERROR_DETAIL_CHARS]}")


def error_for_event(data: dict) -> ProviderError:
    """Map an in-stream `error` event payload to a ProviderError subtype."""
    error = data.get("error") or {}
    error_type = _EVENT_ERRORS.get(error.get("type", ""), ProviderUnknownError)
    return error_type(f"Anthropic stream error {error.get('type')}: {error.get('message', '')}")


async def iter_sse(lines: AsyncIterator[str]) -> AsyncIterator[tuple[str, dict]]:
    """
    Parse server-sent events into (event name, JSON payload) pairs.

    Comment lines and events without data are skipped; a data payload that
    is not valid JSON raises ProviderMalformedError.
    """
    event = "message"
    data_lines: list[str] = []

    def _dispatch() -> dict:
        raw = "\n".join(data_lines)
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ProviderMalformedError(f"Invalid SSE data for event {event!r}") from e
        if not isinstance(payload, dict):
            raise ProviderMalformedError(f"Unexpected SSE payload for event {event!r}")
        return payload

    async for line in lines:
        if not line:
            if data_lines:
                yield event, _dispatch()
            event, data_lines = "message", []
            continue
        if line.startswith(":"):
            continue
        field, _, value = line.partition(":")
        value = value[1:] if value.startswith(" ") else value
        if field == "event":
            event = value
        elif field == "data":
            data_lines.append(value)

    if data_lines:
        yield event, _dispatch()


class AnthropicAdapter(ProviderAdapter):
    """Stream messages from the Anthropic API."""

    name = "anthropic"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = DEFAULT_ANTHROPIC_BASE_URL,
        client: httpx.AsyncClient | None = None,
        temperature: float = AI_TEMPERATURE,
        timeout_seconds: float = GENERATION_TIMEOUT_SECONDS,
        connect_timeout_seconds: float = PROVIDER_CONNECT_TIMEOUT_SECONDS,
    ):
        """Initialize adapter (api_key arg or ANTHROPIC_API_KEY env; client is injectable)."""
        self.api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        self.temperature = temperature
        self._messages_url = f"{base_url.rstrip('/')}/v1/messages"
        self._client = client
        self._timeout = httpx.Timeout(timeout_seconds, connect=connect_timeout_seconds)

    def is_available(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> dict[str, str]:
        return {
            "x-api-key": self.api_key or "",
            "anthropic-version": ANTHROPIC_API_VERSION,
            "content-type": "application/json",
            "accept": "text/event-stream",
        }

    def _body(self, payload: PromptPayload, config: ModelConfig) -> dict:
        return {
            "model": config.id,
            "max_tokens": payload.max_tokens,
            "temperature": self.temperature,
            "system": payload.system,
            "messages": [{"role": "user", "content": payload.user}],
            "stream": True,
        }

    async def stream(self, payload: PromptPayload, config: ModelConfig) -> AsyncIterator[str]:
        if not self.api_key:
            raise ProviderUnauthorizedError("Anthropic API key not configured")

        owns_client = self._client is None
        client = self._client or httpx.AsyncClient(timeout=self._timeout)

        try:
            async with client.stream(
                "POST",
                self._messages_url,
                headers=self._headers(),
                json=self._body(payload, config),
            ) as response:
                if response.status_code >= 400:
                    detail = (await response.aread()).decode("utf-8", errors="replace")
                    raise error_for_status(response.status_code, detail)

                logger.debug("anthropic.stream.open model=%s", config.id)
                async for event, data in iter_sse(response.aiter_lines()):
                    if event == "content_block_delta":
                        delta = data.get("delta") or {}
                        text = delta.get("text")
                        if delta.get("type") == "text_delta" and text:
                            yield text
                    elif event == "error":
                        raise error_for_event(data)
                    elif event == "message_stop":
                        return
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError(f"Anthropic request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise ProviderUnknownError(f"Anthropic transport error: {type(e).__name__}: {e}") from e
        finally:
            if owns_client:
                await client.aclose()
