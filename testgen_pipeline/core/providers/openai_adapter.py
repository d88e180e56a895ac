"""OpenAI chat-completions streaming adapter."""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator

import openai
from openai import AsyncOpenAI

from ...constants import AI_TEMPERATURE
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

# Checked in order; APITimeoutError subclasses APIConnectionError
_ERROR_MAP: tuple[tuple[tuple[type[Exception], ...], type[ProviderError]], ...] = (
    ((openai.AuthenticationError, openai.PermissionDeniedError), ProviderUnauthorizedError),
    ((openai.RateLimitError,), ProviderRateLimitedError),
    ((openai.APITimeoutError,), ProviderTimeoutError),
    (
        (openai.BadRequestError, openai.UnprocessableEntityError, openai.APIResponseValidationError),
        ProviderMalformedError,
    ),
)


def map_openai_error(exc: openai.OpenAIError) -> ProviderError:
    """Translate an openai SDK exception into a ProviderError subtype."""
    for sdk_types, error_type in _ERROR_MAP:
        if isinstance(exc, sdk_types):
            return error_type(f"OpenAI: {type(exc).__name__}: {exc}")
    return ProviderUnknownError(f"OpenAI: {type(exc).__name__}: {exc}")


class OpenAIAdapter(ProviderAdapter):
    """Stream chat completions from the OpenAI API (or a compatible endpoint)."""

    name = "openai"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        client: AsyncOpenAI | None = None,
        temperature: float = AI_TEMPERATURE,
        timeout_seconds: float | None = None,
    ):
        """Initialize adapter (api_key arg or OPENAI_API_KEY env; client is injectable)."""
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        self.base_url = base_url
        self.temperature = temperature
        self.timeout_seconds = timeout_seconds
        self._client = client

    def is_available(self) -> bool:
        """Check if credentials (or an injected client) are present."""
        return self._client is not None or bool(self.api_key)

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self.api_key:
                raise ProviderUnauthorizedError("OpenAI API key not configured")
            kwargs = {"api_key": self.api_key, "max_retries": 0}
            if self.base_url:
                kwargs["base_url"] = self.base_url
            if self.timeout_seconds is not None:
                kwargs["timeout"] = self.timeout_seconds
            self._client = AsyncOpenAI(**kwargs)
        return self._client

    async def stream(self, payload: PromptPayload, config: ModelConfig) -> AsyncIterator[str]:
        client = self._get_client()

        try:
            response = await client.chat.completions.create(
                model=config.id,
                messages=payload.messages(),
                max_tokens=payload.max_tokens,
                temperature=self.temperature,
                stream=True,
            )
        except openai.OpenAIError as e:
            raise map_openai_error(e) from e

        logger.debug("openai.stream.open model=%s", config.id)
        try:
            async for chunk in response:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta.content
                if delta:
                    yield delta
        except openai.OpenAIError as e:
            raise map_openai_error(e) from e
        finally:
            await response.close()
