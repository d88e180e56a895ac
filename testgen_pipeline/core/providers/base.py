"""
Base interface for provider adapters.
Allows swapping between OpenAI-style and Anthropic-style streaming APIs.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from ..models import ModelConfig, PromptPayload


class ProviderAdapter(ABC):
    """
    Uniform streaming interface over an LLM provider.

    `stream()` returns a lazy async iterator (an async generator in every
    implementation) that:
    - yields non-empty text deltas in delivery order
    - ends when the provider signals end of stream
    - raises a ProviderError subtype on transport, auth or protocol failure
    - releases its connection when closed with `aclose()`

    Streams are single-pass; call `stream()` again for a new attempt.
    """

    name: str = "provider"

    @abstractmethod
    def stream(self, payload: PromptPayload, config: ModelConfig) -> AsyncIterator[str]:
        """Open a streaming completion for `payload` on the model in `config`."""
