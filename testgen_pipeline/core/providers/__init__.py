"""Provider adapters - one streaming adapter per LLM provider."""

from __future__ import annotations

from ...config import Settings
from ..models import ModelConfig, Provider
from .anthropic_adapter import AnthropicAdapter
from .base import ProviderAdapter
from .openai_adapter import OpenAIAdapter


def create_adapter(config: ModelConfig, settings: Settings | None = None) -> ProviderAdapter:
    """Factory: pick the adapter for `config.provider` (credentials from settings)."""
    settings = settings or Settings()

    if config.provider is Provider.OPENAI:
        return OpenAIAdapter(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            timeout_seconds=settings.generation_timeout_seconds,
        )
    if config.provider is Provider.ANTHROPIC:
        return AnthropicAdapter(
            api_key=settings.anthropic_api_key,
            base_url=settings.anthropic_base_url,
            timeout_seconds=settings.generation_timeout_seconds,
            connect_timeout_seconds=settings.connect_timeout_seconds,
        )
    raise ValueError(f"No adapter for provider: {config.provider}")


__all__ = [
    "ProviderAdapter",
    "OpenAIAdapter",
    "AnthropicAdapter",
    "create_adapter",
]
