"""Static catalog of supported models and their operating limits."""

from __future__ import annotations

from collections.abc import Iterable
from types import MappingProxyType

from .models import ModelConfig, Provider

DEFAULT_MODELS: tuple[ModelConfig, ...] = (
    ModelConfig(
        id="gpt-4o",
        provider=Provider.OPENAI,
        max_tokens=4096,
        context_limit=128_000,
        max_code_length=50_000,
        display_name="GPT-4o",
    ),
    ModelConfig(
        id="gpt-4o-mini",
        provider=Provider.OPENAI,
        max_tokens=4096,
        context_limit=128_000,
        max_code_length=40_000,
        display_name="GPT-4o mini",
    ),
    ModelConfig(
        id="gpt-4-turbo",
        provider=Provider.OPENAI,
        max_tokens=4096,
        context_limit=128_000,
        max_code_length=40_000,
        display_name="GPT-4 Turbo",
    ),
    ModelConfig(
        id="claude-3-5-sonnet-20241022",
        provider=Provider.ANTHROPIC,
        max_tokens=8192,
        context_limit=200_000,
        max_code_length=80_000,
        display_name="Claude 3.5 Sonnet",
    ),
    ModelConfig(
        id="claude-3-5-haiku-20241022",
        provider=Provider.ANTHROPIC,
        max_tokens=8192,
        context_limit=200_000,
        max_code_length=60_000,
        display_name="Claude 3.5 Haiku",
    ),
    ModelConfig(
        id="claude-3-opus-20240229",
        provider=Provider.ANTHROPIC,
        max_tokens=4096,
        context_limit=200_000,
        max_code_length=60_000,
        display_name="Claude 3 Opus",
    ),
)


class ModelRegistry:
    """
    Read-only lookup table of model configs.

    Built once; safe for concurrent reads.
    """

    def __init__(self, models: Iterable[ModelConfig] = DEFAULT_MODELS):
        table: dict[str, ModelConfig] = {}
        for model in models:
            if model.id in table:
                raise ValueError(f"Duplicate model id: {model.id}")
            table[model.id] = model
        self._models = MappingProxyType(table)

    def lookup(self, model_id: str) -> ModelConfig | None:
        """Return the config for `model_id`, or None if unknown."""
        return self._models.get(model_id)

    def models(self) -> list[ModelConfig]:
        """All models in declaration order."""
        return list(self._models.values())

    def ids(self) -> list[str]:
        return list(self._models)

    def __contains__(self, model_id: object) -> bool:
        return model_id in self._models

    def __len__(self) -> int:
        return len(self._models)


DEFAULT_REGISTRY = ModelRegistry()
