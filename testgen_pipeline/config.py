"""
Runtime configuration loaded from the environment.

Provider credentials and operational knobs come from environment variables,
optionally seeded from a local `.env` file. Static tunables stay in
`constants.py`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache

from dotenv import load_dotenv

from .constants import (
    DEFAULT_ANTHROPIC_BASE_URL,
    GENERATION_TIMEOUT_SECONDS,
    MAX_UPLOAD_SIZE,
    PROVIDER_CONNECT_TIMEOUT_SECONDS,
)

_TRUTHY = frozenset({"1", "true", "yes", "on"})


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUTHY


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = os.getenv(name)
    if not value:
        return default
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    """
    Process-wide settings.

    Immutable once loaded; pass explicit instances in tests instead of
    mutating the environment.
    """
    openai_api_key: str | None = None
    openai_base_url: str | None = None
    anthropic_api_key: str | None = None
    anthropic_base_url: str = DEFAULT_ANTHROPIC_BASE_URL

    generation_timeout_seconds: float = GENERATION_TIMEOUT_SECONDS
    connect_timeout_seconds: float = PROVIDER_CONNECT_TIMEOUT_SECONDS
    max_upload_size: int = MAX_UPLOAD_SIZE

    log_level: str = "INFO"
    mute_all_logs: bool = False
    access_log: bool = True
    cors_origins: tuple[str, ...] = field(default=("*",))
    host: str = "127.0.0.1"
    port: int = 8000

    @classmethod
    def from_env(cls, dotenv: bool = True) -> Settings:
        """Build settings from environment variables (and `.env` if present)."""
        if dotenv:
            load_dotenv()

        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            openai_base_url=os.getenv("OPENAI_BASE_URL") or None,
            anthropic_api_key=os.getenv("ANTHROPIC_API_KEY") or None,
            anthropic_base_url=os.getenv("ANTHROPIC_BASE_URL") or DEFAULT_ANTHROPIC_BASE_URL,
            generation_timeout_seconds=float(
                os.getenv("GENERATION_TIMEOUT_SECONDS", GENERATION_TIMEOUT_SECONDS)
            ),
            connect_timeout_seconds=float(
                os.getenv("PROVIDER_CONNECT_TIMEOUT_SECONDS", PROVIDER_CONNECT_TIMEOUT_SECONDS)
            ),
            max_upload_size=int(os.getenv("MAX_UPLOAD_SIZE", MAX_UPLOAD_SIZE)),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            mute_all_logs=_env_bool("MUTE_ALL_LOGS", False),
            access_log=_env_bool("ACCESS_LOG", True),
            cors_origins=_env_list("CORS_ORIGINS", ("*",)),
            host=os.getenv("HOST", "127.0.0.1"),
            port=int(os.getenv("PORT", "8000")),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the settings loaded from the environment (cached)."""
    return Settings.from_env()
