"""Data models for test generation."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePosixPath


class Provider(str, Enum):
    """LLM providers with a streaming adapter."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


@dataclass(frozen=True)
class ModelConfig:
    """Operating limits of one supported model."""
    id: str
    provider: Provider
    max_tokens: int        # output cap
    context_limit: int     # total token budget (prompt + output)
    max_code_length: int   # input character cap before truncation
    display_name: str = ""

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("ModelConfig.id must not be empty")
        for name in ("max_tokens", "context_limit", "max_code_length"):
            if getattr(self, name) <= 0:
                raise ValueError(f"ModelConfig.{name} must be positive for {self.id}")
        if self.max_tokens >= self.context_limit:
            raise ValueError(f"max_tokens must be below context_limit for {self.id}")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "displayName": self.display_name or self.id,
            "provider": self.provider.value,
            "maxTokens": self.max_tokens,
            "contextLimit": self.context_limit,
            "maxCodeLength": self.max_code_length,
        }


@dataclass(frozen=True)
class UploadedFile:
    """A user-supplied source file."""
    name: str
    content: str

    @property
    def basename(self) -> str:
        return PurePosixPath(self.name.replace("\\", "/")).name


@dataclass(frozen=True)
class GenerationRequest:
    """A validated request. Only built by the request loader."""
    input_code: str
    uploaded_files: tuple[UploadedFile, ...]
    selected_language: str
    test_framework: str
    ai_model: str


@dataclass(frozen=True)
class SourceFile:
    """One named source handed to the model (pasted code or an upload)."""
    name: str
    content: str


@dataclass(frozen=True)
class PromptPayload:
    """Provider-agnostic prompt: system instructions plus user content."""
    system: str
    user: str
    max_tokens: int
    truncated: bool = False
    omitted_chars: int = 0
    omitted_files: tuple[str, ...] = field(default_factory=tuple)

    def messages(self) -> list[dict[str, str]]:
        """Chat-style message list (system first)."""
        return [
            {"role": "system", "content": self.system},
            {"role": "user", "content": self.user},
        ]


@dataclass(frozen=True)
class GeneratedTest:
    """One extracted test file."""
    framework: str
    language: str
    file_name: str
    code: str
    source_file_ref: str

    def to_dict(self) -> dict:
        return {
            "framework": self.framework,
            "language": self.language,
            "fileName": self.file_name,
            "code": self.code,
            "sourceFileRef": self.source_file_ref,
        }
