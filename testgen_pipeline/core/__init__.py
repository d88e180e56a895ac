"""Core domain logic for the test generation pipeline."""


from .errors import (
    AmbiguousTargetError,
    ExtractionError,
    GenerationCancelled,
    GenerationError,
    NoCodeBlocksError,
    ProviderError,
    ProviderErrorKind,
    ProviderMalformedError,
    ProviderRateLimitedError,
    ProviderTimeoutError,
    ProviderUnauthorizedError,
    ProviderUnknownError,
)
from .events import CompleteEvent, ErrorEvent, EventEmitter, ProgressEvent, encode_event
from .extractor import extract_tests
from .models import (
    GeneratedTest,
    GenerationRequest,
    ModelConfig,
    PromptPayload,
    Provider,
    SourceFile,
    UploadedFile,
)
from .orchestrator import StreamOrchestrator, StreamState
from .prompts import build_prompt
from .providers import AnthropicAdapter, OpenAIAdapter, ProviderAdapter, create_adapter
from .registry import DEFAULT_REGISTRY, ModelRegistry

__all__ = [
    # Models
    "GeneratedTest",
    "GenerationRequest",
    "ModelConfig",
    "PromptPayload",
    "Provider",
    "SourceFile",
    "UploadedFile",
    # Registry
    "DEFAULT_REGISTRY",
    "ModelRegistry",
    # Prompt
    "build_prompt",
    # Providers
    "ProviderAdapter",
    "OpenAIAdapter",
    "AnthropicAdapter",
    "create_adapter",
    # Orchestration
    "StreamOrchestrator",
    "StreamState",
    # Extraction
    "extract_tests",
    # Events
    "ProgressEvent",
    "CompleteEvent",
    "ErrorEvent",
    "EventEmitter",
    "encode_event",
    # Errors
    "GenerationError",
    "ProviderError",
    "ProviderErrorKind",
    "ProviderUnauthorizedError",
    "ProviderRateLimitedError",
    "ProviderTimeoutError",
    "ProviderMalformedError",
    "ProviderUnknownError",
    "ExtractionError",
    "NoCodeBlocksError",
    "AmbiguousTargetError",
    "GenerationCancelled",
]
