"""
Testgen Pipeline

AI-powered unit test generation over streaming LLM providers.
Validate, Prompt, Stream, Extract.
"""

__version__ = "0.1.0"

# Public API
from .core import (
    GeneratedTest,
    GenerationRequest,
    ModelConfig,
    ModelRegistry,
    Provider,
    build_prompt,
    extract_tests,
)
from .services import GenerationService, ServiceResult

__all__ = [
    "__version__",
    # Core
    "GeneratedTest",
    "GenerationRequest",
    "ModelConfig",
    "ModelRegistry",
    "Provider",
    "build_prompt",
    "extract_tests",
    # Services
    "GenerationService",
    "ServiceResult",
]
