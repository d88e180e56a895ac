"""Services package.

Exposes stateless service classes and shared result types used by the
HTTP app and the MCP handlers.
"""


# Base utilities
from .base import (
    ErrorCode,
    ServiceError,
    ServiceResult,
)
from .generation import GenerationResult, GenerationService

# Request loading
from .request_loader import (
    LoadedRequest,
    RequestLoader,
)

__all__ = [
    # Base
    "ServiceResult",
    "ServiceError",
    "ErrorCode",
    # Request loading
    "RequestLoader",
    "LoadedRequest",
    # Services
    "GenerationService",
    "GenerationResult",
]


# =============================================================================
# Convenience factory functions
# =============================================================================

def create_generation_service(
    request_loader: RequestLoader | None = None,
    adapter_factory=None,
    settings=None,
) -> GenerationService:
    """Factory for GenerationService (optionally inject dependencies)."""

    return GenerationService(
        request_loader=request_loader,
        adapter_factory=adapter_factory,
        settings=settings,
    )
