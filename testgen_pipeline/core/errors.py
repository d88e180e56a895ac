"""
Generation errors.

Every error carries:
- code: stable identifier for diagnostics (matches services.ErrorCode values)
- user_message: safe text for the terminal error event

The `detail` passed to the constructor is for logs only; it is never sent
to the caller.
"""

from __future__ import annotations

from enum import Enum


class ProviderErrorKind(str, Enum):
    """Uniform failure categories across providers."""
    UNAUTHORIZED = "unauthorized"
    RATE_LIMITED = "rate_limited"
    TIMEOUT = "timeout"
    MALFORMED = "malformed"
    UNKNOWN = "unknown"


class GenerationError(Exception):
    """Base class for failures after a request has been validated."""

    code = "generation_error"
    user_message = "Test generation failed. Please try again."

    def __init__(self, detail: str = ""):
        super().__init__(detail or self.user_message)
        self.detail = detail


# =============================================================================
# Provider errors
# =============================================================================

class ProviderError(GenerationError):
    """Raised by provider adapters."""
    kind = ProviderErrorKind.UNKNOWN


class ProviderUnauthorizedError(ProviderError):
    kind = ProviderErrorKind.UNAUTHORIZED
    code = "provider_unauthorized"
    user_message = (
        "The AI provider rejected the request credentials. "
        "Check the API key configuration on the server."
    )


class ProviderRateLimitedError(ProviderError):
    kind = ProviderErrorKind.RATE_LIMITED
    code = "provider_rate_limited"
    user_message = "The AI provider is busy or rate limiting requests. Please retry in a moment."


class ProviderTimeoutError(ProviderError):
    kind = ProviderErrorKind.TIMEOUT
    code = "provider_timeout"
    user_message = (
        "Test generation took too long and was stopped. "
        "Try a smaller input or a faster model."
    )


class ProviderMalformedError(ProviderError):
    kind = ProviderErrorKind.MALFORMED
    code = "provider_malformed"
    user_message = "Test generation failed because of an unexpected provider response."


class ProviderUnknownError(ProviderError):
    kind = ProviderErrorKind.UNKNOWN
    code = "provider_error"
    user_message = "Test generation failed because of an unexpected provider error."


# =============================================================================
# Extraction and cancellation
# =============================================================================

class ExtractionError(GenerationError):
    """The stream completed but its text could not be turned into tests."""
    code = "extraction_failed"
    user_message = "The model response could not be turned into test files."


class NoCodeBlocksError(ExtractionError):
    code = "extraction_no_code"
    user_message = "The model response did not contain any test code. Please try again."


class AmbiguousTargetError(ExtractionError):
    code = "extraction_ambiguous"
    user_message = (
        "The model response contained test code that could not be matched "
        "to one of the uploaded files."
    )


class GenerationCancelled(GenerationError):
    code = "cancelled"
    user_message = "Test generation was cancelled."
