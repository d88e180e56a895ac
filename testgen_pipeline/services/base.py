"""
Service Layer Base - Core utilities for service operations.

This module provides:
- ServiceResult: A generic result wrapper (success/failure)
- ServiceError: Structured error information
- ErrorCode: Standard error codes

Error code values match the `code` attribute of the core generation
errors, so `ErrorCode(error.code)` converts one into the other.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

# Generic type for result data
T = TypeVar("T")


class ErrorCode(str, Enum):
    """
    Standard error codes for service operations.

    Using string enum for easy serialization.
    """
    # Input validation
    VALIDATION_ERROR = "validation_error"
    MISSING_INPUT = "missing_input"
    FILE_TOO_LARGE = "file_too_large"
    UNKNOWN_MODEL = "unknown_model"
    UNSUPPORTED_LANGUAGE = "unsupported_language"
    UNSUPPORTED_FRAMEWORK = "unsupported_framework"

    # Provider failures
    PROVIDER_UNAUTHORIZED = "provider_unauthorized"
    PROVIDER_RATE_LIMITED = "provider_rate_limited"
    PROVIDER_TIMEOUT = "provider_timeout"
    PROVIDER_MALFORMED = "provider_malformed"
    PROVIDER_ERROR = "provider_error"

    # Extraction
    EXTRACTION_FAILED = "extraction_failed"
    EXTRACTION_NO_CODE = "extraction_no_code"
    EXTRACTION_AMBIGUOUS = "extraction_ambiguous"

    # General
    CANCELLED = "cancelled"
    GENERATION_ERROR = "generation_error"
    INTERNAL_ERROR = "internal_error"

    @classmethod
    def from_code(cls, code: str) -> ErrorCode:
        """Convert a core error code string, defaulting to INTERNAL_ERROR."""
        try:
            return cls(code)
        except ValueError:
            return cls.INTERNAL_ERROR


@dataclass(frozen=True)
class ServiceError:
    """
    Structured error information.

    Attributes:
        code: Error code for programmatic handling
        message: Human-readable error message
        details: Optional additional context
    """
    code: ErrorCode
    message: str
    details: dict | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        result = {
            "code": self.code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


@dataclass(frozen=True)
class ServiceResult(Generic[T]):
    """
    Generic result wrapper for service operations.

    Either success with data, or failure with error. Never both, never neither.

    Usage:
        # Success
        result = ServiceResult.ok(loaded_request)

        # Failure
        result = ServiceResult.fail(ErrorCode.UNKNOWN_MODEL, "Unknown model")

        # Handling
        if result.success:
            process(result.data)
        else:
            handle_error(result.error)
    """
    success: bool
    data: T | None = None
    error: ServiceError | None = None

    @classmethod
    def ok(cls, data: T) -> ServiceResult[T]:
        """Create a successful result."""
        return cls(success=True, data=data, error=None)

    @classmethod
    def fail(
        cls,
        code: ErrorCode,
        message: str,
        details: dict | None = None
    ) -> ServiceResult[T]:
        """
        Create a failed result.

        Args:
            code: Error code for programmatic handling
            message: Human-readable error message
            details: Optional additional context
        """
        return cls(
            success=False,
            data=None,
            error=ServiceError(code=code, message=message, details=details)
        )

    def map(self, func) -> ServiceResult:
        """Transform the data if successful."""
        if self.success and self.data is not None:
            return ServiceResult.ok(func(self.data))
        return self

    def unwrap(self) -> T:
        """
        Get the data, raising if failed.

        Raises:
            ValueError: If result is a failure
        """
        if not self.success or self.data is None:
            error_msg = self.error.message if self.error else "Unknown error"
            raise ValueError(f"Cannot unwrap failed result: {error_msg}")
        return self.data

    def unwrap_or(self, default: T) -> T:
        """Get the data or a default value."""
        if self.success and self.data is not None:
            return self.data
        return default
