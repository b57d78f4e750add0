"""
Unified exception handling for the Fath-AI server.

The research pipeline degrades instead of failing: the only hard failure is
a malformed caller request. Exceptions here exist for that boundary and for
the LLM client, whose callers catch and degrade.

Usage:
    from core.exceptions import AppException, ErrorCode, ValidationError

    # Raise a validation error
    raise ValidationError("Question must not be empty", field="question")

    # Raise an external service error
    raise ExternalServiceError("ollama", "Generation failed", status=502)
"""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(str, Enum):
    """
    Standardized error codes across all endpoints.

    Code ranges:
    - 1xxx: Validation errors
    - 4xxx: Search errors
    - 5xxx: External service errors (Ollama)
    - 9xxx: System errors
    """

    # Validation errors (1xxx)
    VALIDATION_ERROR = "ERR_1001"

    # Search errors (4xxx)
    SEARCH_FAILED = "ERR_4001"

    # External service errors (5xxx)
    OLLAMA_ERROR = "ERR_5001"
    OLLAMA_UNAVAILABLE = "ERR_5002"

    # System errors (9xxx)
    INTERNAL_ERROR = "ERR_9001"


class AppException(Exception):
    """
    Base exception for all application errors.

    Provides unified error response format:
    {
        "success": false,
        "data": null,
        "meta": {...},
        "errors": [{"code": "ERR_xxxx", "message": "...", "details": {...}}]
    }

    Args:
        code: ErrorCode enum value
        message: Human-readable error message
        status_code: HTTP status code (default 400)
        details: Additional error context (optional)
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to error response format."""
        result = {
            "code": self.code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Convenience subclasses for common error types
# =============================================================================

class ValidationError(AppException):
    """Raised when request validation fails."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        **details
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=400,
            details={"field": field, **details} if field else details
        )


class SearchError(AppException):
    """Raised when search operations fail."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.SEARCH_FAILED,
        **details
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=500,
            details=details
        )


class ExternalServiceError(AppException):
    """Raised when an external service (the Ollama API) fails."""

    def __init__(
        self,
        service: str,
        message: str,
        code: ErrorCode = ErrorCode.OLLAMA_ERROR,
        **details
    ):
        super().__init__(
            code=code,
            message=f"{service}: {message}",
            status_code=502,
            details={"service": service, **details}
        )
