"""
Fath-AI Server Core Components
Shared error types for the API boundary and external service clients
"""

from .exceptions import (
    AppException,
    ErrorCode,
    ValidationError,
    SearchError,
    ExternalServiceError,
)

__all__ = [
    "AppException",
    "ErrorCode",
    "ValidationError",
    "SearchError",
    "ExternalServiceError",
]
