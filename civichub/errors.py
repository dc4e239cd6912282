"""
Error codes and exception hierarchy for the CivicHub chat backend.

Every error the chat flow raises on purpose inherits from ChatError and carries:
- code: ErrorCode for categorization
- message: Human-readable error message (shown to the user)
- details: Optional diagnostic detail (e.g. the provider's error body)
- status_code: HTTP status the API layer answers with

civichub.main registers one exception handler for ChatError that renders
to_dict() as the JSON body.
"""

from enum import Enum
from typing import Any, Optional


class ErrorCode(str, Enum):
    """Standardized error codes.

    Categories:
    - CONFIG_*: Server misconfiguration
    - PROVIDER_*: AI provider failures
    - SESSION_*: Chat session identifier / ownership problems
    - STORAGE_*: Chat history persistence failures
    - INTERNAL_*: Unexpected failures
    """

    CONFIG_NO_PROVIDER = "CONFIG_NO_PROVIDER"

    PROVIDER_UNAVAILABLE = "PROVIDER_UNAVAILABLE"
    PROVIDER_RATE_LIMITED = "PROVIDER_RATE_LIMITED"
    PROVIDER_RESPONSE_INVALID = "PROVIDER_RESPONSE_INVALID"

    SESSION_INVALID_ID = "SESSION_INVALID_ID"
    SESSION_FORBIDDEN = "SESSION_FORBIDDEN"

    STORAGE_FAILED = "STORAGE_FAILED"

    INTERNAL_UNEXPECTED = "INTERNAL_UNEXPECTED"


class ChatError(Exception):
    """Base exception for all chat errors."""

    code: ErrorCode = ErrorCode.INTERNAL_UNEXPECTED
    status_code: int = 500

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        code: Optional[ErrorCode] = None,
        **context: Any,
    ):
        self.message = message
        self.details = details
        self.context = context if context else None
        if code is not None:
            self.code = code
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message

    def to_dict(self) -> dict:
        """Convert exception to the JSON error body."""
        return {
            "error": self.message,
            "code": self.code.value,
            "details": self.details,
        }


class ConfigurationError(ChatError):
    """No usable AI provider is configured."""

    code = ErrorCode.CONFIG_NO_PROVIDER
    status_code = 500


class ProviderError(ChatError):
    """The selected AI provider failed or returned a malformed response."""

    code = ErrorCode.PROVIDER_UNAVAILABLE
    status_code = 502

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        provider: Optional[str] = None,
        error_type: Optional[str] = None,
        **context: Any,
    ):
        if error_type == "rate_limit":
            code = ErrorCode.PROVIDER_RATE_LIMITED
        elif error_type == "invalid":
            code = ErrorCode.PROVIDER_RESPONSE_INVALID
        else:
            code = ErrorCode.PROVIDER_UNAVAILABLE

        ctx = {**context}
        if provider:
            ctx["provider"] = provider
        self.provider = provider
        super().__init__(message, details, code=code, **ctx)


class InvalidSessionError(ChatError):
    """Session id is empty, too long, or not safe to use as a file name."""

    code = ErrorCode.SESSION_INVALID_ID
    status_code = 400


class SessionAccessError(ChatError):
    """Session belongs to a different user."""

    code = ErrorCode.SESSION_FORBIDDEN
    status_code = 403


class StorageError(ChatError):
    """Reading or writing chat history failed."""

    code = ErrorCode.STORAGE_FAILED
    status_code = 500
