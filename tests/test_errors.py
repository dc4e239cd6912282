"""
Tests for the error hierarchy.
"""

from civichub.errors import (
    ChatError,
    ConfigurationError,
    ErrorCode,
    InvalidSessionError,
    ProviderError,
    SessionAccessError,
    StorageError,
)


class TestChatError:

    def test_basic_creation(self):
        err = ChatError("Something broke")
        assert err.message == "Something broke"
        assert err.details is None
        assert err.code == ErrorCode.INTERNAL_UNEXPECTED
        assert err.status_code == 500

    def test_str_representation(self):
        assert str(ChatError("Test error", details="More info")) == "Test error - More info"
        assert str(ChatError("Test error")) == "Test error"

    def test_to_dict(self):
        d = ProviderError("AI service error", details="HTTP 401", provider="openrouter").to_dict()
        assert d == {"error": "AI service error", "code": "PROVIDER_UNAVAILABLE", "details": "HTTP 401"}


class TestStatusCodes:

    def test_mapping(self):
        assert ConfigurationError("x").status_code == 500
        assert ProviderError("x").status_code == 502
        assert InvalidSessionError("x").status_code == 400
        assert SessionAccessError("x").status_code == 403
        assert StorageError("x").status_code == 500

    def test_provider_error_types(self):
        assert ProviderError("x", error_type="rate_limit").code == ErrorCode.PROVIDER_RATE_LIMITED
        assert ProviderError("x", error_type="invalid").code == ErrorCode.PROVIDER_RESPONSE_INVALID
        assert ProviderError("x", provider="gemini").context == {"provider": "gemini"}
