"""LLM Provider Exception Hierarchy

Structured exception types for model API errors:
- LLMProviderError: Base class for all provider errors
- RateLimitError: Rate limit exceeded
- AuthenticationError: Invalid API credentials
- ContentFilterError: Content blocked by safety filters
- ProviderUnavailableError: Provider temporarily unavailable
- ContextLengthExceededError: Prompt larger than the context window

The scorer converts every one of these into skip_reason="error"; the types
exist so logs and metrics can tell the failure modes apart.
"""

from typing import Optional


class LLMProviderError(Exception):
    """Base exception for all LLM provider errors."""

    def __init__(self, message: str, provider: Optional[str] = None):
        self.provider = provider
        super().__init__(message)


class RateLimitError(LLMProviderError):
    """Raised when provider rate limit is exceeded.

    Attributes:
        retry_after: Seconds to wait before retrying (if provided by API)
    """

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        retry_after: Optional[float] = None,
        provider: Optional[str] = None,
    ):
        self.retry_after = retry_after
        super().__init__(
            f"{message}. Retry after: {retry_after}s" if retry_after else message,
            provider=provider,
        )


class AuthenticationError(LLMProviderError):
    """Raised when API authentication fails."""

    def __init__(
        self,
        message: str = "API authentication failed",
        provider: Optional[str] = None,
    ):
        super().__init__(message, provider=provider)


class ContentFilterError(LLMProviderError):
    """Raised when content is blocked by safety filters."""

    def __init__(
        self,
        message: str = "Content blocked by safety filters",
        provider: Optional[str] = None,
    ):
        super().__init__(message, provider=provider)


class ProviderUnavailableError(LLMProviderError):
    """Raised when provider is temporarily unavailable (5xx, overloaded, timeouts)."""

    def __init__(
        self,
        message: str = "Provider temporarily unavailable",
        provider: Optional[str] = None,
    ):
        super().__init__(message, provider=provider)


class ContextLengthExceededError(LLMProviderError):
    """Raised when the input exceeds the model's context window."""

    def __init__(
        self,
        message: str = "Context length exceeded",
        provider: Optional[str] = None,
    ):
        super().__init__(message, provider=provider)
