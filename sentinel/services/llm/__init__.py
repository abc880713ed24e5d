"""LLM Service Package

This package provides:
- Provider implementations (Anthropic)
- Per-session cost ledger
- Prompt building and response parsing

Usage:
    from sentinel.services.llm import AnthropicProvider, CostLedger
"""

from sentinel.services.llm.cost_tracker import CostLedger
from sentinel.services.llm.prompt_builder import PromptBuilder
from sentinel.services.llm.response_parser import BORDERLINE_SCORE, ResponseParser
from sentinel.services.llm.providers.base import LLMProvider, LLMResponse
from sentinel.services.llm.providers.anthropic import AnthropicProvider
from sentinel.services.llm.exceptions import (
    LLMProviderError,
    RateLimitError,
    AuthenticationError,
    ContentFilterError,
    ProviderUnavailableError,
    ContextLengthExceededError,
)

__all__ = [
    # Components
    "CostLedger",
    "PromptBuilder",
    "ResponseParser",
    "BORDERLINE_SCORE",
    # Provider abstractions
    "LLMProvider",
    "LLMResponse",
    "AnthropicProvider",
    # Exceptions
    "LLMProviderError",
    "RateLimitError",
    "AuthenticationError",
    "ContentFilterError",
    "ProviderUnavailableError",
    "ContextLengthExceededError",
]
