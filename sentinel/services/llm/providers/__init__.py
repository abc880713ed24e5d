"""LLM Provider Implementations

- LLMProvider: Abstract base class defining the provider contract
- LLMResponse: Standardized response from any provider
- AnthropicProvider: Claude models (triage and summary)
"""

from sentinel.services.llm.providers.base import LLMProvider, LLMResponse
from sentinel.services.llm.providers.anthropic import AnthropicProvider

__all__ = [
    "LLMProvider",
    "LLMResponse",
    "AnthropicProvider",
]
