"""Abstract LLM Provider Interface

This module defines:
- LLMResponse: Standardized response dataclass
- LLMProvider: Abstract base class for all providers
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
from datetime import datetime


@dataclass
class LLMResponse:
    """Standardized response from a model call.

    Attributes:
        content: The generated text content
        input_tokens: Number of input tokens consumed
        output_tokens: Number of output tokens generated
        model: The model identifier used
        provider: The provider name
        latency_ms: Request latency in milliseconds
        finish_reason: Why generation stopped (end_turn, max_tokens, ...)
        timestamp: When the response was received
    """

    content: str
    input_tokens: int
    output_tokens: int
    model: str
    provider: str
    latency_ms: float
    finish_reason: Optional[str] = None
    timestamp: Optional[datetime] = None

    @property
    def total_tokens(self) -> int:
        """Total tokens used (input + output)."""
        return self.input_tokens + self.output_tokens


class LLMProvider(ABC):
    """Abstract base class for LLM providers.

    Each provider handles its own API communication, error classification
    and cost calculation. One instance is bound to one model.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name (e.g., 'anthropic')."""
        pass  # pragma: no cover - abstract method, always overridden

    @property
    @abstractmethod
    def model(self) -> str:
        """Current model identifier."""
        pass  # pragma: no cover - abstract method, always overridden

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        max_tokens: int = 1024,
        temperature: float = 0.0,
    ) -> LLMResponse:
        """Generate text from a single user-role prompt.

        Raises:
            LLMProviderError: Base class for all provider errors
        """
        pass  # pragma: no cover - abstract method, always overridden

    @abstractmethod
    def calculate_cost(
        self,
        input_tokens: int,
        output_tokens: int,
    ) -> float:
        """Calculate cost in USD for token usage."""
        pass  # pragma: no cover - abstract method, always overridden
