"""Anthropic (Claude) Provider Implementation"""

import time
from typing import Any, Optional
from datetime import datetime

import structlog
from anthropic import AsyncAnthropic

from sentinel.models.scoring import ModelPricing
from sentinel.services.llm.providers.base import LLMProvider, LLMResponse
from sentinel.services.llm.exceptions import (
    LLMProviderError,
    RateLimitError,
    AuthenticationError,
    ContentFilterError,
    ProviderUnavailableError,
    ContextLengthExceededError,
)

logger = structlog.get_logger()


class AnthropicProvider(LLMProvider):
    """Anthropic Claude provider bound to a single model.

    The automation uses two instances: a cheap triage model and an
    expensive summary model, each with its own pricing.
    """

    # Error patterns for classification
    RATE_LIMIT_PATTERNS = [
        "429",
        "rate limit",
        "rate_limit",
        "ratelimit",
        "too many requests",
    ]

    RETRYABLE_PATTERNS = [
        "timeout",
        "timed out",
        "connection",
        "internal server",
        "502",
        "503",
        "504",
        "529",
        "overloaded",
    ]

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        pricing: ModelPricing,
        timeout: float = 60.0,
        client: Any = None,
    ):
        """Initialize Anthropic provider.

        Args:
            api_key: Anthropic API key
            model: Model identifier
            pricing: Per-million-token rates for this model
            timeout: Request timeout in seconds
            client: Pre-built AsyncAnthropic client (shared or test double)
        """
        self._model = model
        self._pricing = pricing
        # SDK retries disabled: a failed call is reported, not silently repeated
        self._client = client or AsyncAnthropic(
            api_key=api_key, timeout=timeout, max_retries=0
        )

    @property
    def name(self) -> str:
        """Provider name."""
        return "anthropic"

    @property
    def model(self) -> str:
        """Current model identifier."""
        return self._model

    async def generate(
        self,
        prompt: str,
        max_tokens: int = 1024,
        temperature: float = 0.0,
    ) -> LLMResponse:
        """Generate text using Claude.

        Raises:
            RateLimitError: When rate limit is exceeded
            AuthenticationError: When API key is invalid
            ContentFilterError: When content is blocked
            ProviderUnavailableError: When service is down
        """
        start_time = time.time()

        try:
            response = await self._client.messages.create(
                model=self._model,
                max_tokens=max_tokens,
                temperature=temperature,
                messages=[{"role": "user", "content": prompt}],
            )
        except Exception as e:
            raise self._classify_error(e) from e

        latency_ms = (time.time() - start_time) * 1000
        content = response.content[0].text if response.content else ""

        llm_response = LLMResponse(
            content=content,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            model=self._model,
            provider=self.name,
            latency_ms=latency_ms,
            finish_reason=response.stop_reason,
            timestamp=datetime.utcnow(),
        )

        logger.debug(
            "anthropic_generate_success",
            model=self._model,
            input_tokens=llm_response.input_tokens,
            output_tokens=llm_response.output_tokens,
            latency_ms=round(latency_ms, 1),
        )

        return llm_response

    def _classify_error(self, error: Exception) -> LLMProviderError:
        """Classify exception into appropriate error type."""
        error_str = str(error).lower()

        if "authentication" in error_str or "401" in error_str:
            return AuthenticationError(str(error), provider=self.name)

        if "content" in error_str and ("filter" in error_str or "policy" in error_str):
            return ContentFilterError(str(error), provider=self.name)

        if "context" in error_str and "length" in error_str:
            return ContextLengthExceededError(str(error), provider=self.name)

        if any(pattern in error_str for pattern in self.RATE_LIMIT_PATTERNS):
            return RateLimitError(
                str(error), retry_after=self._extract_retry_after(error), provider=self.name
            )

        if any(pattern in error_str for pattern in self.RETRYABLE_PATTERNS):
            return ProviderUnavailableError(str(error), provider=self.name)

        return LLMProviderError(str(error), provider=self.name)

    def _extract_retry_after(self, error: Exception) -> Optional[float]:
        """Extract retry-after value from error if available."""
        response = getattr(error, "response", None)
        headers = getattr(response, "headers", None)
        if headers is None:
            return None
        retry_after = headers.get("retry-after")
        if retry_after:
            try:
                return float(retry_after)
            except (TypeError, ValueError):
                return None
        return None

    def calculate_cost(
        self,
        input_tokens: int,
        output_tokens: int,
    ) -> float:
        """Calculate cost in USD for token usage."""
        return self._pricing.cost(input_tokens, output_tokens)
