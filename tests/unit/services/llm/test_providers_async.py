"""Tests for the Anthropic provider generate method and error mapping."""

import pytest
from unittest.mock import MagicMock, AsyncMock

from sentinel.models.scoring import ModelPricing
from sentinel.services.llm.providers.anthropic import AnthropicProvider
from sentinel.services.llm.providers.base import LLMResponse
from sentinel.services.llm.exceptions import (
    LLMProviderError,
    RateLimitError,
    AuthenticationError,
    ContentFilterError,
    ProviderUnavailableError,
    ContextLengthExceededError,
)

PRICING = ModelPricing(input_per_mtok=3.0, output_per_mtok=15.0)


def make_provider(create: AsyncMock) -> AnthropicProvider:
    client = MagicMock()
    client.messages.create = create
    return AnthropicProvider(api_key=None, model="claude-test", pricing=PRICING, client=client)


class TestAnthropicProviderGenerate:
    """Tests for AnthropicProvider.generate() method."""

    @pytest.mark.asyncio
    async def test_generate_success(self) -> None:
        """Test successful generation."""
        mock_response = MagicMock()
        mock_response.content = [MagicMock(text="0.85")]
        mock_response.usage = MagicMock(input_tokens=100, output_tokens=5)
        mock_response.stop_reason = "end_turn"
        create = AsyncMock(return_value=mock_response)
        provider = make_provider(create)

        result = await provider.generate(prompt="Rate this", max_tokens=10)

        assert isinstance(result, LLMResponse)
        assert result.content == "0.85"
        assert result.input_tokens == 100
        assert result.output_tokens == 5
        assert result.total_tokens == 105
        assert result.model == "claude-test"
        assert result.provider == "anthropic"
        assert result.finish_reason == "end_turn"

        kwargs = create.call_args.kwargs
        assert kwargs["model"] == "claude-test"
        assert kwargs["max_tokens"] == 10
        assert kwargs["temperature"] == 0.0
        assert kwargs["messages"] == [{"role": "user", "content": "Rate this"}]

    @pytest.mark.asyncio
    async def test_generate_empty_content(self) -> None:
        mock_response = MagicMock()
        mock_response.content = []
        mock_response.usage = MagicMock(input_tokens=10, output_tokens=0)
        mock_response.stop_reason = "max_tokens"
        provider = make_provider(AsyncMock(return_value=mock_response))

        result = await provider.generate(prompt="x")

        assert result.content == ""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "message,expected",
        [
            ("Error code: 429 rate_limit_error", RateLimitError),
            ("Error code: 401 authentication_error", AuthenticationError),
            ("content filtered by policy", ContentFilterError),
            ("prompt exceeds context length", ContextLengthExceededError),
            ("Error code: 529 overloaded_error", ProviderUnavailableError),
            ("Request timed out", ProviderUnavailableError),
            ("something unexpected", LLMProviderError),
        ],
    )
    async def test_generate_classifies_errors(self, message, expected) -> None:
        provider = make_provider(AsyncMock(side_effect=Exception(message)))

        with pytest.raises(expected) as exc_info:
            await provider.generate(prompt="x")

        assert exc_info.value.provider == "anthropic"

    @pytest.mark.asyncio
    async def test_rate_limit_reads_retry_after(self) -> None:
        error = Exception("429 Too Many Requests")
        error.response = MagicMock(headers={"retry-after": "12"})
        provider = make_provider(AsyncMock(side_effect=error))

        with pytest.raises(RateLimitError) as exc_info:
            await provider.generate(prompt="x")

        assert exc_info.value.retry_after == 12.0


class TestAnthropicProviderCost:
    def test_calculate_cost_uses_pricing(self) -> None:
        provider = make_provider(AsyncMock())

        # 1M input at $3 + 100k output at $15/M
        assert provider.calculate_cost(1_000_000, 100_000) == pytest.approx(4.5)

    def test_properties(self) -> None:
        provider = make_provider(AsyncMock())

        assert provider.name == "anthropic"
        assert provider.model == "claude-test"
