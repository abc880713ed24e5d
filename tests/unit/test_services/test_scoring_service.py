"""Tests for two-stage triage and summarization."""

from unittest.mock import MagicMock

import pytest

from conftest import FAKE_CALL_COST, FAKE_PRICING, FakeLLM, no_wait_limiter

from sentinel.models.scoring import ModelPricing, SkipReason
from sentinel.services.budget import BudgetGuard
from sentinel.services.llm.cost_tracker import SUMMARY, TRIAGE
from sentinel.services.llm.exceptions import ProviderUnavailableError
from sentinel.services.scoring_service import TwoStageScorer
from sentinel.utils.hash import content_hash

TITLE = "Fuzzing Large Language Models"
ABSTRACT = "We fuzz models."
TOPICS = ["LLM security"]

TRIAGE_PRICING = ModelPricing(input_per_mtok=0.25, output_per_mtok=1.25)
SUMMARY_PRICING = ModelPricing(input_per_mtok=3.0, output_per_mtok=15.0)


def make_scorer(
    triage_reply,
    summary_reply="Problem. Method. Results.",
    ceiling_usd=1.0,
    triage_pricing=FAKE_PRICING,
    summary_pricing=FAKE_PRICING,
):
    triage = FakeLLM(lambda prompt: triage_reply, model="triage-model", pricing=triage_pricing)
    summary = FakeLLM(lambda prompt: summary_reply, model="summary-model", pricing=summary_pricing)
    scorer = TwoStageScorer(
        triage,
        summary,
        BudgetGuard(ceiling_usd),
        rate_limiter=no_wait_limiter(),
    )
    return scorer, triage, summary


class TestTwoStageScorer:
    @pytest.mark.asyncio
    async def test_relevant_document_is_summarized(self):
        """Should summarize when the score meets the threshold"""
        scorer, triage, summary = make_scorer("0.9")

        result = await scorer.score_and_summarize(TITLE, ABSTRACT, TOPICS, relevance_threshold=0.7)

        assert result.summary == "Problem. Method. Results."
        assert result.relevance_score == pytest.approx(0.9)
        assert result.skip_reason is None
        assert result.content_hash == content_hash(TITLE, ABSTRACT)
        assert result.triage_cost_usd == pytest.approx(FAKE_CALL_COST)
        assert result.summary_cost_usd == pytest.approx(FAKE_CALL_COST)
        assert result.total_cost_usd == pytest.approx(2 * FAKE_CALL_COST)
        assert len(triage.prompts) == 1
        assert len(summary.prompts) == 1
        assert "LLM security" in triage.prompts[0]

    @pytest.mark.asyncio
    async def test_threshold_is_inclusive(self):
        scorer, _, summary = make_scorer("0.7")

        result = await scorer.score_and_summarize(TITLE, ABSTRACT, TOPICS, relevance_threshold=0.7)

        assert result.summarized
        assert len(summary.prompts) == 1

    @pytest.mark.asyncio
    async def test_irrelevant_document_skips_summary(self):
        """Should stop after triage when below threshold"""
        scorer, _, summary = make_scorer("0.3")

        result = await scorer.score_and_summarize(TITLE, ABSTRACT, TOPICS, relevance_threshold=0.7)

        assert result.summary is None
        assert result.skip_reason == SkipReason.IRRELEVANT
        assert result.relevance_score == pytest.approx(0.3)
        assert result.triage_cost_usd == pytest.approx(FAKE_CALL_COST)
        assert result.summary_cost_usd == 0.0
        assert summary.prompts == []

    @pytest.mark.asyncio
    async def test_unparseable_triage_reply_is_borderline(self):
        scorer, _, summary = make_scorer("definitely relevant!")

        result = await scorer.score_and_summarize(TITLE, ABSTRACT, TOPICS, relevance_threshold=0.7)

        assert result.relevance_score == 0.5
        assert result.skip_reason == SkipReason.IRRELEVANT
        assert summary.prompts == []

    @pytest.mark.asyncio
    async def test_budget_exhausted_makes_no_calls(self):
        """Should refuse to call models once prior spend reaches the ceiling"""
        scorer, triage, summary = make_scorer("0.9", ceiling_usd=1.0)

        result = await scorer.score_and_summarize(
            TITLE, ABSTRACT, TOPICS, relevance_threshold=0.7, prior_spent_usd=1.0
        )

        assert result.skip_reason == SkipReason.BUDGET_EXCEEDED
        assert result.summary is None
        assert result.total_cost_usd == 0.0
        assert result.content_hash == content_hash(TITLE, ABSTRACT)
        assert triage.prompts == []
        assert summary.prompts == []

    def test_document_reserve_covers_both_outputs(self):
        scorer, _, _ = make_scorer(
            "0.9", triage_pricing=TRIAGE_PRICING, summary_pricing=SUMMARY_PRICING
        )

        assert scorer.summary_reserve_usd == pytest.approx(120 * 15.0 / 1_000_000)
        assert scorer.document_reserve_usd == pytest.approx(
            10 * 1.25 / 1_000_000 + 120 * 15.0 / 1_000_000
        )

    @pytest.mark.asyncio
    async def test_no_room_for_one_document_makes_no_calls(self):
        """Should refuse a document whose calls could carry spend past the ceiling"""
        scorer, triage, summary = make_scorer(
            "0.9", triage_pricing=TRIAGE_PRICING, summary_pricing=SUMMARY_PRICING
        )

        result = await scorer.score_and_summarize(
            TITLE, ABSTRACT, TOPICS, relevance_threshold=0.7, prior_spent_usd=0.999
        )

        assert result.skip_reason == SkipReason.BUDGET_EXCEEDED
        assert result.total_cost_usd == 0.0
        assert result.content_hash == content_hash(TITLE, ABSTRACT)
        assert triage.prompts == []
        assert summary.prompts == []
        assert scorer.ledger.session_total == 0.0

    @pytest.mark.asyncio
    async def test_room_for_one_document_still_scores(self):
        scorer, triage, summary = make_scorer(
            "0.9", triage_pricing=TRIAGE_PRICING, summary_pricing=SUMMARY_PRICING
        )

        result = await scorer.score_and_summarize(
            TITLE, ABSTRACT, TOPICS, relevance_threshold=0.7, prior_spent_usd=0.99
        )

        assert result.summarized
        assert len(triage.prompts) == 1
        assert len(summary.prompts) == 1

    @pytest.mark.asyncio
    async def test_triage_reaching_ceiling_skips_summary(self):
        """Should not make the expensive call once triage spend hits the ceiling"""
        scorer, triage, summary = make_scorer("0.9", ceiling_usd=1.0)

        result = await scorer.score_and_summarize(
            TITLE, ABSTRACT, TOPICS, relevance_threshold=0.7, prior_spent_usd=0.995
        )

        assert result.skip_reason == SkipReason.BUDGET_EXCEEDED
        assert result.summary is None
        assert result.relevance_score == pytest.approx(0.9)
        assert result.triage_cost_usd == pytest.approx(FAKE_CALL_COST)
        assert result.summary_cost_usd == 0.0
        assert len(triage.prompts) == 1
        assert summary.prompts == []
        assert scorer.ledger.session_total == pytest.approx(FAKE_CALL_COST)

    @pytest.mark.asyncio
    async def test_irrelevant_after_triage_is_not_a_budget_skip(self):
        scorer, _, summary = make_scorer("0.1", ceiling_usd=1.0)

        result = await scorer.score_and_summarize(
            TITLE, ABSTRACT, TOPICS, relevance_threshold=0.7, prior_spent_usd=0.995
        )

        assert result.skip_reason == SkipReason.IRRELEVANT
        assert summary.prompts == []

    @pytest.mark.asyncio
    async def test_session_spend_counts_toward_ceiling(self):
        """Should stop once this session's own spend reaches the ceiling"""
        scorer, triage, _ = make_scorer("0.9", ceiling_usd=0.02)

        first = await scorer.score_and_summarize(TITLE, ABSTRACT, TOPICS)
        second = await scorer.score_and_summarize(TITLE, ABSTRACT, TOPICS)

        assert first.summarized
        assert second.skip_reason == SkipReason.BUDGET_EXCEEDED
        assert len(triage.prompts) == 1

    @pytest.mark.asyncio
    async def test_triage_failure_costs_nothing(self):
        scorer, _, summary = make_scorer(ProviderUnavailableError("overloaded"))

        result = await scorer.score_and_summarize(TITLE, ABSTRACT, TOPICS)

        assert result.skip_reason == SkipReason.ERROR
        assert result.total_cost_usd == 0.0
        assert scorer.ledger.session_total == 0.0
        assert scorer.ledger.by_stage[TRIAGE].failed_requests == 1
        assert summary.prompts == []

    @pytest.mark.asyncio
    async def test_summary_failure_keeps_triage_charged(self):
        """Should report the triage spend that was already incurred"""
        scorer, _, _ = make_scorer("0.95", summary_reply=ProviderUnavailableError("timeout"))

        result = await scorer.score_and_summarize(TITLE, ABSTRACT, TOPICS)

        assert result.skip_reason == SkipReason.ERROR
        assert result.summary is None
        assert result.relevance_score == pytest.approx(0.95)
        assert result.triage_cost_usd == pytest.approx(FAKE_CALL_COST)
        assert result.summary_cost_usd == 0.0
        # Reported cost matches what the ledger charged
        assert scorer.ledger.session_total == pytest.approx(result.total_cost_usd)
        assert scorer.ledger.by_stage[SUMMARY].failed_requests == 1

    @pytest.mark.asyncio
    async def test_ledger_matches_reported_costs(self):
        scorer, _, _ = make_scorer("0.9")
        total = 0.0

        for _ in range(3):
            result = await scorer.score_and_summarize(TITLE, ABSTRACT, TOPICS)
            total += result.total_cost_usd

        assert scorer.ledger.session_total == pytest.approx(total)

    @pytest.mark.asyncio
    async def test_every_call_is_rate_limited(self):
        scorer, _, _ = make_scorer("0.9")

        await scorer.score_and_summarize(TITLE, ABSTRACT, TOPICS)
        await scorer.score_and_summarize(TITLE, ABSTRACT, TOPICS, relevance_threshold=0.95)

        assert scorer.rate_limiter.calls == 3


class TestScoringLogs:
    """The content hash ties each scoring log event to its document."""

    @pytest.mark.asyncio
    async def test_summarized_event_carries_content_hash(self, monkeypatch):
        logger = MagicMock()
        monkeypatch.setattr("sentinel.services.scoring_service.logger", logger)
        scorer, _, _ = make_scorer("0.9")

        await scorer.score_and_summarize(TITLE, ABSTRACT, TOPICS)

        event, kwargs = logger.info.call_args.args[0], logger.info.call_args.kwargs
        assert event == "document_summarized"
        assert kwargs["content_hash"] == content_hash(TITLE, ABSTRACT)

    @pytest.mark.asyncio
    async def test_failure_event_carries_content_hash(self, monkeypatch):
        logger = MagicMock()
        monkeypatch.setattr("sentinel.services.scoring_service.logger", logger)
        scorer, _, _ = make_scorer(ProviderUnavailableError("overloaded"))

        await scorer.score_and_summarize(TITLE, ABSTRACT, TOPICS)

        logger.error.assert_called_once()
        assert logger.error.call_args.args[0] == "scoring_failed"
        assert logger.error.call_args.kwargs["content_hash"] == content_hash(TITLE, ABSTRACT)
