"""Two-stage relevance scoring and summarization.

Stage 1 asks a cheap model for a relevance score; only documents scoring at
or above the threshold reach stage 2, where an expensive model writes a
three-sentence summary. Every call is charged to the session ledger. The
ledger plus prior spend is checked against the ceiling before each document,
holding back the output cost its calls could still add, and checked again
after triage before the expensive call is made.
"""

import time
from typing import List, Optional, Tuple
import structlog

from sentinel.models.scoring import ScoringResult, SkipReason
from sentinel.observability.metrics import LLM_REQUEST_DURATION, LLM_REQUESTS_TOTAL
from sentinel.services.budget import BudgetGuard
from sentinel.services.llm.cost_tracker import SUMMARY, TRIAGE, CostLedger
from sentinel.services.llm.prompt_builder import PromptBuilder
from sentinel.services.llm.providers.base import LLMProvider, LLMResponse
from sentinel.services.llm.response_parser import ResponseParser
from sentinel.utils.hash import content_hash
from sentinel.utils.rate_limiter import RateLimiter, anthropic_rate_limiter

logger = structlog.get_logger()


class TwoStageScorer:
    """Triage then summarize, under a spend ceiling.

    One instance per orchestrator invocation: the ledger it owns covers only
    the calls made through it.
    """

    def __init__(
        self,
        triage_provider: LLMProvider,
        summary_provider: LLMProvider,
        budget: BudgetGuard,
        rate_limiter: Optional[RateLimiter] = None,
        ledger: Optional[CostLedger] = None,
        triage_max_tokens: int = 10,
        summary_max_tokens: int = 120,
    ):
        self.triage_provider = triage_provider
        self.summary_provider = summary_provider
        self.budget = budget
        self.rate_limiter = rate_limiter or anthropic_rate_limiter()
        self.ledger = ledger or CostLedger()
        self.triage_max_tokens = triage_max_tokens
        self.summary_max_tokens = summary_max_tokens
        # Output is bounded by max_tokens, so this is the most a call can add
        self.summary_reserve_usd = summary_provider.calculate_cost(0, summary_max_tokens)
        self.document_reserve_usd = (
            triage_provider.calculate_cost(0, triage_max_tokens) + self.summary_reserve_usd
        )
        self.prompt_builder = PromptBuilder()
        self.response_parser = ResponseParser()

    async def score_and_summarize(
        self,
        title: str,
        abstract: str,
        topic_names: List[str],
        relevance_threshold: float = 0.7,
        prior_spent_usd: float = 0.0,
    ) -> ScoringResult:
        """Score one document and summarize it if relevant.

        Args:
            title: Document title
            abstract: Document abstract
            topic_names: Names of the user's enabled topics
            relevance_threshold: Minimum triage score to summarize
            prior_spent_usd: Spend recorded before this session began

        Returns:
            ScoringResult; never raises for model failures
        """
        digest = content_hash(title, abstract)
        spent = prior_spent_usd + self.ledger.session_total

        if self.budget.is_exceeded(spent, reserve_usd=self.document_reserve_usd):
            logger.warning(
                "scoring_skipped_budget",
                content_hash=digest,
                spent_usd=round(spent, 4),
                reserve_usd=round(self.document_reserve_usd, 6),
                ceiling_usd=self.budget.ceiling_usd,
            )
            return ScoringResult(content_hash=digest, skip_reason=SkipReason.BUDGET_EXCEEDED)

        score = 0.0
        triage_cost = 0.0

        try:
            triage_prompt = self.prompt_builder.build_triage_prompt(title, abstract, topic_names)
            response, triage_cost = await self._call(
                TRIAGE, self.triage_provider, triage_prompt, self.triage_max_tokens
            )
            score = self.response_parser.parse_relevance_score(response.content)

            if score < relevance_threshold:
                logger.debug(
                    "document_below_threshold",
                    content_hash=digest,
                    score=score,
                    threshold=relevance_threshold,
                )
                return ScoringResult(
                    relevance_score=score,
                    content_hash=digest,
                    triage_cost_usd=triage_cost,
                    skip_reason=SkipReason.IRRELEVANT,
                )

            spent = prior_spent_usd + self.ledger.session_total
            if self.budget.is_exceeded(spent, reserve_usd=self.summary_reserve_usd):
                logger.warning(
                    "summary_skipped_budget",
                    content_hash=digest,
                    score=score,
                    spent_usd=round(spent, 4),
                    ceiling_usd=self.budget.ceiling_usd,
                )
                return ScoringResult(
                    relevance_score=score,
                    content_hash=digest,
                    triage_cost_usd=triage_cost,
                    skip_reason=SkipReason.BUDGET_EXCEEDED,
                )

            summary_prompt = self.prompt_builder.build_summary_prompt(title, abstract)
            response, summary_cost = await self._call(
                SUMMARY, self.summary_provider, summary_prompt, self.summary_max_tokens
            )
        except Exception as e:
            # The successful triage call (if any) stays charged and reported
            logger.error(
                "scoring_failed",
                content_hash=digest,
                error=str(e),
                error_type=type(e).__name__,
                triage_cost_usd=triage_cost,
            )
            return ScoringResult(
                relevance_score=score,
                content_hash=digest,
                triage_cost_usd=triage_cost,
                skip_reason=SkipReason.ERROR,
            )

        summary = self.response_parser.parse_summary(response.content)
        logger.info(
            "document_summarized",
            content_hash=digest,
            score=score,
            cost_usd=round(triage_cost + summary_cost, 6),
        )
        return ScoringResult(
            summary=summary,
            relevance_score=score,
            content_hash=digest,
            triage_cost_usd=triage_cost,
            summary_cost_usd=summary_cost,
        )

    async def _call(
        self,
        stage: str,
        provider: LLMProvider,
        prompt: str,
        max_tokens: int,
    ) -> Tuple[LLMResponse, float]:
        """Rate-limited model call; charges the ledger only on success"""
        await self.rate_limiter.acquire()

        start = time.perf_counter()
        try:
            response = await provider.generate(prompt, max_tokens=max_tokens)
        except Exception:
            self.ledger.record_failure(stage)
            LLM_REQUESTS_TOTAL.labels(stage=stage, status="failed").inc()
            raise
        finally:
            LLM_REQUEST_DURATION.labels(stage=stage).observe(time.perf_counter() - start)

        cost = provider.calculate_cost(response.input_tokens, response.output_tokens)
        self.ledger.record(stage, response.input_tokens, response.output_tokens, cost)
        LLM_REQUESTS_TOTAL.labels(stage=stage, status="success").inc()
        return response, cost
