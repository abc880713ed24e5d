"""Cost Tracker Module

Per-session ledger of model spend, split by pipeline stage. One ledger lives
for one orchestrator invocation; spend from earlier invocations of the same
day is passed to the scorer separately as prior spend.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict
import structlog

from sentinel.observability.metrics import LLM_COST_USD_TOTAL, LLM_TOKENS_TOTAL

logger = structlog.get_logger()

TRIAGE = "triage"
SUMMARY = "summary"


@dataclass
class StageUsage:
    """Usage tracking for a single pipeline stage."""

    stage: str
    input_tokens: int = 0
    output_tokens: int = 0
    cost_usd: float = 0.0
    requests: int = 0
    failed_requests: int = 0

    def record_success(self, input_tokens: int, output_tokens: int, cost: float) -> None:
        self.input_tokens += input_tokens
        self.output_tokens += output_tokens
        self.cost_usd += cost
        self.requests += 1

    def record_failure(self) -> None:
        self.requests += 1
        self.failed_requests += 1


@dataclass
class CostLedger:
    """Tracks model spend for one scoring session.

    session_total always equals the triage sum plus the summary sum; only
    successful calls are charged.
    """

    started_at: datetime = field(default_factory=datetime.utcnow)
    by_stage: Dict[str, StageUsage] = field(
        default_factory=lambda: {TRIAGE: StageUsage(TRIAGE), SUMMARY: StageUsage(SUMMARY)}
    )

    @property
    def triage_cost_usd(self) -> float:
        return self.by_stage[TRIAGE].cost_usd

    @property
    def summary_cost_usd(self) -> float:
        return self.by_stage[SUMMARY].cost_usd

    @property
    def session_total(self) -> float:
        return self.triage_cost_usd + self.summary_cost_usd

    def record(
        self,
        stage: str,
        input_tokens: int,
        output_tokens: int,
        cost: float,
    ) -> None:
        """Charge one successful call to a stage.

        Args:
            stage: "triage" or "summary"
            input_tokens: Prompt tokens billed
            output_tokens: Completion tokens billed
            cost: USD cost of the call
        """
        if stage not in self.by_stage:
            raise ValueError(f"Unknown stage: {stage}")

        self.by_stage[stage].record_success(input_tokens, output_tokens, cost)

        LLM_TOKENS_TOTAL.labels(stage=stage, type="input").inc(input_tokens)
        LLM_TOKENS_TOTAL.labels(stage=stage, type="output").inc(output_tokens)
        LLM_COST_USD_TOTAL.labels(stage=stage).inc(cost)

        logger.debug(
            "usage_recorded",
            stage=stage,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cost_usd=cost,
            session_total_usd=self.session_total,
        )

    def record_failure(self, stage: str) -> None:
        """Count a failed call; nothing is charged."""
        self.by_stage[stage].record_failure()

    def get_summary(self) -> dict:
        """Get current usage summary.

        Returns:
            Dictionary with usage statistics
        """
        return {
            "started_at": self.started_at.isoformat(),
            "session_total_usd": round(self.session_total, 6),
            "by_stage": {
                name: {
                    "input_tokens": usage.input_tokens,
                    "output_tokens": usage.output_tokens,
                    "cost_usd": round(usage.cost_usd, 6),
                    "requests": usage.requests,
                    "failed_requests": usage.failed_requests,
                }
                for name, usage in self.by_stage.items()
            },
        }
