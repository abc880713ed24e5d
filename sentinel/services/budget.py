"""Daily spend ceiling.

is_ceiling_exceeded is the one predicate for "may we spend more today". The
scorer applies it before every document, reserving the most the document's
calls can still cost, and again between triage and summary. The orchestrator
applies it between users against the checkpoint's running total.
"""

from typing import Sequence, Set
import structlog

from sentinel.observability.metrics import DAILY_COST_USD

logger = structlog.get_logger()

DEFAULT_WARNING_THRESHOLDS = (0.5, 0.8)


def is_ceiling_exceeded(spent_usd: float, ceiling_usd: float, reserve_usd: float = 0.0) -> bool:
    """True once spend plus the reserved cost of pending calls reaches the ceiling."""
    return spent_usd + reserve_usd >= ceiling_usd


class BudgetGuard:
    """Ceiling plus one-shot warnings as spend crosses fractions of it"""

    def __init__(
        self,
        ceiling_usd: float = 1.0,
        warning_thresholds: Sequence[float] = DEFAULT_WARNING_THRESHOLDS,
    ):
        if ceiling_usd <= 0:
            raise ValueError("ceiling_usd must be positive")
        self.ceiling_usd = ceiling_usd
        self.warning_thresholds = sorted(warning_thresholds)
        self._warned: Set[float] = set()

    def is_exceeded(self, spent_usd: float, reserve_usd: float = 0.0) -> bool:
        return is_ceiling_exceeded(spent_usd, self.ceiling_usd, reserve_usd)

    def remaining(self, spent_usd: float) -> float:
        return max(0.0, self.ceiling_usd - spent_usd)

    def observe(self, spent_usd: float) -> None:
        """Publish spend and warn the first time each threshold is crossed"""
        DAILY_COST_USD.set(spent_usd)

        for threshold in self.warning_thresholds:
            if threshold in self._warned:
                continue
            if spent_usd >= self.ceiling_usd * threshold:
                self._warned.add(threshold)
                logger.warning(
                    "budget_threshold_crossed",
                    threshold_pct=int(threshold * 100),
                    spent_usd=round(spent_usd, 4),
                    ceiling_usd=self.ceiling_usd,
                )
