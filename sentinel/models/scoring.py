"""Data models for two-stage scoring: triage then summarization."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict


class SkipReason(str, Enum):
    """Why a document ended without a summary"""

    IRRELEVANT = "irrelevant"
    BUDGET_EXCEEDED = "budget_exceeded"
    ERROR = "error"


class ModelPricing(BaseModel):
    """Per-million-token rates for one model"""

    input_per_mtok: float = Field(..., ge=0.0)
    output_per_mtok: float = Field(..., ge=0.0)

    def cost(self, input_tokens: int, output_tokens: int) -> float:
        """USD cost of one call"""
        return (
            input_tokens * self.input_per_mtok / 1_000_000
            + output_tokens * self.output_per_mtok / 1_000_000
        )


class ScoringResult(BaseModel):
    """Outcome of score_and_summarize for one document.

    total_cost_usd always equals triage_cost_usd + summary_cost_usd, and
    matches exactly what was charged to the session ledger for this call.
    """

    model_config = ConfigDict(use_enum_values=False)

    summary: Optional[str] = None
    relevance_score: float = Field(0.0, ge=0.0, le=1.0)
    content_hash: str
    triage_cost_usd: float = Field(0.0, ge=0.0)
    summary_cost_usd: float = Field(0.0, ge=0.0)
    skip_reason: Optional[SkipReason] = None

    @property
    def total_cost_usd(self) -> float:
        return self.triage_cost_usd + self.summary_cost_usd

    @property
    def summarized(self) -> bool:
        return self.summary is not None
