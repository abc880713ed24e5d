from typing import Optional
from pydantic import BaseModel, Field, model_validator, ConfigDict

from sentinel.models.checkpoint import CheckpointConfig
from sentinel.models.scoring import ModelPricing


class RateLimitSettings(BaseModel):
    """Minimum spacing plus jitter range, in milliseconds"""

    min_interval_ms: int = Field(..., ge=0, le=60_000)
    jitter_min_ms: int = Field(0, ge=0, le=10_000)
    jitter_max_ms: int = Field(0, ge=0, le=10_000)

    @model_validator(mode="after")
    def validate_jitter_range(self) -> "RateLimitSettings":
        if self.jitter_min_ms > self.jitter_max_ms:
            raise ValueError("jitter_min_ms must not exceed jitter_max_ms")
        return self


class DiscoverySettings(BaseModel):
    """Catalog (arXiv) client settings"""

    base_url: str = Field(
        "https://export.arxiv.org/api/query", description="Atom query endpoint"
    )
    max_results_per_topic: int = Field(
        100, ge=1, le=2000, description="Page size for each topic query"
    )
    sort_by: str = Field("submittedDate", pattern=r"^(submittedDate|lastUpdatedDate|relevance)$")
    sort_order: str = Field("descending", pattern=r"^(ascending|descending)$")
    max_attempts: int = Field(2, ge=1, le=5, description="Attempts per query on transient errors")
    timeout_seconds: int = Field(30, gt=0, le=300)
    rate_limit: RateLimitSettings = Field(
        default_factory=lambda: RateLimitSettings(
            min_interval_ms=3000, jitter_min_ms=100, jitter_max_ms=500
        )
    )


class AISettings(BaseModel):
    """Model API settings for triage and summarization"""

    model_config = ConfigDict(protected_namespaces=())

    api_key: Optional[str] = Field(
        None, min_length=10, description="Anthropic API key (from environment)"
    )
    triage_model: str = Field("claude-3-5-haiku-20241022")
    summary_model: str = Field("claude-sonnet-4-20250514")
    triage_max_tokens: int = Field(10, gt=0, le=100)
    summary_max_tokens: int = Field(120, gt=0, le=1024)
    triage_pricing: ModelPricing = Field(
        default_factory=lambda: ModelPricing(input_per_mtok=0.25, output_per_mtok=1.25)
    )
    summary_pricing: ModelPricing = Field(
        default_factory=lambda: ModelPricing(input_per_mtok=3.0, output_per_mtok=15.0)
    )
    timeout: int = Field(60, gt=0, le=600, description="Request timeout in seconds")
    rate_limit: RateLimitSettings = Field(
        default_factory=lambda: RateLimitSettings(
            min_interval_ms=200, jitter_min_ms=50, jitter_max_ms=100
        )
    )


class BudgetSettings(BaseModel):
    """Spend ceiling, per-invocation batch cap and relevance bar"""

    daily_ceiling_usd: float = Field(1.0, gt=0.0, le=1000.0)
    batch_cap: int = Field(
        25, ge=1, le=1000, description="Documents handled per invocation"
    )
    relevance_threshold: float = Field(0.7, ge=0.0, le=1.0)


class DatabaseSettings(BaseModel):
    """Relational store location"""

    url: str = Field("sqlite:///./data/sentinel.db", description="SQLAlchemy URL")


class ScheduleSettings(BaseModel):
    """Daily trigger and resume cadence"""

    timezone: str = "UTC"
    hour: int = Field(6, ge=0, le=23)
    minute: int = Field(0, ge=0, le=59)
    resume_interval_minutes: int = Field(
        5, ge=1, le=720, description="Re-invoke cadence while the day is unfinished"
    )


class LoggingSettings(BaseModel):
    level: str = Field("INFO", pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    json_output: bool = True


class AutomationConfig(BaseModel):
    """Root configuration model"""

    model_config = ConfigDict(extra="forbid")

    discovery: DiscoverySettings = Field(default_factory=DiscoverySettings)
    ai: AISettings = Field(default_factory=AISettings)
    budget: BudgetSettings = Field(default_factory=BudgetSettings)
    checkpoint: CheckpointConfig = Field(default_factory=CheckpointConfig)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    schedule: ScheduleSettings = Field(default_factory=ScheduleSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
