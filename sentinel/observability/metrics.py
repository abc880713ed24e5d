"""Prometheus metrics for the daily automation.

Covers discovery throughput, per-document outcomes, model usage and spend,
checkpoint persistence and rate-limiter back-pressure.

Usage:
    from sentinel.observability.metrics import DOCUMENTS_PROCESSED

    DOCUMENTS_PROCESSED.labels(outcome="summarized").inc()

Metrics are exposed via /metrics on the health server.
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

# Custom registry to avoid conflicts with the default process registry
REGISTRY = CollectorRegistry(auto_describe=True)

# =============================================================================
# COUNTERS
# =============================================================================

DOCUMENTS_DISCOVERED = Counter(
    name="sentinel_documents_discovered_total",
    documentation="Documents returned by the discovery service",
    labelnames=["provider"],
    registry=REGISTRY,
)

DOCUMENTS_PROCESSED = Counter(
    name="sentinel_documents_processed_total",
    documentation="Documents handled by the orchestrator, by outcome",
    # summarized, irrelevant, budget_exceeded, error, existing
    labelnames=["outcome"],
    registry=REGISTRY,
)

LLM_TOKENS_TOTAL = Counter(
    name="sentinel_llm_tokens_total",
    documentation="Model tokens consumed",
    labelnames=["stage", "type"],  # triage/summary, input/output
    registry=REGISTRY,
)

LLM_COST_USD_TOTAL = Counter(
    name="sentinel_llm_cost_usd_total",
    documentation="Model spend in USD",
    labelnames=["stage"],
    registry=REGISTRY,
)

LLM_REQUESTS_TOTAL = Counter(
    name="sentinel_llm_requests_total",
    documentation="Model API requests",
    labelnames=["stage", "status"],  # triage/summary, success/failed
    registry=REGISTRY,
)

AUTOMATION_INVOCATIONS = Counter(
    name="sentinel_automation_invocations_total",
    documentation="Orchestrator invocations by final state",
    labelnames=["state"],  # batch_paused, day_complete
    registry=REGISTRY,
)

CHECKPOINT_SAVES = Counter(
    name="sentinel_checkpoint_saves_total",
    documentation="Checkpoint save attempts",
    labelnames=["status"],  # success, failed
    registry=REGISTRY,
)

# =============================================================================
# GAUGES
# =============================================================================

DAILY_COST_USD = Gauge(
    name="sentinel_daily_cost_usd",
    documentation="Cumulative spend recorded in today's checkpoint",
    registry=REGISTRY,
)

SCHEDULER_JOBS = Gauge(
    name="sentinel_scheduler_jobs",
    documentation="Number of scheduled jobs",
    labelnames=["status"],  # pending, scheduled
    registry=REGISTRY,
)

# =============================================================================
# HISTOGRAMS
# =============================================================================

RATE_LIMIT_WAIT_SECONDS = Histogram(
    name="sentinel_rate_limit_wait_seconds",
    documentation="Time spent waiting for a rate limiter slot",
    labelnames=["limiter"],  # arxiv, anthropic
    buckets=(0.0, 0.05, 0.1, 0.25, 0.5, 1, 2, 3, 4, 5, float("inf")),
    registry=REGISTRY,
)

LLM_REQUEST_DURATION = Histogram(
    name="sentinel_llm_request_duration_seconds",
    documentation="Model API request duration in seconds",
    labelnames=["stage"],
    buckets=(0.25, 0.5, 1, 2, 5, 10, 30, 60, float("inf")),
    registry=REGISTRY,
)


def get_metrics_text() -> bytes:
    """Render the registry in Prometheus exposition format."""
    return generate_latest(REGISTRY)


def get_metrics_content_type() -> str:
    """Content-Type header value for the metrics response."""
    return CONTENT_TYPE_LATEST
