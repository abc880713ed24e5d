"""Observability for the daily automation.

Provides:
- Correlation ID context management
- structlog configuration with correlation ID injection
- Prometheus metrics

Usage:
    from sentinel.observability import configure_logging, get_logger

    configure_logging(level="INFO")
    logger = get_logger("automation")
"""

from sentinel.observability.context import (
    set_correlation_id,
    get_correlation_id,
    clear_correlation_id,
    correlation_id_context,
)
from sentinel.observability.logging import (
    get_logger,
    configure_logging,
    add_correlation_id_processor,
)
from sentinel.observability.metrics import (
    DOCUMENTS_DISCOVERED,
    DOCUMENTS_PROCESSED,
    LLM_TOKENS_TOTAL,
    LLM_COST_USD_TOTAL,
    LLM_REQUESTS_TOTAL,
    AUTOMATION_INVOCATIONS,
    CHECKPOINT_SAVES,
    DAILY_COST_USD,
    SCHEDULER_JOBS,
    RATE_LIMIT_WAIT_SECONDS,
    LLM_REQUEST_DURATION,
    get_metrics_text,
    get_metrics_content_type,
)

__all__ = [
    "set_correlation_id",
    "get_correlation_id",
    "clear_correlation_id",
    "correlation_id_context",
    "get_logger",
    "configure_logging",
    "add_correlation_id_processor",
    "DOCUMENTS_DISCOVERED",
    "DOCUMENTS_PROCESSED",
    "LLM_TOKENS_TOTAL",
    "LLM_COST_USD_TOTAL",
    "LLM_REQUESTS_TOTAL",
    "AUTOMATION_INVOCATIONS",
    "CHECKPOINT_SAVES",
    "DAILY_COST_USD",
    "SCHEDULER_JOBS",
    "RATE_LIMIT_WAIT_SECONDS",
    "LLM_REQUEST_DURATION",
    "get_metrics_text",
    "get_metrics_content_type",
]
