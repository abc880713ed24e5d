"""Health checks and HTTP endpoints (/health, /live, /metrics, /status)."""

from sentinel.health.checks import (
    HealthChecker,
    HealthStatus,
    CheckResult,
    CheckStatus,
)
from sentinel.health.server import create_health_app, run_health_server, set_health_checker

__all__ = [
    "HealthChecker",
    "HealthStatus",
    "CheckResult",
    "CheckStatus",
    "create_health_app",
    "run_health_server",
    "set_health_checker",
]
