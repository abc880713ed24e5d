"""Health check implementations for automation dependencies.

Provides checks for:
- Checkpoint store readability
- Relational store connectivity
- Disk space under the checkpoint directory

Usage:
    checker = HealthChecker(checkpoint_service=service, store=store)
    report = await checker.check_all()
"""

import shutil
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional
import structlog

from sentinel.orchestration.automation import utc_today
from sentinel.services.checkpoint_service import CheckpointService
from sentinel.services.document_store import DocumentStore

logger = structlog.get_logger()


class HealthStatus(str, Enum):
    """Overall health status."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class CheckStatus(str, Enum):
    """Individual check status."""

    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"


@dataclass
class CheckResult:
    """Result of a single health check."""

    name: str
    status: CheckStatus
    message: str
    duration_ms: float = 0.0
    details: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "message": self.message,
            "duration_ms": round(self.duration_ms, 2),
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class HealthReport:
    """Complete health report with all check results."""

    status: HealthStatus
    checks: List[CheckResult]
    timestamp: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "checks": [c.to_dict() for c in self.checks],
            "timestamp": self.timestamp.isoformat(),
        }


class HealthChecker:
    """Health checker for the automation's stores.

    Checks without a configured dependency report WARN rather than FAIL,
    so a bare checker (no stores) is DEGRADED, not UNHEALTHY.
    """

    def __init__(
        self,
        checkpoint_service: Optional[CheckpointService] = None,
        store: Optional[DocumentStore] = None,
        data_dir: Optional[Path] = None,
        disk_threshold_gb: float = 0.5,
    ):
        self.checkpoint_service = checkpoint_service
        self.store = store
        self.data_dir = data_dir or Path("data")
        self.disk_threshold_gb = disk_threshold_gb

    async def check_all(self) -> HealthReport:
        """Run all health checks and return comprehensive report."""
        checks = [
            self.check_checkpoint_store(),
            self.check_database(),
            self.check_disk_space(),
        ]
        return HealthReport(status=self._determine_overall_status(checks), checks=checks)

    def _determine_overall_status(self, checks: List[CheckResult]) -> HealthStatus:
        if any(c.status == CheckStatus.FAIL for c in checks):
            return HealthStatus.UNHEALTHY
        if any(c.status == CheckStatus.WARN for c in checks):
            return HealthStatus.DEGRADED
        return HealthStatus.HEALTHY

    def check_checkpoint_store(self) -> CheckResult:
        start = time.time()
        name = "checkpoint_store"

        if self.checkpoint_service is None:
            return CheckResult(name, CheckStatus.WARN, "Checkpoint store not configured")

        try:
            checkpoint = self.checkpoint_service.load(utc_today())
        except Exception as e:
            logger.warning("health_check_failed", check=name, error=str(e))
            return CheckResult(
                name,
                CheckStatus.FAIL,
                f"Checkpoint store unreadable: {e}",
                duration_ms=(time.time() - start) * 1000,
            )

        return CheckResult(
            name,
            CheckStatus.PASS,
            "Checkpoint store readable",
            duration_ms=(time.time() - start) * 1000,
            details={"checkpoint_present": checkpoint is not None},
        )

    def check_database(self) -> CheckResult:
        start = time.time()
        name = "database"

        if self.store is None:
            return CheckResult(name, CheckStatus.WARN, "Database not configured")

        try:
            users = self.store.list_active_users()
        except Exception as e:
            logger.warning("health_check_failed", check=name, error=str(e))
            return CheckResult(
                name,
                CheckStatus.FAIL,
                f"Database unreachable: {e}",
                duration_ms=(time.time() - start) * 1000,
            )

        return CheckResult(
            name,
            CheckStatus.PASS,
            "Database reachable",
            duration_ms=(time.time() - start) * 1000,
            details={"active_users": len(users)},
        )

    def check_disk_space(self) -> CheckResult:
        start = time.time()
        name = "disk_space"

        path = self.data_dir if self.data_dir.exists() else Path(".")
        usage = shutil.disk_usage(path)
        free_gb = usage.free / (1024**3)
        status = CheckStatus.PASS if free_gb >= self.disk_threshold_gb else CheckStatus.FAIL

        return CheckResult(
            name,
            status,
            f"{free_gb:.2f} GB free",
            duration_ms=(time.time() - start) * 1000,
            details={"path": str(path), "free_gb": round(free_gb, 2)},
        )

    def today_status(self) -> Dict[str, Any]:
        """Summary of today's checkpoint for the status endpoint"""
        date = utc_today()
        if self.checkpoint_service is None:
            return {"date": date, "checkpoint": None}

        checkpoint = self.checkpoint_service.load(date)
        if checkpoint is None:
            return {"date": date, "checkpoint": None}

        return {
            "date": date,
            "checkpoint": {
                "users_processed": checkpoint.users_processed,
                "documents_found": checkpoint.documents_found,
                "documents_summarized": checkpoint.documents_summarized,
                "documents_skipped": checkpoint.documents_skipped,
                "documents_existing": checkpoint.documents_existing,
                "total_cost_usd": round(checkpoint.total_cost_usd, 4),
                "errors": len(checkpoint.errors),
                "budget_exhausted": checkpoint.budget_exhausted,
                "completed": checkpoint.completed,
            },
        }

    async def is_alive(self) -> bool:
        return True
