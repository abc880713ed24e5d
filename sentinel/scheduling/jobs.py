"""Scheduled job definitions.

Usage:
    from sentinel.scheduling.jobs import automation_jobs

    daily, resume = automation_jobs(automation)
    await daily()
"""

import asyncio
import time
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Optional, Tuple
import structlog

from sentinel.observability.context import set_correlation_id, clear_correlation_id
from sentinel.orchestration.automation import DailyAutomation, utc_today
from sentinel.orchestration.result import AutomationResult

logger = structlog.get_logger()


class BaseJob(ABC):
    """Base class for scheduled jobs.

    Provides correlation ids, timing and error logging around run().
    """

    def __init__(self, name: str):
        self.name = name
        self.last_run: Optional[datetime] = None
        self.last_success: Optional[datetime] = None
        self.run_count: int = 0
        self.error_count: int = 0

    async def __call__(self) -> Any:
        """Execute the job with correlation ID and error handling."""
        start = time.time()
        corr_id = set_correlation_id(
            f"{self.name}-{datetime.utcnow().strftime('%Y%m%d-%H%M%S')}"
        )

        logger.info("job_starting", job_name=self.name, correlation_id=corr_id)

        try:
            result = await self.run()

            self.last_run = datetime.utcnow()
            self.last_success = self.last_run
            self.run_count += 1

            logger.info(
                "job_completed",
                job_name=self.name,
                duration_seconds=round(time.time() - start, 2),
                correlation_id=corr_id,
            )
            return result

        except Exception as e:
            self.last_run = datetime.utcnow()
            self.error_count += 1

            logger.error(
                "job_failed",
                job_name=self.name,
                error=str(e),
                correlation_id=corr_id,
                exc_info=True,
            )
            raise

        finally:
            clear_correlation_id()

    @abstractmethod
    async def run(self) -> Any:
        pass  # pragma: no cover (abstract method)

    def get_status(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "last_success": (
                self.last_success.isoformat() if self.last_success else None
            ),
            "run_count": self.run_count,
            "error_count": self.error_count,
        }


class AutomationJob(BaseJob):
    """One orchestrator invocation per trigger.

    Jobs built by automation_jobs() share a lock, so a trigger firing while
    another invocation is in flight is skipped. A resume-only job never
    starts a day: it runs only while today's checkpoint exists and is
    unfinished.
    """

    def __init__(
        self,
        automation: DailyAutomation,
        name: str = "daily_automation",
        resume_only: bool = False,
        lock: Optional[asyncio.Lock] = None,
    ):
        super().__init__(name)
        self.automation = automation
        self.resume_only = resume_only
        self._lock = lock or asyncio.Lock()
        self.last_result: Optional[AutomationResult] = None

    async def run(self) -> Optional[AutomationResult]:
        if self._lock.locked():
            logger.info("automation_invocation_in_flight", job_name=self.name)
            return None

        async with self._lock:
            date = utc_today()
            if self.resume_only and not self._day_in_progress(date):
                logger.debug("automation_resume_not_needed", job_name=self.name, date=date)
                return None
            self.last_result = await self.automation.run(date)

        logger.info(
            "automation_job_result",
            job_name=self.name,
            state=self.last_result.state.value,
            documents_processed=self.last_result.documents_processed,
            cost_usd=round(self.last_result.cost_usd, 6),
        )
        return self.last_result

    def _day_in_progress(self, date: str) -> bool:
        checkpoint = self.automation.checkpoint_service.load(date)
        return checkpoint is not None and not checkpoint.completed

    def get_status(self) -> Dict[str, Any]:
        status = super().get_status()
        status["resume_only"] = self.resume_only
        status["last_state"] = self.last_result.state.value if self.last_result else None
        return status


def automation_jobs(automation: DailyAutomation) -> Tuple[AutomationJob, AutomationJob]:
    """Daily and resume jobs for one automation, sharing one lock."""
    lock = asyncio.Lock()
    return (
        AutomationJob(automation, name="daily_automation", lock=lock),
        AutomationJob(automation, name="resume_automation", resume_only=True, lock=lock),
    )
