"""APScheduler wrapper for the daily automation.

Two triggers drive the day: a cron trigger that starts it and an interval
trigger that keeps resuming it until the checkpoint is complete.

Usage:
    daily, resume = automation_jobs(automation)
    scheduler = AutomationScheduler(timezone="UTC")
    scheduler.add_automation_jobs(daily, resume, hour=6, minute=0)
    await scheduler.start()
"""

import asyncio
import signal
from typing import Any, Dict, List
import structlog

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.base import BaseTrigger
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.events import (
    EVENT_JOB_EXECUTED,
    EVENT_JOB_ERROR,
    EVENT_JOB_MISSED,
    JobExecutionEvent,
)

from sentinel.observability.metrics import SCHEDULER_JOBS
from sentinel.scheduling.jobs import AutomationJob

logger = structlog.get_logger()

DAILY_JOB_ID = "daily_automation"
RESUME_JOB_ID = "resume_automation"


class AutomationScheduler:
    """AsyncIOScheduler holding the daily and resume triggers.

    Blocks in start() until SIGTERM/SIGINT or shutdown().
    """

    def __init__(
        self,
        timezone: str = "UTC",
        misfire_grace_time: int = 300,
    ):
        # One instance per job; missed runs collapse into one
        self.scheduler = AsyncIOScheduler(
            timezone=timezone,
            job_defaults={
                "max_instances": 1,
                "coalesce": True,
                "misfire_grace_time": misfire_grace_time,
            },
        )
        self._running = False
        self._shutdown_event = asyncio.Event()

        self.scheduler.add_listener(self._on_job_executed, EVENT_JOB_EXECUTED)
        self.scheduler.add_listener(self._on_job_error, EVENT_JOB_ERROR)
        self.scheduler.add_listener(self._on_job_missed, EVENT_JOB_MISSED)

        logger.info("scheduler_initialized", timezone=timezone)

    def add_automation_jobs(
        self,
        daily_job: AutomationJob,
        resume_job: AutomationJob,
        hour: int = 6,
        minute: int = 0,
        resume_interval_minutes: int = 5,
    ) -> List[str]:
        """Schedule the daily start and the resume cadence.

        Args:
            daily_job: Job that starts (or continues) today's run
            resume_job: Job that only continues a started, unfinished day
            hour: Daily start hour in the scheduler's timezone
            minute: Daily start minute
            resume_interval_minutes: Resume cadence

        Returns:
            Scheduled job ids
        """
        self._add(daily_job, DAILY_JOB_ID, CronTrigger(hour=hour, minute=minute))
        self._add(
            resume_job, RESUME_JOB_ID, IntervalTrigger(minutes=resume_interval_minutes)
        )
        self._update_metrics()
        return [DAILY_JOB_ID, RESUME_JOB_ID]

    def _add(self, job: AutomationJob, job_id: str, trigger: BaseTrigger) -> None:
        scheduled = self.scheduler.add_job(
            job, trigger=trigger, id=job_id, name=job_id, replace_existing=True
        )
        next_run = getattr(scheduled, "next_run_time", None)
        logger.info(
            "job_added",
            job_id=job_id,
            trigger=str(trigger),
            next_run=str(next_run) if next_run else "not scheduled",
        )

    def get_jobs(self) -> List[Dict[str, Any]]:
        """Id, name and next run time of each scheduled job."""
        jobs = []
        for job in self.scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            jobs.append(
                {
                    "id": job.id,
                    "name": job.name,
                    "next_run_time": str(next_run) if next_run else None,
                }
            )
        return jobs

    async def start(self) -> None:
        """Start the scheduler and block until shutdown."""
        if self._running:
            logger.warning("scheduler_already_running")
            return

        self._running = True
        self._shutdown_event.clear()

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self._signal_handler)

        self.scheduler.start()
        logger.info("scheduler_started", jobs=len(self.scheduler.get_jobs()))
        self._update_metrics()

        await self._shutdown_event.wait()

    async def shutdown(self, wait: bool = True) -> None:
        """Stop the scheduler; with wait, let a running invocation finish."""
        if not self._running:
            return

        logger.info("scheduler_shutting_down")
        self.scheduler.shutdown(wait=wait)
        self._running = False
        self._shutdown_event.set()
        logger.info("scheduler_stopped")

    def _signal_handler(self) -> None:
        logger.info("shutdown_signal_received")
        asyncio.create_task(self.shutdown())

    def _on_job_executed(self, event: JobExecutionEvent) -> None:
        logger.info(
            "job_executed",
            job_id=event.job_id,
            scheduled_run_time=str(event.scheduled_run_time),
        )
        self._update_metrics()

    def _on_job_error(self, event: JobExecutionEvent) -> None:
        logger.error(
            "job_failed",
            job_id=event.job_id,
            exception=str(event.exception),
            traceback=event.traceback,
        )
        self._update_metrics()

    def _on_job_missed(self, event: JobExecutionEvent) -> None:
        logger.warning(
            "job_missed",
            job_id=event.job_id,
            scheduled_run_time=str(event.scheduled_run_time),
        )
        self._update_metrics()

    def _update_metrics(self) -> None:
        jobs = self.scheduler.get_jobs()
        pending = sum(1 for j in jobs if getattr(j, "pending", False))
        SCHEDULER_JOBS.labels(status="pending").set(pending)
        SCHEDULER_JOBS.labels(status="scheduled").set(len(jobs) - pending)

    @property
    def is_running(self) -> bool:
        return self._running
