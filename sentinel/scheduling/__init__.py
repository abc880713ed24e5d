"""Scheduling for the daily automation.

Provides:
- AutomationScheduler: APScheduler wrapper with metrics and graceful shutdown
- AutomationJob: one orchestrator invocation per trigger
- automation_jobs: the daily and resume-only jobs, sharing one lock
"""

from sentinel.scheduling.scheduler import AutomationScheduler
from sentinel.scheduling.jobs import AutomationJob, BaseJob, automation_jobs

__all__ = [
    "AutomationScheduler",
    "AutomationJob",
    "BaseJob",
    "automation_jobs",
]
