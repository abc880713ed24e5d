"""Orchestration of the daily discovery, scoring and persistence run."""

from sentinel.orchestration.result import AutomationResult, RunState
from sentinel.orchestration.automation import DailyAutomation, build_automation

__all__ = [
    "AutomationResult",
    "RunState",
    "DailyAutomation",
    "build_automation",
]
