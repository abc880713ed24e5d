"""Automation invocation result."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from sentinel.models.checkpoint import Checkpoint


class RunState(str, Enum):
    """Lifecycle of one orchestrator invocation"""

    NOT_STARTED = "not_started"
    RUNNING = "running"
    BATCH_PAUSED = "batch_paused"
    DAY_COMPLETE = "day_complete"


@dataclass
class AutomationResult:
    """Outcome of one invocation.

    BATCH_PAUSED means the day has more work and the caller should invoke
    again; DAY_COMPLETE means every active user has been visited.
    """

    state: RunState
    date: str
    documents_processed: int = 0
    cost_usd: float = 0.0
    error_count: int = 0
    checkpoint: Optional[Checkpoint] = None

    @property
    def is_complete(self) -> bool:
        return self.state == RunState.DAY_COMPLETE

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        result: Dict[str, Any] = {
            "state": self.state.value,
            "date": self.date,
            "documents_processed": self.documents_processed,
            "cost_usd": round(self.cost_usd, 6),
            "error_count": self.error_count,
        }
        if self.checkpoint is not None:
            result["checkpoint"] = self.checkpoint.model_dump(mode="json")
        return result
