"""Data models for the daily checkpoint."""

from pydantic import BaseModel, Field, ConfigDict
from typing import List, Literal, Optional
from datetime import datetime

# Bump whenever a field changes meaning; older blobs are then ignored
CHECKPOINT_SCHEMA_VERSION = 2


class CheckpointConfig(BaseModel):
    """Checkpoint storage configuration"""

    model_config = ConfigDict(protected_namespaces=())

    cache_dir: str = "./data/checkpoints"
    ttl_days: int = Field(7, ge=1, le=90)

    @property
    def ttl_seconds(self) -> int:
        return self.ttl_days * 24 * 60 * 60


class Checkpoint(BaseModel):
    """Progress record for one calendar day of automation.

    The resume point is the triple (last_completed_user_id, current_user_id,
    last_document_key): users up to last_completed_user_id are finished, and
    current_user_id was left right after last_document_key.
    """

    model_config = ConfigDict(protected_namespaces=(), extra="forbid")

    schema_version: Literal[2] = CHECKPOINT_SCHEMA_VERSION
    date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$")

    users_processed: int = Field(0, ge=0)
    documents_found: int = Field(0, ge=0)
    documents_summarized: int = Field(0, ge=0)
    documents_skipped: int = Field(0, ge=0)
    documents_existing: int = Field(0, ge=0)
    documents_processed_this_invocation: int = Field(0, ge=0)
    total_cost_usd: float = Field(0.0, ge=0.0)
    errors: List[str] = Field(default_factory=list)

    last_completed_user_id: Optional[int] = None
    current_user_id: Optional[int] = None
    last_document_key: Optional[str] = None

    budget_exhausted: bool = False
    completed: bool = False
    last_updated: datetime = Field(default_factory=datetime.utcnow)

    @classmethod
    def new(cls, date: str) -> "Checkpoint":
        """Fresh checkpoint for a day with no recorded progress"""
        return cls(date=date)

    def is_user_done(self, user_id: int) -> bool:
        """Whether a user was already fully visited today"""
        return (
            self.last_completed_user_id is not None
            and user_id <= self.last_completed_user_id
        )

    def resume_key_for(self, user_id: int) -> Optional[str]:
        """Document key to resume after, if this user was left mid-way"""
        if self.current_user_id == user_id:
            return self.last_document_key
        return None

    def mark_user_finished(self, user_id: int) -> None:
        """Advance the resume point past a user"""
        self.last_completed_user_id = user_id
        self.current_user_id = None
        self.last_document_key = None

    def mark_document(self, user_id: int, document_key: str) -> None:
        """Record the last document touched for the user in progress"""
        self.current_user_id = user_id
        self.last_document_key = document_key
