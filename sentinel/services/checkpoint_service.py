"""
Checkpoint service for resumable daily automation.

One checkpoint per calendar day, stored as JSON in a key-value store under
``checkpoint:automation:<YYYY-MM-DD>`` with a time-to-live. Saves are
best-effort; a failed read of the backing store is fatal for the invocation.
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Tuple
import time
from datetime import datetime

import diskcache
import structlog
from pydantic import ValidationError

from sentinel.models.checkpoint import (
    CHECKPOINT_SCHEMA_VERSION,
    Checkpoint,
    CheckpointConfig,
)
from sentinel.observability.metrics import CHECKPOINT_SAVES
from sentinel.utils.exceptions import CheckpointStoreError

logger = structlog.get_logger()

KEY_PREFIX = "checkpoint:automation:"


class KVStore(ABC):
    """String key-value store with per-entry expiry"""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if absent or expired"""
        pass  # pragma: no cover

    @abstractmethod
    def put(self, key: str, value: str, ttl_seconds: int) -> None:
        pass  # pragma: no cover

    @abstractmethod
    def delete(self, key: str) -> None:
        pass  # pragma: no cover


class DiskCacheKVStore(KVStore):
    """KV store backed by a diskcache directory"""

    def __init__(self, cache_dir: str):
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self._cache = diskcache.Cache(str(self.cache_dir))

    def get(self, key: str) -> Optional[str]:
        return self._cache.get(key)

    def put(self, key: str, value: str, ttl_seconds: int) -> None:
        self._cache.set(key, value, expire=ttl_seconds)

    def delete(self, key: str) -> None:
        self._cache.delete(key)

    def close(self) -> None:
        self._cache.close()


class InMemoryKVStore(KVStore):
    """Process-local KV store for dry runs and tests"""

    def __init__(self) -> None:
        self._data: Dict[str, Tuple[str, float]] = {}

    def get(self, key: str) -> Optional[str]:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if time.monotonic() >= expires_at:
            del self._data[key]
            return None
        return value

    def put(self, key: str, value: str, ttl_seconds: int) -> None:
        self._data[key] = (value, time.monotonic() + ttl_seconds)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class CheckpointService:
    """
    Load and save daily checkpoints.

    Stored payloads that do not parse, fail validation, or carry a different
    schema_version are treated as absent so the day restarts cleanly.
    """

    def __init__(self, kv: KVStore, ttl_seconds: int = CheckpointConfig().ttl_seconds):
        """
        Initialize checkpoint service.

        Args:
            kv: Backing key-value store
            ttl_seconds: Expiry applied on every save
        """
        self.kv = kv
        self.ttl_seconds = ttl_seconds

    @classmethod
    def from_config(cls, config: CheckpointConfig) -> "CheckpointService":
        return cls(DiskCacheKVStore(config.cache_dir), ttl_seconds=config.ttl_seconds)

    @staticmethod
    def key_for(date: str) -> str:
        return f"{KEY_PREFIX}{date}"

    def load(self, date: str) -> Optional[Checkpoint]:
        """
        Load the checkpoint for a day.

        Args:
            date: Day in YYYY-MM-DD form

        Returns:
            Checkpoint if a valid one exists, None otherwise

        Raises:
            CheckpointStoreError: If the backing store cannot be read
        """
        key = self.key_for(date)

        try:
            raw = self.kv.get(key)
        except Exception as e:
            logger.error("checkpoint_read_failed", key=key, error=str(e))
            raise CheckpointStoreError(f"Failed to read checkpoint {key}: {e}") from e

        if raw is None:
            logger.debug("no_checkpoint_found", date=date)
            return None

        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning("checkpoint_malformed", key=key, error=str(e))
            return None

        if not isinstance(data, dict) or data.get("schema_version") != CHECKPOINT_SCHEMA_VERSION:
            logger.warning(
                "checkpoint_schema_mismatch",
                key=key,
                found=data.get("schema_version") if isinstance(data, dict) else None,
                expected=CHECKPOINT_SCHEMA_VERSION,
            )
            return None

        try:
            checkpoint = Checkpoint.model_validate(data)
        except ValidationError as e:
            logger.warning("checkpoint_invalid", key=key, error=str(e))
            return None

        logger.info(
            "checkpoint_loaded",
            date=date,
            users_processed=checkpoint.users_processed,
            last_completed_user_id=checkpoint.last_completed_user_id,
            completed=checkpoint.completed,
        )
        return checkpoint

    def save(self, checkpoint: Checkpoint) -> bool:
        """
        Persist a checkpoint, refreshing its TTL.

        Args:
            checkpoint: Checkpoint to store; last_updated is stamped here

        Returns:
            True if saved successfully
        """
        key = self.key_for(checkpoint.date)

        try:
            checkpoint.last_updated = datetime.utcnow()
            payload = checkpoint.model_dump_json()
            self.kv.put(key, payload, self.ttl_seconds)
        except Exception as e:
            CHECKPOINT_SAVES.labels(status="failed").inc()
            logger.error("checkpoint_save_error", key=key, error=str(e))
            return False

        CHECKPOINT_SAVES.labels(status="success").inc()
        logger.debug(
            "checkpoint_saved",
            date=checkpoint.date,
            last_completed_user_id=checkpoint.last_completed_user_id,
            last_document_key=checkpoint.last_document_key,
            completed=checkpoint.completed,
        )
        return True

    def clear(self, date: str) -> bool:
        """
        Remove the checkpoint for a day.

        Returns:
            True if cleared successfully
        """
        key = self.key_for(date)
        try:
            self.kv.delete(key)
        except Exception as e:
            logger.error("checkpoint_clear_error", key=key, error=str(e))
            return False

        logger.info("checkpoint_cleared", date=date)
        return True
