"""Exception hierarchy for the daily automation.

All package errors inherit from SentinelError so callers can catch the whole
family in one place:

```python
try:
    await automation.run()
except SentinelError as e:
    logger.error("automation_failed", error=str(e))
```

LLM provider errors live in sentinel.services.llm.exceptions because they
carry provider metadata.
"""


class SentinelError(Exception):
    """Base exception for all automation errors"""

    pass


class ConfigValidationError(SentinelError):
    """Configuration file missing, unreadable or invalid"""

    pass


class CheckpointStoreError(SentinelError):
    """The checkpoint backing store could not be read

    Raised only from reads. This is the one failure allowed to escape an
    invocation, because without a checkpoint there is no safe resume point.
    Save failures are logged and swallowed instead.
    """

    pass


class StorageError(SentinelError):
    """Relational store read or write failed

    Raised when:
    - A document insert violates a constraint other than the natural key
    - The database is unreachable
    """

    pass


class DiscoveryError(SentinelError):
    """Discovery service request failed

    Used internally by providers to trigger retries. Public search methods
    catch it and degrade to an empty result.
    """

    pass


class RateLimitError(DiscoveryError):
    """Discovery service signalled throttling (HTTP 403/429)"""

    pass


class APIParameterError(DiscoveryError):
    """Discovery service rejected the query parameters (non-retryable)"""

    pass
