"""
Audit log strategies using Strategy Pattern.
Allows switching between audit log backends (In-Memory, Redis).

The audit log is append-only: every allocation, redirect and statistics
request writes entries, nothing in the core ever edits or removes them.
"""

import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

from shortlink_app.exceptions import InternalError, ShortenerError
from shortlink_app.logging_config import get_logger
from shortlink_app.models.context import ClientContext
from shortlink_app.models.log import AuditAction, LogEntry


logger = get_logger("audit")

DEFAULT_LIMIT = 100
INTERNAL_ERROR = "Internal server error"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AuditLog(ABC):
    """
    Abstract base class for audit logs.

    Subclasses only implement storage; building entries and mirroring them
    to the application logger happens here.
    """

    def __init__(
        self,
        default_limit: int = DEFAULT_LIMIT,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.default_limit = default_limit
        self.clock = clock or utc_now

    @abstractmethod
    def append(self, entry: LogEntry) -> None:
        """Append one entry"""
        pass

    @abstractmethod
    def recent(self, limit: Optional[int] = None) -> List[LogEntry]:
        """
        Get the most recent entries.

        Args:
            limit: How many entries to return. Missing, zero or negative
                   values fall back to the default limit.

        Returns:
            Up to `limit` entries, oldest first, most recent last
        """
        pass

    @abstractmethod
    def total(self) -> int:
        """Number of entries ever recorded"""
        pass

    def close(self) -> None:
        pass

    def _clamp(self, limit: Optional[int]) -> int:
        if limit is None or limit <= 0:
            return self.default_limit
        return limit

    def record(self, action: AuditAction, context: ClientContext, **details: Any) -> LogEntry:
        """Build an entry for the current time and append it"""
        entry = LogEntry(
            timestamp=self.clock(),
            action=action,
            ip=context.ip,
            user_agent=context.user_agent,
            details=details,
        )
        self.append(entry)
        logger.info("%s: ip=%s details=%s", action.value, context.ip, details)
        return entry

    def record_failure(
        self,
        action: AuditAction,
        context: ClientContext,
        exc: Exception,
        **details: Any,
    ) -> ShortenerError:
        """
        Write the single error entry for a failed operation.

        Client-class errors are returned as-is. Anything else is logged with
        its real message and replaced by a generic InternalError, which is
        what the caller should raise.
        """
        if isinstance(exc, ShortenerError) and not isinstance(exc, InternalError):
            self.record(action, context, error=exc.message, **details)
            return exc

        logger.error("%s: unexpected failure", action.value, exc_info=exc)
        self.record(action, context, error=str(exc), **details)
        return InternalError(INTERNAL_ERROR)


class InMemoryAuditLog(AuditLog):
    """
    In-memory audit log using a Python list.

    Unbounded; retention and rotation are left to whoever inspects it.
    """

    def __init__(self, default_limit: int = DEFAULT_LIMIT, clock=None):
        super().__init__(default_limit=default_limit, clock=clock)
        self._entries: List[LogEntry] = []
        self._lock = threading.Lock()

    def append(self, entry: LogEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def recent(self, limit: Optional[int] = None) -> List[LogEntry]:
        limit = self._clamp(limit)
        with self._lock:
            return list(self._entries[-limit:])

    def total(self) -> int:
        with self._lock:
            return len(self._entries)


class RedisAuditLog(AuditLog):
    """
    Redis list implementation of the audit log.

    Entries are JSON documents pushed with RPUSH, so the list is in
    chronological order and LRANGE with negative indexes reads the tail.
    Shared between processes, unlike the in-memory log.
    """

    def __init__(self, redis_client, key: str, default_limit: int = DEFAULT_LIMIT, clock=None):
        """
        Args:
            redis_client: Redis client instance (redis.Redis)
            key: Name of the Redis list holding the entries
        """
        super().__init__(default_limit=default_limit, clock=clock)
        self.redis = redis_client
        self.key = key

    def append(self, entry: LogEntry) -> None:
        try:
            self.redis.rpush(self.key, entry.model_dump_json(by_alias=True))
        except Exception as e:
            # Losing an audit line must not fail the redirect that produced it
            logger.error("Redis audit append error: %s", e)

    def recent(self, limit: Optional[int] = None) -> List[LogEntry]:
        limit = self._clamp(limit)
        try:
            raw_entries = self.redis.lrange(self.key, -limit, -1)
        except Exception as e:
            logger.error("Redis audit read error: %s", e)
            return []

        entries = []
        for raw in raw_entries:
            try:
                entries.append(LogEntry.model_validate_json(raw))
            except ValueError as e:
                logger.warning("Skipping unreadable audit entry: %s", e)
        return entries

    def total(self) -> int:
        try:
            return int(self.redis.llen(self.key))
        except Exception as e:
            logger.error("Redis audit length error: %s", e)
            return 0

    def close(self) -> None:
        self.redis.close()
