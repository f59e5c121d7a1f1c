"""
Factory for creating audit log instances.
"""

from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from .strategies import AuditLog, InMemoryAuditLog, RedisAuditLog
from shortlink_app.config import Settings, settings as default_settings
from shortlink_app.logging_config import get_logger


logger = get_logger("audit")


class AuditLogBackend(Enum):
    """Available audit log backends"""
    MEMORY = "memory"
    REDIS = "redis"


class AuditLogFactory:
    """
    Simple factory for creating audit logs.

    Gets configuration from settings. Falls back to the in-memory log
    when Redis is unreachable.
    """

    @classmethod
    def create(
        cls,
        backend: AuditLogBackend,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> AuditLog:
        """
        Create an audit log.

        Args:
            backend: Type of audit log backend (from enum)
            settings: Settings to read connection info from (defaults to global)
            clock: Time source for entry timestamps

        Returns:
            A new AuditLog instance
        """
        settings = settings or default_settings
        limit = settings.audit_log_default_limit

        if backend == AuditLogBackend.REDIS:
            import redis

            try:
                redis_client = redis.from_url(
                    settings.redis_url,
                    decode_responses=False,
                    socket_connect_timeout=2,
                    socket_timeout=2,
                )

                # Test connection immediately
                redis_client.ping()

                audit_log = RedisAuditLog(
                    redis_client,
                    key=settings.audit_log_key,
                    default_limit=limit,
                    clock=clock,
                )
                logger.info("Redis audit log initialized")

            except redis.RedisError as e:
                logger.warning("Redis connection failed: %s", e)
                logger.warning("Falling back to in-memory audit log")
                audit_log = InMemoryAuditLog(default_limit=limit, clock=clock)

        elif backend == AuditLogBackend.MEMORY:
            audit_log = InMemoryAuditLog(default_limit=limit, clock=clock)
            logger.info("In-memory audit log initialized")

        else:
            raise ValueError(f"Unknown audit log backend: {backend}")

        return audit_log
