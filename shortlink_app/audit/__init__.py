"""
Audit log module for URL shortener.
Implements Strategy Pattern for flexible audit log backends.
"""

from .strategies import AuditLog, InMemoryAuditLog, RedisAuditLog
from .factory import AuditLogFactory, AuditLogBackend

__all__ = [
    "AuditLog",
    "InMemoryAuditLog",
    "RedisAuditLog",
    "AuditLogFactory",
    "AuditLogBackend",
]
