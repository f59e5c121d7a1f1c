"""
Domain models for the URL shortener.

Records and click events live in a record store, audit entries in an
audit log. Neither references the other.
"""

from .url import ClickEvent, UrlRecord, DIRECT_SOURCE, UNKNOWN_CLIENT
from .log import AuditAction, LogEntry
from .context import ClientContext

__all__ = [
    "ClickEvent",
    "UrlRecord",
    "AuditAction",
    "LogEntry",
    "ClientContext",
    "DIRECT_SOURCE",
    "UNKNOWN_CLIENT",
]
