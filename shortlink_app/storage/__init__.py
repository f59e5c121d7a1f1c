"""
Record storage module.

Implements the Strategy Pattern for pluggable storage of shortened URLs
and their click histories.
"""

from .strategies import RecordStore, InMemoryRecordStore, SQLAlchemyRecordStore
from .factory import RecordStoreFactory, RecordStoreBackend

__all__ = [
    "RecordStore",
    "InMemoryRecordStore",
    "SQLAlchemyRecordStore",
    "RecordStoreFactory",
    "RecordStoreBackend",
]
