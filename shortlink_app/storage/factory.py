"""
Factory for creating record store instances.
"""

from enum import Enum
from typing import Optional

from .strategies import RecordStore, InMemoryRecordStore, SQLAlchemyRecordStore
from shortlink_app.config import Settings, settings as default_settings
from shortlink_app.database.connection import build_engine, build_session_factory
from shortlink_app.logging_config import get_logger


logger = get_logger("storage")


class RecordStoreBackend(Enum):
    """Available record store backends"""
    MEMORY = "memory"
    SQLALCHEMY = "sqlalchemy"


class RecordStoreFactory:
    """
    Simple factory for creating record stores.

    Gets configuration from settings. The caller owns the returned store
    and must close() it at shutdown.
    """

    @classmethod
    def create(
        cls,
        backend: RecordStoreBackend,
        settings: Optional[Settings] = None,
    ) -> RecordStore:
        """
        Create a record store.

        Args:
            backend: Type of store backend (from enum)
            settings: Settings to read connection info from (defaults to global)

        Returns:
            A new RecordStore instance
        """
        settings = settings or default_settings

        if backend == RecordStoreBackend.MEMORY:
            store = InMemoryRecordStore()
            logger.info("In-memory record store initialized")

        elif backend == RecordStoreBackend.SQLALCHEMY:
            engine = build_engine(settings.database_url)
            store = SQLAlchemyRecordStore(engine, build_session_factory(engine))
            logger.info("SQLAlchemy record store initialized (%s)", engine.url.get_backend_name())

        else:
            raise ValueError(f"Unknown record store backend: {backend}")

        return store
