from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool


Base = declarative_base()

IN_MEMORY_SQLITE_URLS = ("sqlite://", "sqlite:///:memory:")


def build_engine(database_url: str) -> Engine:
    """
    Create an engine for the record store.

    SQLite connections are shared across FastAPI's worker threads, so the
    same-thread check is disabled. An in-memory database only exists for the
    lifetime of its connection, hence the StaticPool.
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in IN_MEMORY_SQLITE_URLS:
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, **kwargs)
    return create_engine(database_url)


def build_session_factory(engine: Engine) -> sessionmaker:
    # Rows are converted to domain models after commit, keep their state loaded
    return sessionmaker(autoflush=False, expire_on_commit=False, bind=engine)
