"""
Record store strategies using Strategy Pattern.

A record store is the single authority over shortened-URL records and their
click histories. Two implementations:
- InMemoryRecordStore: dict guarded by a lock (default, no setup)
- SQLAlchemyRecordStore: ORM tables, SQLite in memory by default

Both return deep copies, so nothing outside the store can mutate its state,
and both run every compound operation (check-then-insert, count-and-append)
under one lock.
"""

import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from shortlink_app.database.connection import Base
from shortlink_app.database.tables import ClickRow, UrlRow
from shortlink_app.exceptions import ConflictError, ExpiredError, NotFoundError
from shortlink_app.logging_config import get_logger
from shortlink_app.models.url import ClickEvent, UrlRecord


logger = get_logger("storage")

SHORTCODE_EXISTS = "Shortcode already exists"
URL_NOT_FOUND = "Shortened URL not found"
URL_EXPIRED = "Shortened URL has expired"


class RecordStore(ABC):
    """
    Abstract base class for record stores.

    Records are never deleted: expired ones stay around for statistics.
    """

    @abstractmethod
    def insert(self, record: UrlRecord) -> None:
        """
        Insert a new record.

        Raises:
            ConflictError: If the shortcode is already taken (live or expired)
        """
        pass

    @abstractmethod
    def find_by_shortcode(self, shortcode: str) -> Optional[UrlRecord]:
        """Return a snapshot of the record, or None"""
        pass

    @abstractmethod
    def exists(self, shortcode: str) -> bool:
        pass

    @abstractmethod
    def append_click(self, shortcode: str, event: ClickEvent) -> UrlRecord:
        """
        Record a click: append the event and increment the count as one step.

        Returns:
            Snapshot of the record after the click

        Raises:
            NotFoundError: Unknown shortcode
            ExpiredError: Record is expired or the event lands past expiry
        """
        pass

    @abstractmethod
    def mark_expired_if_due(self, record: UrlRecord, now: datetime) -> bool:
        """
        Flag the record as expired iff now > expiry_time.

        Idempotent and monotonic: the flag is never cleared. The passed-in
        record is updated as well.

        Returns:
            Whether the stored record is expired
        """
        pass

    @abstractmethod
    def all(self) -> List[UrlRecord]:
        """Snapshots of every record, in insertion order"""
        pass

    @abstractmethod
    def count(self) -> int:
        pass

    def close(self) -> None:
        """Release resources held by the store"""
        pass


class InMemoryRecordStore(RecordStore):
    """
    In-memory record store using a Python dict.

    Dicts keep insertion order, which doubles as the listing order.
    Lost on restart, which is fine: durability is not a requirement.
    """

    def __init__(self):
        self._records: Dict[str, UrlRecord] = {}
        self._lock = threading.Lock()

    def insert(self, record: UrlRecord) -> None:
        with self._lock:
            if record.shortcode in self._records:
                raise ConflictError(SHORTCODE_EXISTS)
            self._records[record.shortcode] = record.snapshot()

    def find_by_shortcode(self, shortcode: str) -> Optional[UrlRecord]:
        with self._lock:
            record = self._records.get(shortcode)
            return record.snapshot() if record else None

    def exists(self, shortcode: str) -> bool:
        with self._lock:
            return shortcode in self._records

    def append_click(self, shortcode: str, event: ClickEvent) -> UrlRecord:
        with self._lock:
            record = self._records.get(shortcode)
            if record is None:
                raise NotFoundError(URL_NOT_FOUND)
            if record.is_expired or record.is_past_expiry(event.timestamp):
                raise ExpiredError(URL_EXPIRED)

            # Both fields change together while the lock is held
            record.clicks.append(event)
            record.total_clicks = len(record.clicks)
            return record.snapshot()

    def mark_expired_if_due(self, record: UrlRecord, now: datetime) -> bool:
        with self._lock:
            stored = self._records.get(record.shortcode)
            if stored is None:
                raise NotFoundError(URL_NOT_FOUND)
            if not stored.is_expired and stored.is_past_expiry(now):
                stored.is_expired = True
                logger.debug("Marked %s as expired", stored.shortcode)
            record.is_expired = stored.is_expired
            return stored.is_expired

    def all(self) -> List[UrlRecord]:
        with self._lock:
            return [record.snapshot() for record in self._records.values()]

    def count(self) -> int:
        with self._lock:
            return len(self._records)


class SQLAlchemyRecordStore(RecordStore):
    """
    Record store backed by SQLAlchemy ORM tables.

    Every operation opens its own session; compound operations commit once,
    so count and click history are always written in the same transaction.
    The lock serializes all access: an in-memory SQLite database is one
    connection shared by every thread.
    """

    def __init__(self, engine: Engine, session_factory: sessionmaker):
        self.engine = engine
        self.session_factory = session_factory
        self._lock = threading.Lock()
        Base.metadata.create_all(bind=engine)

    def _get_row(self, session: Session, shortcode: str) -> Optional[UrlRow]:
        return session.query(UrlRow).filter(UrlRow.shortcode == shortcode).first()

    def insert(self, record: UrlRecord) -> None:
        with self._lock, self.session_factory() as session:
            if self._get_row(session, record.shortcode) is not None:
                raise ConflictError(SHORTCODE_EXISTS)

            session.add(UrlRow.from_record(record))
            try:
                session.commit()
            except IntegrityError as exc:
                # Another process sharing the database won the race
                session.rollback()
                raise ConflictError(SHORTCODE_EXISTS) from exc

    def find_by_shortcode(self, shortcode: str) -> Optional[UrlRecord]:
        with self._lock, self.session_factory() as session:
            row = self._get_row(session, shortcode)
            return row.to_record() if row else None

    def exists(self, shortcode: str) -> bool:
        with self._lock, self.session_factory() as session:
            return self._get_row(session, shortcode) is not None

    def append_click(self, shortcode: str, event: ClickEvent) -> UrlRecord:
        with self._lock, self.session_factory() as session:
            row = self._get_row(session, shortcode)
            if row is None:
                raise NotFoundError(URL_NOT_FOUND)

            record = row.to_record()
            if record.is_expired or record.is_past_expiry(event.timestamp):
                raise ExpiredError(URL_EXPIRED)

            row.clicks.append(ClickRow.from_event(event))
            row.total_clicks = len(row.clicks)
            session.commit()
            return row.to_record()

    def mark_expired_if_due(self, record: UrlRecord, now: datetime) -> bool:
        with self._lock, self.session_factory() as session:
            row = self._get_row(session, record.shortcode)
            if row is None:
                raise NotFoundError(URL_NOT_FOUND)

            if not row.is_expired and row.to_record().is_past_expiry(now):
                row.is_expired = True
                session.commit()
                logger.debug("Marked %s as expired", row.shortcode)

            record.is_expired = row.is_expired
            return row.is_expired

    def all(self) -> List[UrlRecord]:
        with self._lock, self.session_factory() as session:
            rows = session.query(UrlRow).order_by(UrlRow.seq).all()
            return [row.to_record() for row in rows]

    def count(self) -> int:
        with self._lock, self.session_factory() as session:
            return session.query(func.count(UrlRow.seq)).scalar()

    def close(self) -> None:
        self.engine.dispose()
