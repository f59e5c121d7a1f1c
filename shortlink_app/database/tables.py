"""
ORM tables backing SQLAlchemyRecordStore.

The domain models in shortlink_app.models stay storage-agnostic; these rows
only exist inside a store transaction and are converted on the way out.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship

from shortlink_app.database.connection import Base
from shortlink_app.models.url import ClickEvent, UrlRecord


def to_utc(value: datetime) -> datetime:
    """SQLite drops tzinfo; everything is stored as UTC so restore it"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class UrlRow(Base):
    __tablename__ = "urls"

    # Auto-increment key gives insertion order for listings
    seq = Column(Integer, primary_key=True, autoincrement=True)
    record_id = Column(String(32), unique=True, nullable=False)
    original_url = Column(String, nullable=False)
    # unique=True is the final word on shortcode uniqueness
    shortcode = Column(String, unique=True, nullable=False, index=True)
    shortened_url = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    expiry_time = Column(DateTime(timezone=True), nullable=False)
    validity_minutes = Column(Integer, nullable=False)
    total_clicks = Column(Integer, default=0, nullable=False)
    is_expired = Column(Boolean, default=False, nullable=False)

    clicks = relationship(
        "ClickRow",
        order_by="ClickRow.seq",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @classmethod
    def from_record(cls, record: UrlRecord) -> "UrlRow":
        return cls(
            record_id=record.id,
            original_url=record.original_url,
            shortcode=record.shortcode,
            shortened_url=record.shortened_url,
            created_at=to_utc(record.created_at),
            expiry_time=to_utc(record.expiry_time),
            validity_minutes=record.validity_minutes,
            total_clicks=record.total_clicks,
            is_expired=record.is_expired,
            clicks=[ClickRow.from_event(event) for event in record.clicks],
        )

    def to_record(self) -> UrlRecord:
        return UrlRecord(
            id=self.record_id,
            original_url=self.original_url,
            shortcode=self.shortcode,
            shortened_url=self.shortened_url,
            created_at=to_utc(self.created_at),
            expiry_time=to_utc(self.expiry_time),
            validity_minutes=self.validity_minutes,
            total_clicks=self.total_clicks,
            clicks=[click.to_event() for click in self.clicks],
            is_expired=self.is_expired,
        )


class ClickRow(Base):
    __tablename__ = "clicks"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    url_seq = Column(Integer, ForeignKey("urls.seq"), nullable=False, index=True)
    timestamp = Column(DateTime(timezone=True), nullable=False)
    source = Column(String, nullable=False)
    location = Column(String, nullable=False)
    user_agent = Column(String, nullable=False)
    ip = Column(String, nullable=False)

    @classmethod
    def from_event(cls, event: ClickEvent) -> "ClickRow":
        return cls(
            timestamp=to_utc(event.timestamp),
            source=event.source,
            location=event.location,
            user_agent=event.user_agent,
            ip=event.ip,
        )

    def to_event(self) -> ClickEvent:
        return ClickEvent(
            timestamp=to_utc(self.timestamp),
            source=self.source,
            location=self.location,
            user_agent=self.user_agent,
            ip=self.ip,
        )
