"""
Domain models for shortened URLs and their click history.

These are plain pydantic models owned by a record store. Field names are
snake_case in Python and camelCase on the wire (``originalUrl``,
``totalClicks``...), so the same model serializes straight into API responses.
"""

import uuid
from datetime import datetime, timedelta
from typing import List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


DIRECT_SOURCE = "Direct"
UNKNOWN_CLIENT = "unknown"


class ClickEvent(BaseModel):
    """One successful resolution of a shortcode. Immutable once recorded."""

    timestamp: datetime
    source: str = DIRECT_SOURCE  # Referer header, or "Direct" when absent
    location: str
    user_agent: str = UNKNOWN_CLIENT
    ip: str = UNKNOWN_CLIENT

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class UrlRecord(BaseModel):
    """
    A shortened URL.

    Invariants kept by the record stores:
    - total_clicks == len(clicks)
    - expiry_time == created_at + validity_minutes
    - is_expired never goes back from True to False
    """

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    original_url: str
    shortcode: str
    shortened_url: str
    created_at: datetime
    expiry_time: datetime
    validity_minutes: int
    total_clicks: int = 0
    clicks: List[ClickEvent] = Field(default_factory=list)
    is_expired: bool = False

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @classmethod
    def create(
        cls,
        original_url: str,
        shortcode: str,
        base_url: str,
        created_at: datetime,
        validity_minutes: int,
    ) -> "UrlRecord":
        """Build a fresh record, deriving the short link and expiry time"""
        return cls(
            original_url=original_url,
            shortcode=shortcode,
            shortened_url=f"{base_url.rstrip('/')}/r/{shortcode}",
            created_at=created_at,
            expiry_time=created_at + timedelta(minutes=validity_minutes),
            validity_minutes=validity_minutes,
        )

    def is_past_expiry(self, now: datetime) -> bool:
        # Strictly greater: a request landing exactly on expiry_time still resolves
        return now > self.expiry_time

    def snapshot(self) -> "UrlRecord":
        """Deep copy that later store mutations can't reach"""
        return self.model_copy(deep=True)
