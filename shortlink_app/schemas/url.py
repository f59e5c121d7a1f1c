from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from shortlink_app.models.log import LogEntry
from shortlink_app.models.url import UrlRecord


class CamelModel(BaseModel):
    """Base for API schemas: snake_case in Python, camelCase on the wire"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ShortenRequest(CamelModel):
    """
    Body of a create request.

    Fields are deliberately loose: the service validates them itself so each
    problem gets its own error message and audit entry instead of a generic 422.
    """
    original_url: Optional[Any] = Field(None, description="The original URL to be shortened")
    validity_minutes: Optional[Any] = Field(None, description="Validity window in minutes")
    custom_shortcode: Optional[Any] = Field(None, description="Alphanumeric shortcode to use instead of a generated one")


class ShortenResponse(CamelModel):
    shortened_url: str
    shortcode: str
    expiry_time: datetime
    original_url: str

    @classmethod
    def from_record(cls, record: UrlRecord) -> "ShortenResponse":
        return cls(
            shortened_url=record.shortened_url,
            shortcode=record.shortcode,
            expiry_time=record.expiry_time,
            original_url=record.original_url,
        )


class RedirectResult(CamelModel):
    original_url: str
    success: bool = True


class StatisticsResponse(CamelModel):
    urls: List[UrlRecord]
    total_urls: int
    total_clicks: int
    active_urls: int


class LogsResponse(CamelModel):
    logs: List[LogEntry]
    total: int


class ErrorResponse(BaseModel):
    error: str
