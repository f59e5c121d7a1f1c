from .url import (
    ShortenRequest,
    ShortenResponse,
    RedirectResult,
    StatisticsResponse,
    LogsResponse,
    ErrorResponse,
)

__all__ = [
    "ShortenRequest",
    "ShortenResponse",
    "RedirectResult",
    "StatisticsResponse",
    "LogsResponse",
    "ErrorResponse",
]
