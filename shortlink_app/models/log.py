from datetime import datetime
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AuditAction(str, Enum):
    """Fixed set of actions recorded in the audit log"""
    SHORTEN_ATTEMPT = "URL_SHORTEN_ATTEMPT"
    SHORTEN_ERROR = "URL_SHORTEN_ERROR"
    SHORTEN_SUCCESS = "URL_SHORTENED_SUCCESS"
    REDIRECT_ATTEMPT = "REDIRECT_ATTEMPT"
    REDIRECT_ERROR = "REDIRECT_ERROR"
    REDIRECT_SUCCESS = "REDIRECT_SUCCESS"
    STATISTICS_REQUEST = "STATISTICS_REQUEST"
    STATISTICS_SUCCESS = "STATISTICS_SUCCESS"
    STATISTICS_ERROR = "STATISTICS_ERROR"


class LogEntry(BaseModel):
    """Append-only audit record of one action and its outcome"""

    timestamp: datetime
    action: AuditAction
    ip: str
    user_agent: str
    details: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )
