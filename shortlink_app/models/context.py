from typing import Optional

from pydantic import BaseModel, ConfigDict

from .url import UNKNOWN_CLIENT


class ClientContext(BaseModel):
    """Who is making a request, as far as the audit log and click history care"""

    ip: str = UNKNOWN_CLIENT
    user_agent: str = UNKNOWN_CLIENT
    referrer: Optional[str] = None

    model_config = ConfigDict(frozen=True)
