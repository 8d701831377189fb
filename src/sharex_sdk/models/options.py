"""
Constructor and operation option models.
"""

from typing import Any, Optional
from pydantic import AliasChoices, BaseModel, Field, StrictBool, StrictStr

DEFAULT_RECONNECT_INTERVAL_MS = 3000


class DebugTarget(BaseModel):
    """Explicit host address, bypassing the page location."""
    host: StrictStr
    port: int


class SDKOptions(BaseModel):
    preserve_session_id: StrictBool = False
    debug: Optional[DebugTarget] = None
    reconnect_interval: float = Field(default=DEFAULT_RECONNECT_INTERVAL_MS, ge=0, strict=True)
    public_data: dict[str, Any] = Field(default_factory=dict)
    correlate_requests: StrictBool = False


class InsertOptions(BaseModel):
    identity: StrictBool = Field(default=False, validation_alias=AliasChoices("identity", "uuid"))
