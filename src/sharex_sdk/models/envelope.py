"""
Envelope — the `{action, data, package_name}` unit exchanged with the host.
"""

from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class Envelope(BaseModel):
    # Inbound frames carry extra top-level keys (all_users, user, message, public_data)
    model_config = ConfigDict(extra="allow")

    action: str = Field(min_length=1)
    data: Optional[Any] = None
    package_name: Optional[str] = None
    request_id: Optional[str] = None

    def field(self, name: str) -> Any:
        """Read a top-level key that is not part of the declared schema."""
        return (self.model_extra or {}).get(name)
