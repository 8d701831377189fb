"""
Host page location — where the SDK was loaded from, and the websocket
address derived from it.
"""

from __future__ import annotations

import httpx
from pydantic import BaseModel, ConfigDict

from sharex_sdk.utils import extract_plugin_uid

DEFAULT_PORTS = {"http": 80, "https": 443, "ws": 80, "wss": 443}


def websocket_url(hostname: str, port: int) -> str:
    """The host listens for websockets one port above the page."""
    return f"ws://{hostname}:{port + 1}"


class HostLocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    hostname: str
    port: int
    pathname: str = "/"

    @classmethod
    def from_url(cls, url: str) -> HostLocation:
        parsed = httpx.URL(url)
        port = parsed.port or DEFAULT_PORTS.get(parsed.scheme, 80)
        return cls(hostname=parsed.host, port=port, pathname=parsed.path or "/")

    @property
    def plugin_uid(self) -> str:
        return extract_plugin_uid(self.pathname)

    @property
    def package_name(self) -> str:
        return self.plugin_uid.replace("-", ".")

    @property
    def websocket_url(self) -> str:
        return websocket_url(self.hostname, self.port)
