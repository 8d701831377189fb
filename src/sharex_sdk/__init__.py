"""
sharex-sdk — Sharex SDK for Python.

One persistent websocket to a Sharex host, carrying presence, messaging,
JSON file and document store requests.
"""

from sharex_sdk.client import SharexSDK
from sharex_sdk.connection import ConnectionManager, ConnectionState
from sharex_sdk.store import DocumentStore
from sharex_sdk.location import HostLocation
from sharex_sdk.identity import FileStorage, MemoryStorage
from sharex_sdk.errors import (
    SharexError,
    ConfigurationError,
    ValidationError,
    ConnectionError,
    NotInitializedError,
)
from sharex_sdk.models.events import C2SAction, S2CAction, DBAction, LifecycleEvent

__version__ = "0.1.0"
__all__ = [
    "SharexSDK",
    "ConnectionManager",
    "ConnectionState",
    "DocumentStore",
    "HostLocation",
    "FileStorage",
    "MemoryStorage",
    "SharexError",
    "ConfigurationError",
    "ValidationError",
    "ConnectionError",
    "NotInitializedError",
    "C2SAction",
    "S2CAction",
    "DBAction",
    "LifecycleEvent",
]
