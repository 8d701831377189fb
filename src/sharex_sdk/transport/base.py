"""
Transport interface — a duplex text-frame connection reporting its lifecycle
through a listener.

Every listener callback runs on the event loop that opened the transport.
A transport is single use: once `on_close` has fired it never reopens.
"""

from abc import ABC, abstractmethod
from typing import Protocol


class TransportListener(Protocol):
    def on_open(self) -> None: ...

    def on_message(self, raw: str) -> None: ...

    def on_error(self, exc: BaseException) -> None: ...

    def on_close(self) -> None: ...


class Transport(ABC):
    @property
    @abstractmethod
    def is_open(self) -> bool: ...

    @abstractmethod
    def open(self, listener: TransportListener) -> None:
        """Start connecting. Returns immediately; progress is reported to `listener`."""

    @abstractmethod
    def send(self, text: str) -> None:
        """Write one frame. Frames are written in call order."""

    @abstractmethod
    async def close(self) -> None: ...
