"""Shared fixtures: an in-memory transport driven by the test."""

import json
from typing import Any, Optional, Union

import pytest

from sharex_sdk.transport.base import Transport, TransportListener


class FakeTransport(Transport):
    """Records writes; open/message/error/close are fired by the test."""

    def __init__(self, url: str = "ws://fake:1"):
        self.url = url
        self.listener: Optional[TransportListener] = None
        self.sent: list[str] = []
        self.dropped: list[str] = []
        self.closed = False
        self._open = False

    @classmethod
    def opened(cls, url: str = "ws://fake:1") -> "FakeTransport":
        transport = cls(url)
        transport._open = True
        return transport

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self, listener: TransportListener) -> None:
        self.listener = listener

    def send(self, text: str) -> None:
        if not self._open:
            self.dropped.append(text)
            return
        self.sent.append(text)

    async def close(self) -> None:
        if not self.closed:
            self.fire_close()

    def fire_open(self) -> None:
        self._open = True
        if self.listener is not None:
            self.listener.on_open()

    def fire_message(self, frame: Union[str, dict[str, Any]]) -> None:
        raw = frame if isinstance(frame, str) else json.dumps(frame)
        self.listener.on_message(raw)  # type: ignore[union-attr]

    def fire_error(self, exc: Optional[BaseException] = None) -> None:
        self.listener.on_error(exc or OSError("connection refused"))  # type: ignore[union-attr]

    def fire_close(self) -> None:
        self._open = False
        self.closed = True
        self.listener.on_close()  # type: ignore[union-attr]

    @property
    def frames(self) -> list[dict[str, Any]]:
        return [json.loads(text) for text in self.sent]

    @property
    def actions(self) -> list[str]:
        return [frame["action"] for frame in self.frames]


class TransportRecorder:
    """Transport factory keeping every transport it built."""

    def __init__(self) -> None:
        self.created: list[FakeTransport] = []

    def __call__(self, url: str) -> FakeTransport:
        transport = FakeTransport(url)
        self.created.append(transport)
        return transport

    @property
    def latest(self) -> FakeTransport:
        return self.created[-1]


@pytest.fixture
def transports() -> TransportRecorder:
    return TransportRecorder()


@pytest.fixture
def events() -> list[tuple[str, Any]]:
    return []


@pytest.fixture
def on_event(events):
    def handler(tag: str, payload: Any) -> None:
        events.append((tag, payload))
    return handler


@pytest.fixture
def open_transport() -> FakeTransport:
    return FakeTransport.opened()
