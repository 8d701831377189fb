"""
Connection manager — owns the one live transport and keeps it alive.

    DISCONNECTED --connect()--> CONNECTING --open--> CONNECTED
    CONNECTED --close--> RECONNECT_WAITING --timer--> CONNECTING --> ...

There is no terminal state: after every close a timer of `reconnect_interval`
milliseconds schedules the next attempt, until `disconnect()` is called.
The first successful open is reported as `open`; every later one as
`reconnect`, after dependents have been handed the new transport.
"""

import asyncio
import enum
import logging
from typing import Any, Callable, Optional, Protocol

from sharex_sdk.errors import ConnectionError
from sharex_sdk.models.events import LifecycleEvent
from sharex_sdk.models.options import DEFAULT_RECONNECT_INTERVAL_MS
from sharex_sdk.transport.base import Transport
from sharex_sdk.transport.websocket import WebSocketTransport

logger = logging.getLogger(__name__)

EventHandler = Callable[[str, Any], None]
TransportFactory = Callable[[str], Transport]


class ConnectionState(str, enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECT_WAITING = "reconnect_waiting"


class TransportDependent(Protocol):
    def update_transport(self, transport: Optional[Transport]) -> None: ...


class _Listener:
    """Binds transport events to the manager, tagged with their transport."""

    def __init__(self, manager: "ConnectionManager", transport: Transport):
        self._manager = manager
        self._transport = transport

    def on_open(self) -> None:
        self._manager._on_open(self._transport)

    def on_message(self, raw: str) -> None:
        self._manager._on_message(self._transport, raw)

    def on_error(self, exc: BaseException) -> None:
        self._manager._on_error(self._transport, exc)

    def on_close(self) -> None:
        self._manager._on_close(self._transport)


class ConnectionManager:
    def __init__(
        self,
        url: str,
        handshake: Callable[[], str],
        on_frame: Callable[[str], None],
        reconnect_interval: float = DEFAULT_RECONNECT_INTERVAL_MS,
        transport_factory: Optional[TransportFactory] = None,
    ):
        self._url = url
        self._handshake = handshake
        self._on_frame = on_frame
        self._reconnect_interval = reconnect_interval
        self._transport_factory = transport_factory or WebSocketTransport

        self._state = ConnectionState.DISCONNECTED
        self._transport: Optional[Transport] = None
        self._on_event: Optional[EventHandler] = None
        self._reconnect_timer: Optional[asyncio.TimerHandle] = None
        self._lost_connection = False
        self._stopped = False
        self._dependents: list[TransportDependent] = []
        self._bound: Optional[Transport] = None
        self._connected_event = asyncio.Event()
        self._retiring: set[asyncio.Task[None]] = set()

    @property
    def url(self) -> str:
        return self._url

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def transport(self) -> Optional[Transport]:
        return self._transport

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_timer is not None

    def add_dependent(self, dependent: TransportDependent) -> None:
        """Register a component to be handed each newly opened transport."""
        self._dependents.append(dependent)

    def remove_dependent(self, dependent: TransportDependent) -> None:
        if dependent in self._dependents:
            self._dependents.remove(dependent)

    def connect(self, on_event: Optional[EventHandler] = None) -> None:
        """Open a new transport. Must be called from the event loop's thread."""
        self._on_event = on_event
        self._stopped = False
        self._cancel_reconnect_timer()
        self._state = ConnectionState.CONNECTING
        self._connected_event.clear()
        if self._transport is not None:
            self._retire(self._transport)

        transport = self._transport_factory(self._url)
        self._transport = transport
        logger.info("Connecting to %s", self._url)
        transport.open(_Listener(self, transport))

    async def wait_connected(self, timeout: Optional[float] = None) -> None:
        try:
            await asyncio.wait_for(self._connected_event.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            raise TimeoutError(f"Timed out connecting to {self._url} after {timeout}s")

    def send(self, text: str) -> None:
        transport = self._transport
        if transport is None or not self.connected:
            logger.warning("Dropping frame, not connected to %s", self._url)
            return
        transport.send(text)

    async def disconnect(self) -> None:
        """Close the connection and stop reconnecting."""
        self._stopped = True
        self._cancel_reconnect_timer()
        transport = self._transport
        if transport is not None:
            await transport.close()
        self._transport = None
        self._state = ConnectionState.DISCONNECTED
        self._connected_event.clear()

    def _emit(self, tag: str, payload: Any = None) -> None:
        if self._on_event is not None:
            self._on_event(tag, payload)

    def _cancel_reconnect_timer(self) -> None:
        if self._reconnect_timer is not None:
            self._reconnect_timer.cancel()
            self._reconnect_timer = None

    def _retire(self, transport: Transport) -> None:
        """Close a superseded transport in the background; its events are ignored."""
        task = asyncio.get_running_loop().create_task(transport.close())
        self._retiring.add(task)
        task.add_done_callback(self._retiring.discard)

    def _is_current(self, transport: Transport) -> bool:
        if transport is not self._transport:
            logger.debug("Ignoring event from a superseded transport")
            return False
        return True

    def _on_open(self, transport: Transport) -> None:
        if not self._is_current(transport):
            return
        self._state = ConnectionState.CONNECTED
        logger.info("Connected to %s", self._url)
        transport.send(self._handshake())
        self._connected_event.set()

        if transport is not self._bound:
            self._bound = transport
            for dependent in self._dependents:
                dependent.update_transport(transport)

        if self._lost_connection:
            self._cancel_reconnect_timer()
            self._emit(LifecycleEvent.RECONNECT)
        else:
            self._emit(LifecycleEvent.OPEN)

    def _on_message(self, transport: Transport, raw: str) -> None:
        if not self._is_current(transport):
            return
        self._on_frame(raw)

    def _on_error(self, transport: Transport, exc: BaseException) -> None:
        if not self._is_current(transport):
            return
        error = ConnectionError(f"Connection to {self._url} failed: {exc}")
        error.__cause__ = exc
        self._emit(LifecycleEvent.ERROR, error)

    def _on_close(self, transport: Transport) -> None:
        if not self._is_current(transport):
            return
        self._state = ConnectionState.DISCONNECTED
        self._transport = None
        self._lost_connection = True
        self._connected_event.clear()
        logger.info("Disconnected from %s", self._url)
        self._emit(LifecycleEvent.CLOSE)

        if self._stopped:
            return
        self._state = ConnectionState.RECONNECT_WAITING
        loop = asyncio.get_running_loop()
        self._reconnect_timer = loop.call_later(self._reconnect_interval / 1000, self._reconnect)
        logger.info("Reconnecting to %s in %sms", self._url, self._reconnect_interval)

    def _reconnect(self) -> None:
        self._reconnect_timer = None
        self.connect(self._on_event)
