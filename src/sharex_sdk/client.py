"""
SharexSDK — main client.

One persistent connection to the Sharex host carrying presence, messaging,
JSON file and document store requests.
"""

import asyncio
import logging
from typing import Any, Callable, Mapping, Optional, Union

import pydantic

from sharex_sdk.connection import ConnectionManager, ConnectionState, EventHandler, TransportFactory
from sharex_sdk.correlator import RequestCorrelator, ResultCallback
from sharex_sdk.errors import ConfigurationError, NotInitializedError, ValidationError
from sharex_sdk.identity import KeyValueStorage, resolve_session_id
from sharex_sdk.location import HostLocation, websocket_url
from sharex_sdk.models.events import C2SAction
from sharex_sdk.models.options import SDKOptions
from sharex_sdk.router import MessageRouter
from sharex_sdk.store import DBCallback, DocumentStore
from sharex_sdk.transport.envelope import build_envelope

logger = logging.getLogger(__name__)

DEBUG_PACKAGE_NAME = "debug"


def _parse_options(options: Union[SDKOptions, Mapping[str, Any], None]) -> SDKOptions:
    if options is None:
        return SDKOptions()
    if isinstance(options, SDKOptions):
        return options
    if not isinstance(options, Mapping):
        raise ConfigurationError("options must be an object")
    try:
        return SDKOptions.model_validate(dict(options))
    except pydantic.ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise ConfigurationError(f"Invalid options: {fields}", {"errors": e.errors()}) from e


class SharexSDK:
    """Async Sharex client.

    Host-environment inputs are explicit: `location` is the page the plugin
    runs in (not needed with the `debug` option), `storage` keeps the session
    id when `preserve_session_id` is set, `transport_factory` builds the
    transport for a websocket URL.

    Usage:
        sdk = SharexSDK({"debug": {"host": "localhost", "port": 8080}})
        await sdk.connect(on_event)
        users = await sdk.request(sdk.get_all_users)
    """

    def __init__(
        self,
        options: Union[SDKOptions, Mapping[str, Any], None] = None,
        *,
        location: Optional[HostLocation] = None,
        storage: Optional[KeyValueStorage] = None,
        transport_factory: Optional[TransportFactory] = None,
    ):
        self._options = _parse_options(options)

        if self._options.debug is not None:
            self._hostname = self._options.debug.host
            self._port = self._options.debug.port
            self._package_name = DEBUG_PACKAGE_NAME
        elif location is not None:
            self._hostname = location.hostname
            self._port = location.port
            self._package_name = location.package_name
        else:
            raise ConfigurationError("location is required unless the debug option is set")

        self._session_id = resolve_session_id(self._options.preserve_session_id, storage)
        self._public_data: dict[str, Any] = dict(self._options.public_data)
        self._transport_factory = transport_factory

        self._requests = RequestCorrelator(correlate=self._options.correlate_requests)
        self._db: Optional[DocumentStore] = None
        self._on_event: Optional[EventHandler] = None
        self._router = MessageRouter(
            self._requests,
            event_handler=lambda: self._on_event,
            store=lambda: self._db,
        )
        self._connection: Optional[ConnectionManager] = None

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def package_name(self) -> str:
        return self._package_name

    @property
    def url(self) -> str:
        return websocket_url(self._hostname, self._port)

    @property
    def public_data(self) -> dict[str, Any]:
        return self._public_data

    @property
    def connected(self) -> bool:
        return self._connection is not None and self._connection.connected

    @property
    def state(self) -> ConnectionState:
        if self._connection is None:
            return ConnectionState.DISCONNECTED
        return self._connection.state

    @property
    def requests(self) -> RequestCorrelator:
        return self._requests

    def _handshake(self) -> str:
        return build_envelope(
            C2SAction.INIT_USER,
            {"uuid": self._session_id, "public_data": self._public_data},
            package_name=self._package_name,
        )

    def init(self, on_event: Optional[EventHandler] = None) -> None:
        """Start connecting; lifecycle events and push notifications go to `on_event`.

        Returns immediately. Must be called with an event loop running.
        """
        if on_event is not None and not callable(on_event):
            raise ValidationError("on_event must be a function")
        self._on_event = on_event
        if self._connection is None:
            self._connection = ConnectionManager(
                self.url,
                handshake=self._handshake,
                on_frame=self._router.handle_frame,
                reconnect_interval=self._options.reconnect_interval,
                transport_factory=self._transport_factory,
            )
        self._connection.connect(on_event)

    async def connect(self, on_event: Optional[EventHandler] = None, timeout: float = 15.0) -> None:
        """init() and wait for the connection to open."""
        self.init(on_event)
        await self._connection.wait_connected(timeout)  # type: ignore[union-attr]

    async def disconnect(self) -> None:
        if self._connection is not None:
            await self._connection.disconnect()

    def _ensure_initialized(self) -> ConnectionManager:
        if self._connection is None:
            raise NotInitializedError()
        return self._connection

    def _send(self, action: str, data: Any = None, request_id: Optional[str] = None) -> None:
        self._ensure_initialized().send(build_envelope(action, data, request_id=request_id))

    def _request(self, kind: str, callback: ResultCallback, data: Any = None) -> None:
        connection = self._ensure_initialized()
        request_id = self._requests.register(kind, callback)
        connection.send(build_envelope(kind, data, request_id=request_id))

    def create_db_instance(self, db_name: str, db_callback: Optional[DBCallback] = None) -> DocumentStore:
        """Open a document store on the host. `db_callback(action, data)` hears `init_db_result`."""
        connection = self._ensure_initialized()
        store = DocumentStore(
            db_name,
            connection.transport,
            db_callback,
            correlate=self._options.correlate_requests,
        )
        if self._db is not None:
            connection.remove_dependent(self._db)
        self._db = store
        connection.add_dependent(store)
        return store

    def send_msg(self, uuid: str, msg: Any) -> None:
        """Send a message to the session `uuid`; it arrives there as `msg_arrive`."""
        self._send(C2SAction.SEND_MSG, {"uuid": uuid, "msg": msg})

    def get_all_users(self, callback: ResultCallback) -> None:
        if not callable(callback):
            raise ValidationError("callback must be a function")
        self._request(C2SAction.GET_ALL_USERS, callback)

    def request_public_data(self, uuid: str, callback: ResultCallback) -> None:
        if not isinstance(uuid, str):
            raise ValidationError("uuid must be a string")
        if not callable(callback):
            raise ValidationError("callback must be a function")
        self._request(C2SAction.GET_PUBLIC_DATA_OF_USER, callback, {"uuid": uuid})

    def update_my_public_data(self, data: dict[str, Any]) -> None:
        """Replace this session's public data and publish it to the host."""
        if not isinstance(data, dict):
            raise ValidationError("public data must be an object")
        connection = self._ensure_initialized()
        self._public_data = data
        connection.send(build_envelope(C2SAction.UPDATE_USER_DATA, {"public_data": data}))

    def create_json_file(self, filename: str, data: Union[dict[str, Any], list[Any]], callback: ResultCallback) -> None:
        if not isinstance(filename, str):
            raise ValidationError("filename must be a string")
        if not isinstance(data, (dict, list)):
            raise ValidationError("data must be an object or an array")
        if not callable(callback):
            raise ValidationError("callback must be a function")
        self._request(C2SAction.CREATE_JSON_FILE, callback, {"filename": filename, "data": data})

    def read_json_file(self, filename: str, callback: ResultCallback) -> None:
        if not isinstance(filename, str):
            raise ValidationError("filename must be a string")
        if not callable(callback):
            raise ValidationError("callback must be a function")
        self._request(C2SAction.READ_JSON_FILE, callback, {"filename": filename})

    async def request(self, operation: Callable[..., None], *args: Any, timeout: float = 10.0) -> Any:
        """Run a callback-style operation and await its first result.

            users = await sdk.request(sdk.get_all_users)
            rows = await sdk.request(db.find, "players", "$[?(@.score > 5)]")

        The callback is passed as the operation's last argument.
        """
        loop = asyncio.get_running_loop()
        result: asyncio.Future[Any] = loop.create_future()

        def on_result(payload: Any) -> None:
            if not result.done():
                result.set_result(payload)

        operation(*args, on_result)
        try:
            return await asyncio.wait_for(result, timeout=timeout)
        except asyncio.TimeoutError:
            name = getattr(operation, "__name__", repr(operation))
            raise TimeoutError(f"Timeout waiting for {name} result")
