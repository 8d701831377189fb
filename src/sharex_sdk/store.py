"""
Document store client — insert / find / update / delete against named
collections in a host-side JSON database.

Queries are JSONPath filter strings, passed to the host untouched. Results
arrive JSON-encoded inside the frame's `data`; filtered finds are encoded
twice by the host and are decoded twice here.
"""

import copy
import json
import logging
import uuid
from typing import Any, Callable, Optional, Union

import pydantic

from sharex_sdk.correlator import RequestCorrelator, ResultCallback
from sharex_sdk.errors import ValidationError
from sharex_sdk.models.events import DBAction
from sharex_sdk.models.options import InsertOptions
from sharex_sdk.transport.base import Transport
from sharex_sdk.transport.envelope import build_envelope
from sharex_sdk.utils import flatten

logger = logging.getLogger(__name__)

IDENTITY_FIELD = "_uuid"

DBCallback = Callable[[str, Any], None]
Document = dict[str, Any]


def identity_query(document_id: str) -> str:
    """Filter expression matching the document whose identity field is `document_id`."""
    return f"$[?(@.{IDENTITY_FIELD} == '{document_id}')]"


def _decode(value: Any) -> Any:
    return json.loads(value) if isinstance(value, (str, bytes)) else value


def _require_callback(callback: Any) -> None:
    if not callable(callback):
        raise ValidationError("callback must be a function")


def _require_str(name: str, value: Any) -> None:
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be a string")


def _require_document(document: Any) -> None:
    if not isinstance(document, dict):
        raise ValidationError("document must be an object")


class DocumentStore:
    def __init__(
        self,
        db_name: str,
        transport: Optional[Transport],
        db_callback: Optional[DBCallback] = None,
        correlate: bool = False,
    ):
        if not isinstance(db_name, str) or not db_name:
            raise ValidationError("db_name must be a non-empty string")
        if db_callback is not None and not callable(db_callback):
            raise ValidationError("db_callback must be a function")
        self._db_name = db_name
        self._transport = transport
        self._db_callback = db_callback
        self._requests = RequestCorrelator(correlate=correlate)
        self._bootstrapped = False

        self._bootstrap()

    @property
    def db_name(self) -> str:
        return self._db_name

    @property
    def requests(self) -> RequestCorrelator:
        return self._requests

    def update_transport(self, transport: Optional[Transport]) -> None:
        """Point the store at the connection's newly opened transport."""
        self._transport = transport
        if not self._bootstrapped:
            self._bootstrap()

    def _bootstrap(self) -> None:
        """Send `init_db` once, as soon as there is an open transport to carry it."""
        if self._transport is None or not self._transport.is_open:
            logger.info("Deferring init_db for %s until connected", self._db_name)
            return
        self._send(DBAction.INIT_DB, {"db_name": self._db_name})
        self._bootstrapped = True

    def _send(self, action: str, data: dict[str, Any], request_id: Optional[str] = None) -> None:
        frame = build_envelope(DBAction.wire(action), data, request_id=request_id)
        if self._transport is None:
            logger.warning("Dropping %s for %s, no transport", action, self._db_name)
            return
        self._transport.send(frame)

    def handle_result(self, action: str, data: Any, request_id: Optional[str] = None) -> None:
        """Route a `db_action_*_result` frame, `action` already stripped of its prefix."""
        if action == DBAction.INIT_DB_RESULT:
            if self._db_callback is not None:
                self._db_callback(action, data)
        elif action == DBAction.INSERT_DATA_RESULT:
            self._requests.resolve(DBAction.INSERT_DATA, _decode(data), request_id)
        elif action == DBAction.GET_ALL_DATA_RESULT:
            self._requests.resolve(DBAction.GET_DATA, _decode(data), request_id)
        elif action == DBAction.GET_DATA_RESULT:
            outer = _decode(data)
            self._requests.resolve(DBAction.GET_DATA, {
                "status": outer.get("status"),
                "data": _decode(outer.get("data")),
            }, request_id)
        elif action == DBAction.UPDATE_DATA_RESULT:
            self._requests.resolve(DBAction.UPDATE_DATA, _decode(data), request_id)
        elif action == DBAction.DELETE_DATA_RESULT:
            self._requests.resolve(DBAction.DELETE_DATA, _decode(data), request_id)
        else:
            logger.debug("Ignoring store action %s", action)

    def insert(
        self,
        collection: str,
        data: Union[Document, list[Document]],
        options: Union[dict[str, Any], ResultCallback, None] = None,
        callback: Optional[ResultCallback] = None,
    ) -> None:
        """Insert one document, or a list of documents in bulk.

        `options` may be omitted, or be the callback itself. With
        `{"identity": True}` every document gets a fresh `_uuid`; the caller's
        documents are copied, never modified.
        """
        is_bulk = isinstance(data, list)
        if is_bulk:
            if not all(isinstance(doc, dict) for doc in data):
                raise ValidationError("data must be an array of objects")
        elif not isinstance(data, dict):
            raise ValidationError("data must be an object")
        _require_str("collection", collection)

        if callable(options):
            callback = options
            options = None
        if options is not None and not isinstance(options, dict):
            raise ValidationError("options must be an object")
        if callback is not None and not callable(callback):
            raise ValidationError("callback must be a function")
        try:
            opts = InsertOptions.model_validate(options or {})
        except pydantic.ValidationError as e:
            raise ValidationError("options.identity must be a boolean", {"errors": e.errors()}) from e

        if opts.identity:
            if is_bulk:
                data = [{**copy.deepcopy(doc), IDENTITY_FIELD: str(uuid.uuid4())} for doc in data]
            else:
                data = {**copy.deepcopy(data), IDENTITY_FIELD: str(uuid.uuid4())}

        request_id = self._requests.register(DBAction.INSERT_DATA, callback)
        self._send(DBAction.INSERT_DATA_BULK if is_bulk else DBAction.INSERT_DATA, {
            "db_name": self._db_name,
            "collection": collection,
            "new_data": data,
        }, request_id)

    def find(
        self,
        collection: str,
        query: Union[str, ResultCallback, None] = None,
        callback: Optional[ResultCallback] = None,
    ) -> None:
        """Fetch every document (no query) or those matching a filter expression."""
        if callable(query):
            callback = query
            query = None
        _require_callback(callback)
        _require_str("collection", collection)
        if query is not None:
            _require_str("query", query)

        request_id = self._requests.register(DBAction.GET_DATA, callback)
        if query is not None:
            self._send(DBAction.GET_DATA, {
                "db_name": self._db_name,
                "collection": collection,
                "query": query,
            }, request_id)
        else:
            self._send(DBAction.GET_ALL_DATA, {
                "db_name": self._db_name,
                "collection": collection,
            }, request_id)

    def update(self, collection: str, query: str, document: Document, callback: ResultCallback) -> None:
        """Apply a partial document, sent as dot-notation entries, to matching documents."""
        _require_callback(callback)
        _require_str("collection", collection)
        _require_str("query", query)
        _require_document(document)

        request_id = self._requests.register(DBAction.UPDATE_DATA, callback)
        self._send(DBAction.UPDATE_DATA, {
            "db_name": self._db_name,
            "collection": collection,
            "query": query,
            "update": flatten(document),
        }, request_id)

    def update_by_id(self, collection: str, document_id: str, document: Document, callback: ResultCallback) -> None:
        _require_callback(callback)
        _require_str("collection", collection)
        _require_str("id", document_id)
        _require_document(document)
        self.update(collection, identity_query(document_id), document, callback)

    def delete(self, collection: str, query: str, callback: ResultCallback) -> None:
        _require_callback(callback)
        _require_str("collection", collection)
        _require_str("query", query)

        request_id = self._requests.register(DBAction.DELETE_DATA, callback)
        self._send(DBAction.DELETE_DATA, {
            "db_name": self._db_name,
            "collection": collection,
            "query": query,
        }, request_id)

    def delete_by_id(self, collection: str, document_id: str, callback: ResultCallback) -> None:
        _require_callback(callback)
        _require_str("collection", collection)
        _require_str("id", document_id)
        self.delete(collection, identity_query(document_id), callback)
