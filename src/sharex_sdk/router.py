"""
Inbound frame routing.

Result actions resolve a pending-request slot, push notifications go straight
to the caller's event handler, `db_action_*` frames go to the document store.
Empty, malformed and unknown frames are dropped.
"""

import logging
from typing import Any, Callable, Optional

from sharex_sdk.correlator import RequestCorrelator
from sharex_sdk.models.envelope import Envelope
from sharex_sdk.models.events import DB_ACTION_PREFIX, C2SAction, S2CAction
from sharex_sdk.store import DocumentStore
from sharex_sdk.transport.envelope import parse_envelope

logger = logging.getLogger(__name__)

EventHandler = Callable[[str, Any], None]

# result action -> (request kind, payload extractor)
RESULT_ROUTES: dict[str, tuple[str, Callable[[Envelope], Any]]] = {
    S2CAction.RETURN_ALL_USERS: (C2SAction.GET_ALL_USERS, lambda env: env.field("all_users")),
    S2CAction.RETURN_PUBLIC_DATA_OF_USER: (C2SAction.GET_PUBLIC_DATA_OF_USER, lambda env: env.field("public_data")),
    S2CAction.RETURN_CREATE_JSON_FILE: (C2SAction.CREATE_JSON_FILE, lambda env: env.model_dump(exclude_unset=True)),
    S2CAction.RETURN_READ_JSON_FILE: (C2SAction.READ_JSON_FILE, lambda env: env.model_dump(exclude_unset=True)),
}

PUSH_ROUTES: dict[str, Callable[[Envelope], Any]] = {
    S2CAction.USER_ARRIVE: lambda env: env.field("user"),
    S2CAction.USER_LEFT: lambda env: env.model_dump(exclude_unset=True),
    S2CAction.MSG_ARRIVE: lambda env: env.field("message"),
}


class MessageRouter:
    def __init__(
        self,
        requests: RequestCorrelator,
        event_handler: Callable[[], Optional[EventHandler]],
        store: Callable[[], Optional[DocumentStore]],
    ):
        self._requests = requests
        self._event_handler = event_handler
        self._store = store

    def handle_frame(self, raw: str) -> None:
        """Process one inbound frame. Callback errors are logged, never raised."""
        envelope = parse_envelope(raw)
        if envelope is None:
            return
        try:
            self.dispatch(envelope)
        except Exception:
            logger.exception("Handling %s failed", envelope.action)

    def dispatch(self, envelope: Envelope) -> None:
        action = envelope.action

        route = RESULT_ROUTES.get(action)
        if route is not None:
            kind, extract = route
            if not self._requests.resolve(kind, extract(envelope), envelope.request_id):
                logger.debug("No pending %s request for %s", kind, action)
            return

        extract_push = PUSH_ROUTES.get(action)
        if extract_push is not None:
            handler = self._event_handler()
            if handler is not None:
                handler(action, extract_push(envelope))
            return

        if action.startswith(DB_ACTION_PREFIX):
            store = self._store()
            if store is None:
                logger.debug("Dropping %s, no document store", action)
                return
            store.handle_result(action[len(DB_ACTION_PREFIX):], envelope.data, envelope.request_id)
            return

        logger.debug("Dropping unknown action %s", action)
