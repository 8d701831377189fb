"""
Pending-request slots — one callback per request kind.

A new request of a kind replaces the callback waiting for that kind, and a
result invokes the stored callback without clearing it. Two overlapping
requests of the same kind therefore race: only the later caller hears back,
possibly twice. With `correlate=True` each request also gets a request_id;
results that echo a known request_id resolve exactly that request.
A result without a known id falls back to the slot and releases the slot's
request_id, so a host that never echoes ids leaks nothing.
"""

import uuid
from typing import Any, Callable, Optional

ResultCallback = Callable[[Any], None]

MAX_OUTSTANDING = 256


class RequestCorrelator:
    def __init__(self, correlate: bool = False):
        self._correlate = correlate
        self._slots: dict[str, ResultCallback] = {}
        self._slot_ids: dict[str, str] = {}
        # insertion ordered, oldest first
        self._by_request_id: dict[str, ResultCallback] = {}

    @property
    def correlate(self) -> bool:
        return self._correlate

    @property
    def outstanding(self) -> int:
        """Request ids still waiting for an echoed result."""
        return len(self._by_request_id)

    def register(self, kind: str, callback: Optional[ResultCallback]) -> Optional[str]:
        """Store `callback` for `kind`. Returns the request_id in correlated mode."""
        if callback is None:
            self._slots.pop(kind, None)
            self._release_slot_id(kind)
            return None
        self._slots[kind] = callback
        if not self._correlate:
            return None
        request_id = str(uuid.uuid4())
        self._by_request_id[request_id] = callback
        self._slot_ids[kind] = request_id
        while len(self._by_request_id) > MAX_OUTSTANDING:
            del self._by_request_id[next(iter(self._by_request_id))]
        return request_id

    def pending(self, kind: str) -> Optional[ResultCallback]:
        return self._slots.get(kind)

    def resolve(self, kind: str, payload: Any, request_id: Optional[str] = None) -> bool:
        """Deliver a result. Returns False when nobody was waiting for it."""
        if request_id is not None:
            callback = self._by_request_id.pop(request_id, None)
            if callback is not None:
                if self._slot_ids.get(kind) == request_id:
                    del self._slot_ids[kind]
                callback(payload)
                return True
        callback = self._slots.get(kind)
        if callback is None:
            return False
        self._release_slot_id(kind)
        callback(payload)
        return True

    def _release_slot_id(self, kind: str) -> None:
        request_id = self._slot_ids.pop(kind, None)
        if request_id is not None:
            self._by_request_id.pop(request_id, None)
