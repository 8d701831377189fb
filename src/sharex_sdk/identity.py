"""
Session identifier — fresh per instance, or persisted in a key/value store.
"""

import json
import logging
import re
import uuid
from pathlib import Path
from typing import Optional, Protocol

logger = logging.getLogger(__name__)

STORAGE_KEY = "sharex_sdk_uuid"
STORAGE_FILE = Path.home() / ".sharex" / "storage.json"

UUID_PATTERN = re.compile(
    r"^(?:[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}"
    r"|00000000-0000-0000-0000-000000000000)\Z",
    re.IGNORECASE,
)


class KeyValueStorage(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryStorage:
    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._items: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        self._items[key] = value


class FileStorage:
    """JSON object file. Unreadable files read as empty, failed writes are logged."""

    def __init__(self, path: Optional[Path] = None):
        self._path = Path(path) if path is not None else STORAGE_FILE

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        try:
            data = json.loads(self._path.read_text())
        except (FileNotFoundError, json.JSONDecodeError):
            return {}
        except OSError as e:
            logger.warning("Cannot read %s: %s", self._path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> Optional[str]:
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(data, indent=2))
        except OSError as e:
            logger.warning("Cannot persist session id to %s: %s", self._path, e)


def is_valid_uuid(value: object) -> bool:
    """True for an RFC 4122 (version 1-5) or nil UUID in 8-4-4-4-12 form."""
    return isinstance(value, str) and UUID_PATTERN.match(value) is not None


def resolve_session_id(persist: bool, storage: Optional[KeyValueStorage] = None) -> str:
    """Return the session identifier for a new SDK instance.

    Without `persist` a fresh uuid4 is returned and storage is not touched.
    With `persist` the stored identifier is reused when it is a valid UUID;
    otherwise a new one is generated and written back.
    """
    if not persist:
        return str(uuid.uuid4())
    if storage is None:
        storage = FileStorage()
    stored = storage.get(STORAGE_KEY)
    if is_valid_uuid(stored):
        return stored  # type: ignore[return-value]
    session_id = str(uuid.uuid4())
    storage.set(STORAGE_KEY, session_id)
    return session_id
