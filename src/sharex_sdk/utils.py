"""
Dot-notation patches and page path helpers.
"""

import json
import re
from typing import Any, Mapping

PLUGIN_PATH_PATTERN = re.compile(r"/SharexApp/([\w-]+)(?:/[^/]+)*/?", re.IGNORECASE)


def extract_plugin_uid(path: str) -> str:
    """Return `<name>` from a `/SharexApp/<name>/...` path, or "" when absent."""
    match = PLUGIN_PATH_PATTERN.search(path)
    return match.group(1) if match else ""


def format_leaf(value: Any) -> str:
    """Render a leaf value as the host's patch parser expects it."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return json.dumps(list(value), separators=(",", ":"))
    return str(value)


def flatten(obj: Mapping[str, Any], prefix: str = "") -> list[str]:
    """Flatten a nested update document into ordered `path:value` entries.

    >>> flatten({"profile": {"level": 2}, "name": "ann"})
    ['profile.level:2', 'name:ann']

    Lists are leaves, never traversed. Empty mappings contribute nothing.
    """
    entries: list[str] = []
    for key, value in obj.items():
        path = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            entries.extend(flatten(value, path))
        else:
            entries.append(f"{path}:{format_leaf(value)}")
    return entries
