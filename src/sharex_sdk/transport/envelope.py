"""
Envelope construction and parsing.
"""

import json
import logging
from typing import Any, Optional

import pydantic

from sharex_sdk.models.envelope import Envelope

logger = logging.getLogger(__name__)


def build_envelope(
    action: str,
    data: Any = None,
    package_name: Optional[str] = None,
    request_id: Optional[str] = None,
) -> str:
    """Build an outbound frame. Only the fields that are given are serialised."""
    fields: dict[str, Any] = {"action": action}
    if data is not None:
        fields["data"] = data
    if package_name is not None:
        fields["package_name"] = package_name
    if request_id is not None:
        fields["request_id"] = request_id
    return Envelope(**fields).model_dump_json(exclude_unset=True)


def parse_envelope(raw: str) -> Optional[Envelope]:
    """Parse an inbound frame. Returns None for empty or invalid frames."""
    if not raw:
        return None
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError:
        logger.debug("Dropping frame that is not JSON: %.200s", raw)
        return None
    if not isinstance(decoded, dict):
        logger.debug("Dropping frame that is not an object: %.200s", raw)
        return None
    try:
        return Envelope.model_validate(decoded)
    except pydantic.ValidationError:
        logger.debug("Dropping frame without an action: %.200s", raw)
        return None
