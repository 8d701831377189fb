"""
Sharex SDK error types.
"""

from typing import Any, Optional


class SharexError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class ConfigurationError(SharexError):
    """Invalid constructor options. Raised while building the SDK."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("configuration_error", message, details)


class ValidationError(SharexError):
    """Invalid operation arguments. Raised before anything is written."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("validation_error", message, details)


class ConnectionError(SharexError):
    """Transport failure. Only ever delivered through the `error` lifecycle event."""

    def __init__(self, message: str):
        super().__init__("connection_error", message)


class NotInitializedError(SharexError):
    def __init__(self, message: str = "Connection not initialized. Call init() first."):
        super().__init__("not_initialized", message)
