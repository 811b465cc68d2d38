"""Exceptions raised by mapexplorer.

Only transport-level failures and missing configuration are raised.
Everything recoverable inside a stream (undecodable bytes, malformed
payloads, unparseable call arguments) is logged and skipped instead.
"""

from __future__ import annotations


class MapExplorerError(Exception):
    """Base class for all mapexplorer errors."""


class ConfigurationError(MapExplorerError):
    """Raised when the client is missing required settings."""


class TransportError(MapExplorerError):
    """The chat-completion request failed before or while streaming.

    Args:
        message: Human-readable description of the failure.
        status_code: HTTP status returned by the service, if any.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code

    def __str__(self) -> str:
        base = super().__str__()
        if self.status_code is not None:
            return f"{base} (status {self.status_code})"
        return base
