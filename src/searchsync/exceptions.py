"""Exception hierarchy for searchsync."""

from __future__ import annotations

from typing import Any


class SearchSyncError(Exception):
    """Base exception for all searchsync errors."""


class ConfigurationError(SearchSyncError):
    """Raised when index or application configuration is invalid."""


class InvalidFacetSpec(SearchSyncError):
    """Raised when a facet request is malformed.

    Always raised while building the request, before anything is sent.
    """


class BackendError(SearchSyncError):
    """Raised when the search backend answers non-2xx or cannot be reached.

    Attributes:
        status: HTTP status code, or ``None`` for connection failures and timeouts.
        message: Error description from the backend or the HTTP client.
    """

    def __init__(self, status: int | None, message: str) -> None:
        self.status = status
        self.message = message
        super().__init__(f"[{status}] {message}" if status is not None else message)

    @property
    def not_found(self) -> bool:
        return self.status == 404


class SerializationError(SearchSyncError):
    """Raised when a record cannot be projected into its index document."""

    def __init__(self, identifier: Any, message: str) -> None:
        self.identifier = identifier
        super().__init__(f"Unable to serialize record {identifier!r}: {message}")
