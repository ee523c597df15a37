"""Base transport — Abstract interface for talking to the search engine.

The transport owns connections, authentication and timeouts. searchsync
itself only shapes requests and interprets responses; every network call
goes through ``Transport.request``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field


class TransportHealth(BaseModel):
    """Health status of the search backend as seen by a transport."""

    status: str = Field(description="Health status: healthy, degraded, unhealthy")
    latency_ms: int = Field(default=0, description="Latency of last health check in ms")
    last_check: str | None = Field(default=None, description="ISO timestamp of last health check")
    message: str | None = Field(default=None, description="Additional health message")


class Transport(ABC):
    """Abstract base class for search engine transports.

    Implementations must:
      - send exactly one request per ``request()`` call, never retrying
      - raise ``BackendError`` for non-2xx answers, connection failures
        and timeouts
      - return the parsed JSON body (``{}`` for empty bodies)
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Open connections. Called once before the first request."""

    @abstractmethod
    async def shutdown(self) -> None:
        """Close connections and release resources."""

    @abstractmethod
    async def request(
        self,
        method: str,
        path: str,
        *,
        query: Mapping[str, Any] | None = None,
        json_body: Any = None,
        body: str | None = None,
    ) -> dict[str, Any]:
        """Send one request to the search engine.

        Args:
            method: HTTP method (``"get"``, ``"put"``, ...; case-insensitive).
            path: Absolute path, e.g. ``"/things/thing/_search"``.
            query: URL query-string parameters.
            json_body: Body to serialize as JSON.
            body: Pre-serialized body (e.g. NDJSON for bulk requests).
                Mutually exclusive with ``json_body``.

        Returns:
            The parsed JSON response.

        Raises:
            BackendError: On non-2xx status, connection failure or timeout.
        """

    @abstractmethod
    async def health_check(self) -> TransportHealth:
        """Check the health of the search backend."""

    async def __aenter__(self) -> Transport:
        await self.initialize()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.shutdown()
