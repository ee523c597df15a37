"""HTTP transport — Talks to an Elasticsearch-compatible REST API via ``httpx``.

Usage::

    transport = HttpTransport(hosts=["http://localhost:9200"], timeout=10)
    await transport.initialize()
    response = await transport.request("get", "/things/thing/_search", json_body={...})
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import httpx

from searchsync.exceptions import BackendError, ConfigurationError
from searchsync.transport.base import Transport, TransportHealth

if TYPE_CHECKING:
    from searchsync.config.settings import TransportSettings

logger = logging.getLogger(__name__)


class HttpTransport(Transport):
    """Transport for Elasticsearch-style JSON-over-HTTP engines.

    Only the first host is used; node failover belongs to a load balancer
    in front of the cluster, not to this layer.

    Args:
        hosts: List of node URLs.
        username: Optional basic-auth username.
        password: Optional basic-auth password.
        timeout: HTTP request timeout in seconds.
        verify_certs: Whether to verify TLS certificates.
        **httpx_kwargs: Additional keyword arguments passed to ``httpx.AsyncClient``
            (e.g. ``transport=httpx.MockTransport(...)`` in tests).
    """

    def __init__(
        self,
        hosts: list[str] | None = None,
        username: str | None = None,
        password: str | None = None,
        timeout: float = 30.0,
        verify_certs: bool = True,
        **httpx_kwargs: Any,
    ) -> None:
        self._hosts = list(hosts) if hosts is not None else ["http://localhost:9200"]
        self._username = username
        self._password = password
        self._timeout = timeout
        self._verify_certs = verify_certs
        self._httpx_kwargs = httpx_kwargs
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_settings(cls, settings: TransportSettings, **httpx_kwargs: Any) -> HttpTransport:
        return cls(
            hosts=settings.hosts,
            username=settings.username,
            password=settings.password,
            timeout=settings.timeout,
            verify_certs=settings.verify_certs,
            **httpx_kwargs,
        )

    async def initialize(self) -> None:
        """Create the ``httpx.AsyncClient``."""
        if not self._hosts:
            raise ConfigurationError("At least one search backend host is required.")
        base_url = self._hosts[0].rstrip("/")

        auth = None
        if self._username and self._password:
            auth = httpx.BasicAuth(self._username, self._password)

        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(self._timeout),
            auth=auth,
            verify=self._verify_certs,
            **self._httpx_kwargs,
        )
        logger.info("Search transport ready for %s", base_url)

    async def shutdown(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    # ── Requests ─────────────────────────────────────────────────────────

    async def request(
        self,
        method: str,
        path: str,
        *,
        query: Mapping[str, Any] | None = None,
        json_body: Any = None,
        body: str | None = None,
    ) -> dict[str, Any]:
        if not self._client:
            raise BackendError(None, "Search transport not initialized.")
        if json_body is not None and body is not None:
            raise ValueError("Pass either json_body or body, not both.")

        content: str | None = body
        headers: dict[str, str] = {}
        if json_body is not None:
            content = json.dumps(json_body)
            headers["Content-Type"] = "application/json"
        elif body is not None:
            headers["Content-Type"] = "application/x-ndjson"

        method = method.upper()
        logger.debug("%s %s params=%s body=%s", method, path, dict(query or {}), content)

        try:
            resp = await self._client.request(
                method,
                path,
                params=dict(query) if query else None,
                content=content,
                headers=headers,
            )
        except httpx.HTTPError as e:
            raise BackendError(None, f"{method} {path} failed: {e}") from e

        if resp.is_error:
            raise BackendError(resp.status_code, self._error_message(resp))

        if not resp.content:
            return {}
        try:
            return dict(resp.json())
        except (json.JSONDecodeError, TypeError, ValueError) as e:
            raise BackendError(resp.status_code, f"Invalid JSON in response to {method} {path}") from e

    # ── Health ───────────────────────────────────────────────────────────

    async def health_check(self) -> TransportHealth:
        """Check cluster health via ``/_cluster/health``."""
        if not self._client:
            return TransportHealth(status="unhealthy", message="Client not initialized")

        try:
            start = time.monotonic()
            health = await self.request("get", "/_cluster/health")
            latency_ms = int((time.monotonic() - start) * 1000)

            status_map = {"green": "healthy", "yellow": "degraded", "red": "unhealthy"}

            return TransportHealth(
                status=status_map.get(health.get("status", "red"), "unhealthy"),
                latency_ms=latency_ms,
                last_check=datetime.now(UTC).isoformat(),
                message=f"Cluster: {health.get('cluster_name')}, Nodes: {health.get('number_of_nodes')}",
            )
        except BackendError as e:
            return TransportHealth(status="unhealthy", message=str(e))

    # ── Helpers ──────────────────────────────────────────────────────────

    @staticmethod
    def _error_message(resp: httpx.Response) -> str:
        """Pull the most specific error text the engine sent back."""
        try:
            data = resp.json()
        except ValueError:
            return resp.text or resp.reason_phrase
        if isinstance(data, dict):
            error = data.get("error")
            if isinstance(error, dict):
                return str(error.get("reason") or error.get("type") or error)
            if error:
                return str(error)
            if data.get("found") is False:
                return "not found"
        return resp.text or resp.reason_phrase
