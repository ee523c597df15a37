"""Transport layer — How searchsync reaches the search engine.

``Transport`` is the abstract interface; ``HttpTransport`` is the built-in
httpx implementation for Elasticsearch-compatible REST APIs. Implement
``Transport`` to plug in another client.
"""

from searchsync.transport.base import Transport, TransportHealth
from searchsync.transport.http import HttpTransport

__all__ = ["HttpTransport", "Transport", "TransportHealth"]
