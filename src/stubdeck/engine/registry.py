"""
Stubdeck Endpoint Registry

Ordered, thread-safe collection of endpoint definitions shared between the
command surface and every running request handler.

Insertion order is routing priority: the router walks ``list()`` front to
back and the first (method, path) match wins. Duplicate pairs are allowed.
"""

import logging
import threading
from typing import Iterable, List

from ..models import DEFAULT_STATUS, Endpoint, new_endpoint_id

logger = logging.getLogger(__name__)


class EndpointRegistry:
    """
    Mutable list of endpoints guarded by a lock.

    Readers receive snapshot copies, so iterating a result never holds the
    lock. Writers hold it only for the duration of the list mutation.

    Example:
        registry = EndpointRegistry()
        ep = registry.add('GET', '/health', '{"ok":true}')
        registry.delete(ep.id)
    """

    def __init__(self, endpoints: Iterable[Endpoint] = ()):
        self._lock = threading.Lock()
        self._endpoints: List[Endpoint] = list(endpoints)

    def add(
        self,
        method: str,
        path: str,
        response: str,
        status: int = DEFAULT_STATUS,
        delay: int = 0
    ) -> Endpoint:
        """
        Append a new endpoint with a fresh id.

        Args:
            method: HTTP verb (matched case-insensitively)
            path: Exact request path
            response: Raw body returned verbatim
            status: HTTP status code to return
            delay: Milliseconds to wait before responding

        Returns:
            The created Endpoint
        """
        endpoint = Endpoint(
            id=new_endpoint_id(),
            method=method,
            path=path,
            response=response,
            status=status,
            delay=delay
        )
        with self._lock:
            self._endpoints.append(endpoint)
        logger.debug(f"Added endpoint {endpoint.id}: {method} {path}")
        return endpoint

    def list(self) -> List[Endpoint]:
        """Snapshot copy of all endpoints in routing order."""
        with self._lock:
            return list(self._endpoints)

    def delete(self, endpoint_id: str) -> None:
        """Remove the endpoint with ``endpoint_id``. Unknown ids are ignored."""
        with self._lock:
            self._endpoints = [e for e in self._endpoints if e.id != endpoint_id]

    def replace_all(self, endpoints: Iterable[Endpoint]) -> None:
        """Bulk overwrite, used by project load."""
        # Materialize before locking so a failing iterable leaves state untouched
        new_endpoints = list(endpoints)
        with self._lock:
            self._endpoints = new_endpoints
        logger.debug(f"Registry replaced with {len(new_endpoints)} endpoints")

    def __len__(self) -> int:
        with self._lock:
            return len(self._endpoints)
