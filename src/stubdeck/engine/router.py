"""
Stubdeck Request Router

Exact-match routing of an incoming (method, path) against a registry
snapshot. Pure function, no I/O and no locking.

Rules:
- path must be byte-for-byte equal (no wildcards, no trailing-slash folding)
- method compares case-insensitively, and only GET/POST/PUT/DELETE/PATCH
  can ever match
- the first matching entry in registry order wins
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from ..models import Endpoint

SUPPORTED_METHODS = frozenset({'GET', 'POST', 'PUT', 'DELETE', 'PATCH'})

CONTENT_TYPE = "application/json"
NOT_FOUND_STATUS = 404
NOT_FOUND_BODY = '{"error": "Endpoint not found"}'

# Statuses for which HTTP forbids a message body
_BODYLESS_STATUSES = frozenset({204, 304})


@dataclass(frozen=True)
class RouteResult:
    """Outcome of routing a request."""

    status: int
    body: str
    delay_ms: int = 0
    endpoint: Optional[Endpoint] = None
    content_type: str = CONTENT_TYPE

    @property
    def matched(self) -> bool:
        return self.endpoint is not None


def method_matches(request_method: str, endpoint_method: str) -> bool:
    """True if the endpoint's verb is supported and equals the request verb."""
    wanted = endpoint_method.upper()
    if wanted not in SUPPORTED_METHODS:
        return False
    return request_method.upper() == wanted


def find_endpoint(method: str, path: str, endpoints: Sequence[Endpoint]) -> Optional[Endpoint]:
    """Return the first endpoint matching ``method`` and ``path``, or None."""
    for endpoint in endpoints:
        if endpoint.path == path and method_matches(method, endpoint.method):
            return endpoint
    return None


def allows_body(status: int, method: str = "GET") -> bool:
    """Whether a response with ``status`` to ``method`` may carry a body."""
    if method.upper() == 'HEAD':
        return False
    return status not in _BODYLESS_STATUSES


def route(method: str, path: str, endpoints: Sequence[Endpoint]) -> RouteResult:
    """
    Route a request against a registry snapshot.

    Args:
        method: Request HTTP verb
        path: Request path (no query string)
        endpoints: Registry snapshot in routing order

    Returns:
        RouteResult carrying the configured status/body/delay of the first
        matching endpoint, or the fixed 404 not-found result
    """
    endpoint = find_endpoint(method, path, endpoints)
    if endpoint is None:
        return RouteResult(status=NOT_FOUND_STATUS, body=NOT_FOUND_BODY)

    return RouteResult(
        status=endpoint.status,
        body=endpoint.response,
        delay_ms=max(endpoint.delay, 0),
        endpoint=endpoint
    )
