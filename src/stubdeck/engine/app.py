"""
Stubdeck Mock Application

FastAPI application serving the endpoints of a live EndpointRegistry.

The app holds a reference to the registry, not a copy: endpoints added or
deleted while a listener is running are visible to the next request.
"""

import asyncio
import logging

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from .registry import EndpointRegistry
from .router import CONTENT_TYPE, NOT_FOUND_BODY, NOT_FOUND_STATUS, allows_body, route

logger = logging.getLogger(__name__)

# Verbs accepted by the catch-all route; the router decides what matches
ROUTED_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"]


def raw_request_path(scope) -> str:
    """Request path exactly as sent, percent-escapes included."""
    raw_path = scope.get("raw_path")
    if raw_path:
        return raw_path.split(b"?", 1)[0].decode("latin-1")
    return scope["path"]


def not_found_response() -> Response:
    return Response(
        content=NOT_FOUND_BODY,
        status_code=NOT_FOUND_STATUS,
        media_type=CONTENT_TYPE
    )


def create_app(registry: EndpointRegistry, cors_enabled: bool = True) -> FastAPI:
    """
    Create the mock FastAPI application.

    Args:
        registry: Shared registry read on every request
        cors_enabled: Add permissive CORS headers to every response

    Returns:
        FastAPI application instance
    """
    app = FastAPI(
        title="Stubdeck Mock Server",
        description="Serves user-defined mock endpoints",
        docs_url=None,
        redoc_url=None,
        openapi_url=None
    )

    if cors_enabled:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=["*"]
        )

    # Routing errors (unknown verb -> 405, etc.) never reach mock clients
    @app.exception_handler(StarletteHTTPException)
    async def routing_error(request: Request, exc: StarletteHTTPException):
        logger.debug(f"Routing error {exc.status_code} for {request.method} {request.url.path}")
        return not_found_response()

    @app.api_route("/{path:path}", methods=ROUTED_METHODS)
    async def mock_request(request: Request, path: str):
        """Handle incoming requests and serve mock responses."""
        return await handle_request(registry, request)

    return app


async def handle_request(registry: EndpointRegistry, request: Request) -> Response:
    """
    Route one request and build its response.

    The configured delay is awaited after the registry snapshot is taken,
    so no lock is held while sleeping.
    """
    method = request.method
    path = raw_request_path(request.scope)

    result = route(method, path, registry.list())

    if result.matched:
        logger.debug(f"Matched: {method} {path} -> {result.status} (endpoint {result.endpoint.id})")
    else:
        logger.debug(f"No endpoint for {method} {path}")

    if result.delay_ms > 0:
        await asyncio.sleep(result.delay_ms / 1000)

    body = result.body if allows_body(result.status, method) else b""
    return Response(
        content=body,
        status_code=result.status,
        media_type=result.content_type
    )
