"""
Stubdeck Engine

The mock server core.

This module provides:
- Endpoint registry shared with running listeners
- Exact-match request router
- FastAPI application factory
- Listener lifecycle (start/stop/restart, HTTP and TLS)
- TLS material provisioning (user-supplied or ephemeral self-signed)
"""

from .registry import EndpointRegistry
from .router import RouteResult, route, SUPPORTED_METHODS, NOT_FOUND_BODY
from .app import create_app
from .lifecycle import ListenerLifecycleManager, ServerHandle, ShutdownSignal, bind_socket, listener_url
from .tls import TlsProvisioner, load_tls_material, generate_self_signed, default_temp_dir

__all__ = [
    # Registry
    'EndpointRegistry',

    # Router
    'RouteResult',
    'route',
    'SUPPORTED_METHODS',
    'NOT_FOUND_BODY',

    # Application
    'create_app',

    # Lifecycle
    'ListenerLifecycleManager',
    'ServerHandle',
    'ShutdownSignal',
    'bind_socket',
    'listener_url',

    # TLS
    'TlsProvisioner',
    'load_tls_material',
    'generate_self_signed',
    'default_temp_dir',
]
