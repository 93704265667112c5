"""
Stubdeck

Define HTTP mock endpoints at runtime and serve them from an in-process
server, optionally over TLS, with the whole setup savable as a project file.
"""

from .commands import Commands, CommandResponse
from .common import AppConfig, setup_logging
from .engine import EndpointRegistry, ListenerLifecycleManager, TlsProvisioner, route
from .errors import (
    StubdeckError,
    ValidationError,
    AlreadyRunningError,
    NotRunningError,
    BindError,
    TlsNotConfiguredError,
    TlsLoadError,
    ProjectIOError,
    ShutdownChannelUnavailableError,
)
from .models import Endpoint, TlsConfig, ServerSettings, ServerStatus, ProjectData
from .project import ProjectStateCodec
from .state import AppState

__all__ = [
    'AppState',
    'AppConfig',
    'Commands',
    'CommandResponse',
    'setup_logging',

    # Engine
    'EndpointRegistry',
    'ListenerLifecycleManager',
    'TlsProvisioner',
    'ProjectStateCodec',
    'route',

    # Models
    'Endpoint',
    'TlsConfig',
    'ServerSettings',
    'ServerStatus',
    'ProjectData',

    # Errors
    'StubdeckError',
    'ValidationError',
    'AlreadyRunningError',
    'NotRunningError',
    'BindError',
    'TlsNotConfiguredError',
    'TlsLoadError',
    'ProjectIOError',
    'ShutdownChannelUnavailableError',
]

__version__ = '1.0.0'
