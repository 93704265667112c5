"""
Stubdeck Application State

Bundles the shared mutable state: endpoint registry, TLS provisioner,
server settings and the listener lifecycle manager.
"""

import atexit
import logging
import threading
from dataclasses import replace
from typing import Optional

from .common.config import AppConfig
from .engine import EndpointRegistry, ListenerLifecycleManager, TlsProvisioner
from .errors import StubdeckError
from .models import ServerSettings

logger = logging.getLogger(__name__)


class SettingsStore:
    """Lock-guarded holder for the current ServerSettings (last writer wins)."""

    def __init__(self, settings: Optional[ServerSettings] = None):
        self._lock = threading.Lock()
        self._settings = settings or ServerSettings()

    def get(self) -> ServerSettings:
        with self._lock:
            return replace(self._settings)

    def set(self, settings: ServerSettings) -> None:
        with self._lock:
            self._settings = replace(settings)


class AppState:
    """
    Everything a Stubdeck session owns.

    Example:
        state = AppState(AppConfig())
        state.registry.add('GET', '/health', '{"ok":true}')
        state.lifecycle.start(3000, '127.0.0.1')
        ...
        state.shutdown()
    """

    def __init__(self, config: Optional[AppConfig] = None):
        self.config = config or AppConfig()

        self.registry = EndpointRegistry()
        self.tls = TlsProvisioner(temp_dir=self.config.resolve_temp_dir())
        self.settings = SettingsStore(ServerSettings(
            port=self.config.default_port,
            bind_addr=self.config.default_bind_addr,
            enable_tls=False
        ))
        self.lifecycle = ListenerLifecycleManager(
            self.registry,
            self.tls,
            restart_on_start=self.config.restart_on_start,
            restart_grace_ms=self.config.restart_grace_ms,
            cors_enabled=self.config.cors_enabled,
            log_level=self.config.log_level,
            access_log=self.config.access_log,
            backlog=self.config.backlog
        )

        if self.config.cleanup_on_exit:
            atexit.register(self.shutdown)

    def shutdown(self) -> None:
        """Stop any running listener and remove owned temp certificates."""
        if self.lifecycle.is_running:
            try:
                self.lifecycle.stop()
            except StubdeckError as e:
                logger.warning(f"Error stopping server during shutdown: {e}")
        self.tls.cleanup_ephemeral()
