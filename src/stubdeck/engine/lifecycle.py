"""
Stubdeck Listener Lifecycle

Owns the single listener slot and drives uvicorn in a background thread.

States are Idle (no ServerHandle) and Running (one ServerHandle). A start
while Running signals the current listener, waits a fixed grace period for
its socket to be released, then binds the new one.

The socket is bound and put into listen mode synchronously inside
``start()`` and then handed to uvicorn, so bind failures surface to the
caller instead of dying inside the server thread.
"""

import logging
import socket
import sys
import threading
import time
from typing import Optional

import uvicorn

from ..errors import (
    AlreadyRunningError,
    BindError,
    NotRunningError,
    ShutdownChannelUnavailableError,
    TlsNotConfiguredError,
)
from ..models import ServerStatus, TlsConfig
from .app import create_app
from .registry import EndpointRegistry
from .tls import TlsProvisioner, load_tls_material

logger = logging.getLogger(__name__)

DEFAULT_RESTART_GRACE_MS = 300
DEFAULT_BACKLOG = 2048


class ShutdownSignal:
    """
    One-shot shutdown trigger for a running uvicorn server.

    Firing sets ``should_exit``; uvicorn then stops accepting, lets
    in-flight requests finish and closes the socket.
    """

    def __init__(self, server: uvicorn.Server):
        self._server = server
        self._lock = threading.Lock()
        self._fired = False

    @property
    def fired(self) -> bool:
        with self._lock:
            return self._fired

    def send(self) -> bool:
        """Fire the signal. Returns False if it had already been fired."""
        with self._lock:
            if self._fired:
                return False
            self._fired = True
        self._server.should_exit = True
        return True


class ServerHandle:
    """The currently running listener."""

    def __init__(
        self,
        shutdown_signal: ShutdownSignal,
        port: int,
        is_tls: bool,
        bind_addr: str,
        thread: threading.Thread
    ):
        self.shutdown_signal: Optional[ShutdownSignal] = shutdown_signal
        self.port = port
        self.is_tls = is_tls
        self.bind_addr = bind_addr
        self.thread = thread

    @property
    def protocol(self) -> str:
        return "https" if self.is_tls else "http"

    def take_shutdown_signal(self) -> Optional[ShutdownSignal]:
        signal, self.shutdown_signal = self.shutdown_signal, None
        return signal


def listener_url(protocol: str, host: str, port: int) -> str:
    """URL for a listener, with IPv6 literals bracketed."""
    if ':' in host:
        host = f"[{host}]"
    return f"{protocol}://{host}:{port}"


def bind_socket(host: str, port: int, backlog: int = DEFAULT_BACKLOG) -> socket.socket:
    """
    Create a listening TCP socket on ``host:port``.

    Raises:
        BindError: If the address is invalid or the port is unavailable
    """
    address = f"{host}:{port}"
    family = socket.AF_INET6 if ':' in host else socket.AF_INET

    sock = socket.socket(family, socket.SOCK_STREAM)
    try:
        if sys.platform != 'win32':
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
        sock.listen(backlog)
    except (OSError, OverflowError, TypeError, ValueError) as e:
        sock.close()
        raise BindError(address, str(e)) from e

    sock.set_inheritable(True)
    return sock


class ListenerLifecycleManager:
    """
    Start/stop/restart of the mock listener over a shared registry.

    All access to the handle slot goes through ``start``, ``stop`` and
    ``status``, which take the slot lock internally.

    Example:
        manager = ListenerLifecycleManager(registry, tls)
        print(manager.start(3000, '127.0.0.1', enable_tls=False))
        manager.stop()
    """

    def __init__(
        self,
        registry: EndpointRegistry,
        tls: TlsProvisioner,
        restart_on_start: bool = True,
        restart_grace_ms: int = DEFAULT_RESTART_GRACE_MS,
        cors_enabled: bool = True,
        log_level: str = "info",
        access_log: bool = False,
        backlog: int = DEFAULT_BACKLOG
    ):
        """
        Initialize lifecycle manager.

        Args:
            registry: Registry every listener reads live
            tls: Provider of the TLS config, read fresh at each start
            restart_on_start: Restart when started while running (otherwise
                raise AlreadyRunningError)
            restart_grace_ms: Fixed wait after signalling the old listener
            cors_enabled: Permissive CORS on the mock surface
            log_level: uvicorn log level
            access_log: Enable uvicorn access logging
            backlog: Listen backlog for the bound socket
        """
        self.registry = registry
        self.tls = tls
        self.restart_on_start = restart_on_start
        self.restart_grace_ms = restart_grace_ms
        self.cors_enabled = cors_enabled
        self.log_level = log_level
        self.access_log = access_log
        self.backlog = backlog

        self._lock = threading.Lock()
        self._handle: Optional[ServerHandle] = None

    def start(self, port: int, bind_addr: str, enable_tls: bool = False) -> str:
        """
        Start a listener, replacing the running one if any.

        Args:
            port: TCP port (0 picks an ephemeral port)
            bind_addr: Host or IP to bind
            enable_tls: Serve HTTPS using the configured TlsConfig

        Returns:
            Confirmation message with protocol, address and bound port

        Raises:
            AlreadyRunningError: Running and restart_on_start is disabled
            TlsNotConfiguredError: TLS requested without a TlsConfig
            TlsLoadError: Certificate/key unreadable or malformed
            BindError: Address invalid or port in use
        """
        with self._lock:
            if self._handle is not None and not self.restart_on_start:
                raise AlreadyRunningError()

            # Resolve TLS before touching the running listener
            tls_config: Optional[TlsConfig] = None
            if enable_tls:
                tls_config = self.tls.get()
                if tls_config is None:
                    raise TlsNotConfiguredError()
                load_tls_material(tls_config)

            if self._handle is not None:
                previous = self._handle
                self._handle = None
                logger.info(f"Restarting: stopping listener on {previous.bind_addr}:{previous.port}")
                signal = previous.take_shutdown_signal()
                if signal is not None:
                    signal.send()
                time.sleep(self.restart_grace_ms / 1000)

            try:
                sock = bind_socket(bind_addr, port, self.backlog)
            except BindError as e:
                logger.warning(str(e))
                raise

            bound_port = sock.getsockname()[1]
            server = uvicorn.Server(self._make_config(bind_addr, bound_port, tls_config))
            thread = threading.Thread(
                target=self._serve,
                args=(server, sock),
                name=f"stubdeck-listener-{bound_port}",
                daemon=True
            )
            thread.start()

            self._handle = ServerHandle(
                shutdown_signal=ShutdownSignal(server),
                port=bound_port,
                is_tls=enable_tls,
                bind_addr=bind_addr,
                thread=thread
            )

        protocol = "https" if enable_tls else "http"
        message = f"Server started on {listener_url(protocol, bind_addr, bound_port)}"
        logger.info(message)
        return message

    def stop(self) -> str:
        """
        Signal the running listener to shut down gracefully.

        Returns:
            Confirmation message

        Raises:
            NotRunningError: No listener is active
            ShutdownChannelUnavailableError: The handle's signal was already used
        """
        with self._lock:
            handle = self._handle
            if handle is None:
                raise NotRunningError()
            self._handle = None

        signal = handle.take_shutdown_signal()
        if signal is None or not signal.send():
            raise ShutdownChannelUnavailableError()

        logger.info(f"Server on {listener_url(handle.protocol, handle.bind_addr, handle.port)} stopped")
        return "Server stopped"

    def status(self) -> ServerStatus:
        with self._lock:
            handle = self._handle
            if handle is None:
                return ServerStatus(running=False)
            return ServerStatus(
                running=True,
                port=handle.port,
                is_tls=handle.is_tls,
                bind_addr=handle.bind_addr
            )

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._handle is not None

    def _make_config(self, host: str, port: int, tls_config: Optional[TlsConfig]) -> uvicorn.Config:
        ssl_params = {}
        if tls_config is not None:
            ssl_params = {
                'ssl_certfile': tls_config.cert_path,
                'ssl_keyfile': tls_config.key_path,
            }
        return uvicorn.Config(
            create_app(self.registry, cors_enabled=self.cors_enabled),
            host=host,
            port=port,
            log_level=self.log_level,
            access_log=self.access_log,
            log_config=None,
            lifespan="off",
            **ssl_params
        )

    @staticmethod
    def _serve(server: uvicorn.Server, sock: socket.socket) -> None:
        try:
            server.run(sockets=[sock])
        except Exception as e:
            logger.error(f"Listener terminated with error: {e}")
        finally:
            sock.close()
