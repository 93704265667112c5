"""
Stubdeck Errors

Exception hierarchy shared by the engine and the command surface.

Every error carries a human-readable message; ``str(exc)`` is what the
command surface hands back to its caller.
"""


class StubdeckError(Exception):
    """Base class for all Stubdeck failures."""


class ValidationError(StubdeckError):
    """Malformed input from a caller (command payload or project document)."""


class AlreadyRunningError(StubdeckError):
    """A listener is active and restart-on-start is disabled."""

    def __init__(self, message: str = "Server is already running"):
        super().__init__(message)


class NotRunningError(StubdeckError):
    """Stop requested while no listener is active."""

    def __init__(self, message: str = "Server is not running"):
        super().__init__(message)


class BindError(StubdeckError):
    """Listener could not bind to the requested address/port."""

    def __init__(self, address: str, reason: str):
        self.address = address
        self.reason = reason
        super().__init__(f"Failed to bind to {address}: {reason}")


class TlsNotConfiguredError(StubdeckError):
    """TLS requested but no certificate/key pair is configured."""

    def __init__(self, message: str = "TLS is enabled but no certificate configured"):
        super().__init__(message)


class TlsLoadError(StubdeckError):
    """Certificate or key could not be read or parsed."""


class ProjectIOError(StubdeckError):
    """Reading or writing a project or certificate file failed."""


class ShutdownChannelUnavailableError(StubdeckError):
    """The running listener's shutdown signal was already consumed."""

    def __init__(self, message: str = "Server shutdown channel not available"):
        super().__init__(message)
