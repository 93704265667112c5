"""
Stubdeck Command Surface

Transport-independent operations exposed to a UI or RPC layer.

Each method returns a success payload or raises a StubdeckError. The
``invoke`` dispatcher is the seam for a transport: it takes a command name
and a payload dict and always returns a CommandResponse whose ``error`` is
the failure message.

Collaborators (duck-typed):
- dialogs: ``pick_file() -> Optional[str]`` and
  ``save_file(suggested_name) -> Optional[str]``
- interfaces: ``list_local_addresses() -> List[Tuple[str, str]]``
"""

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from .common.network import LocalAddressProvider
from .errors import StubdeckError, ValidationError
from .models import Endpoint, ProjectData, ServerSettings, ServerStatus, TlsConfig, validate_status
from .project import ProjectStateCodec, read_project, write_project
from .state import AppState

logger = logging.getLogger(__name__)

COMMAND_NAMES = (
    'add_endpoint',
    'get_endpoints',
    'delete_endpoint',
    'start_server',
    'stop_server',
    'get_server_status',
    'set_tls_config',
    'get_tls_config',
    'clear_tls_config',
    'get_network_interfaces',
    'generate_temp_certificate',
    'cleanup_temp_certificates',
    'export_project',
    'save_project',
    'load_project',
    'set_project_state',
)


@dataclass
class CommandResponse:
    """Result of a dispatched command."""

    ok: bool
    result: Any = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        if self.ok:
            return {'ok': True, 'result': self.result}
        return {'ok': False, 'error': self.error}


def to_payload(value: Any) -> Any:
    """Convert command results into JSON-ready structures."""
    if hasattr(value, 'to_dict'):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [to_payload(v) for v in value]
    return value


def _check_int(name: str, value: Any, low: int, high: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer")
    if not low <= value <= high:
        raise ValidationError(f"{name} must be between {low} and {high}")
    return value


def _check_str(name: str, value: Any, allow_empty: bool = True) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be a string")
    if not allow_empty and not value.strip():
        raise ValidationError(f"{name} must not be empty")
    return value


class Commands:
    """
    Command surface over an AppState.

    Example:
        commands = Commands(AppState())
        commands.add_endpoint('GET', '/health', '{"ok":true}')
        print(commands.start_server(3000, '127.0.0.1', False))

        # Through the dispatcher
        response = commands.invoke('get_server_status')
        print(response.to_dict())
    """

    def __init__(self, state: AppState, dialogs: Any = None, interfaces: Any = None):
        """
        Initialize command surface.

        Args:
            state: Shared application state
            dialogs: File picker collaborator (optional)
            interfaces: Local address enumerator (defaults to LocalAddressProvider)
        """
        self.state = state
        self.dialogs = dialogs
        self.interfaces = interfaces or LocalAddressProvider()
        self.codec = ProjectStateCodec(state.registry, state.tls, state.settings)

    # Endpoints

    def add_endpoint(
        self,
        method: str,
        path: str,
        response: str,
        status: int = 200,
        delay: int = 0
    ) -> Endpoint:
        _check_str('method', method, allow_empty=False)
        _check_str('path', path)
        _check_str('response', response)
        validate_status(status, 'status')
        _check_int('delay', delay, 0, 2 ** 31 - 1)
        return self.state.registry.add(method, path, response, status=status, delay=delay)

    def get_endpoints(self) -> List[Endpoint]:
        return self.state.registry.list()

    def delete_endpoint(self, id: str) -> None:
        self.state.registry.delete(id)

    # Server

    def start_server(self, port: int, bind_addr: str, enable_tls: bool = False) -> str:
        _check_int('port', port, 0, 65535)
        _check_str('bind_addr', bind_addr, allow_empty=False)
        if not isinstance(enable_tls, bool):
            raise ValidationError("enable_tls must be a boolean")

        message = self.state.lifecycle.start(port, bind_addr, enable_tls)
        self.state.settings.set(ServerSettings(port=port, bind_addr=bind_addr, enable_tls=enable_tls))
        return message

    def stop_server(self) -> str:
        return self.state.lifecycle.stop()

    def get_server_status(self) -> ServerStatus:
        return self.state.lifecycle.status()

    # TLS

    def set_tls_config(self, cert_path: str, key_path: str) -> str:
        _check_str('cert_path', cert_path)
        _check_str('key_path', key_path)
        self.state.tls.set(cert_path, key_path)
        return "TLS configuration saved"

    def get_tls_config(self) -> Optional[TlsConfig]:
        return self.state.tls.get()

    def clear_tls_config(self) -> str:
        self.state.tls.clear()
        return "TLS configuration cleared"

    def generate_temp_certificate(self) -> TlsConfig:
        return self.state.tls.generate_ephemeral()

    def cleanup_temp_certificates(self) -> str:
        self.state.tls.cleanup_ephemeral()
        return "Temporary certificates cleaned up"

    def get_network_interfaces(self) -> List[Dict[str, str]]:
        return [
            {'name': name, 'ip': ip}
            for name, ip in self.interfaces.list_local_addresses()
        ]

    # Projects

    def export_project(self, name: str) -> ProjectData:
        _check_str('name', name)
        return self.codec.export_state(name)

    def save_project(self, data: Union[ProjectData, Dict[str, Any]], filename: str) -> Optional[str]:
        """
        Ask the dialogs collaborator for a path and write ``data`` there.

        Returns:
            The written path, or None if the user cancelled
        """
        project = self._coerce_project(data)
        path = self._require_dialogs().save_file(filename)
        if not path:
            return None
        return str(write_project(path, project))

    def load_project(self) -> Optional[ProjectData]:
        """
        Ask the dialogs collaborator for a file and parse it.

        The parsed project is returned, not applied; see set_project_state.
        """
        path = self._require_dialogs().pick_file()
        if not path:
            return None
        return read_project(path)

    def set_project_state(self, project_data: Union[ProjectData, Dict[str, Any]]) -> str:
        project = self._coerce_project(project_data)
        self.codec.import_state(project)
        return "Project state applied"

    # Dispatch

    def invoke(self, command: str, payload: Optional[Dict[str, Any]] = None) -> CommandResponse:
        """
        Run ``command`` with keyword arguments from ``payload``.

        Never raises for command failures; they come back as
        ``CommandResponse(ok=False, error=...)``.
        """
        if command not in COMMAND_NAMES:
            return CommandResponse(ok=False, error=f"Unknown command: {command}")

        handler = getattr(self, command)
        kwargs = payload or {}
        try:
            inspect.signature(handler).bind(**kwargs)
        except TypeError as e:
            return CommandResponse(ok=False, error=f"Invalid arguments for {command}: {e}")

        try:
            result = handler(**kwargs)
        except StubdeckError as e:
            logger.warning(f"Command {command} failed: {e}")
            return CommandResponse(ok=False, error=str(e))

        return CommandResponse(ok=True, result=to_payload(result))

    def _require_dialogs(self):
        if self.dialogs is None:
            raise ValidationError("No file dialog available")
        return self.dialogs

    @staticmethod
    def _coerce_project(data: Union[ProjectData, Dict[str, Any]]) -> ProjectData:
        if isinstance(data, ProjectData):
            return data
        return ProjectData.from_dict(data)
