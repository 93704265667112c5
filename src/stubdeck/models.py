"""
Stubdeck Data Model

Plain dataclasses exchanged between the registry, the lifecycle manager,
the project codec and the command surface.

Dictionary forms use the field names of the project file format
(``bindAddr``, ``certPath``, ...), so ``to_dict``/``from_dict`` are the
single place where the on-disk naming lives.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .errors import ValidationError

DEFAULT_STATUS = 200
# Final responses only; 1xx cannot be sent as a mock response
MIN_STATUS = 200
MAX_STATUS = 599
DEFAULT_PORT = 3000
DEFAULT_BIND_ADDR = "127.0.0.1"


def new_endpoint_id() -> str:
    """Generate a fresh, never-reused endpoint identifier."""
    return str(uuid.uuid4())


def _require(data: Dict[str, Any], key: str, kind, where: str):
    if key not in data:
        raise ValidationError(f"{where}: missing field '{key}'")
    value = data[key]
    # bool is an int subclass; never accept it where a number is expected
    if kind is int and isinstance(value, bool):
        raise ValidationError(f"{where}: field '{key}' must be an integer")
    if not isinstance(value, kind):
        raise ValidationError(f"{where}: field '{key}' has wrong type ({type(value).__name__})")
    return value


def _optional_int(data: Dict[str, Any], key: str, default: int, where: str) -> int:
    if data.get(key) is None:
        return default
    return _require(data, key, int, where)


def validate_status(status: Any, where: str = 'endpoint') -> int:
    """Check that ``status`` is an integer HTTP status a mock may answer with."""
    if isinstance(status, bool) or not isinstance(status, int):
        raise ValidationError(f"{where}: status must be an integer")
    if not MIN_STATUS <= status <= MAX_STATUS:
        raise ValidationError(f"{where}: status must be between {MIN_STATUS} and {MAX_STATUS}")
    return status


@dataclass(frozen=True)
class Endpoint:
    """A single mock endpoint definition. Immutable once created."""

    id: str
    method: str
    path: str
    response: str
    status: int = DEFAULT_STATUS
    delay: int = 0  # milliseconds

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'method': self.method,
            'path': self.path,
            'status': self.status,
            'delay': self.delay,
            'response': self.response,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Endpoint':
        """Create Endpoint from dictionary. Missing status/delay fall back to defaults."""
        if not isinstance(data, dict):
            raise ValidationError("endpoint: expected an object")
        return cls(
            id=_require(data, 'id', str, 'endpoint'),
            method=_require(data, 'method', str, 'endpoint'),
            path=_require(data, 'path', str, 'endpoint'),
            response=_require(data, 'response', str, 'endpoint'),
            status=validate_status(_optional_int(data, 'status', DEFAULT_STATUS, 'endpoint')),
            delay=_optional_int(data, 'delay', 0, 'endpoint'),
        )


@dataclass(frozen=True)
class TlsConfig:
    """Filesystem locations of a PEM certificate and its private key."""

    cert_path: str
    key_path: str

    def to_dict(self) -> Dict[str, Any]:
        return {'certPath': self.cert_path, 'keyPath': self.key_path}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TlsConfig':
        if not isinstance(data, dict):
            raise ValidationError("tlsConfig: expected an object or null")
        return cls(
            cert_path=_require(data, 'certPath', str, 'tlsConfig'),
            key_path=_require(data, 'keyPath', str, 'tlsConfig'),
        )


@dataclass
class ServerSettings:
    """Listener configuration as edited by the user."""

    port: int = DEFAULT_PORT
    bind_addr: str = DEFAULT_BIND_ADDR
    enable_tls: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'port': self.port,
            'bindAddr': self.bind_addr,
            'enableTls': self.enable_tls,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ServerSettings':
        if not isinstance(data, dict):
            raise ValidationError("settings: expected an object")
        return cls(
            port=_require(data, 'port', int, 'settings'),
            bind_addr=_require(data, 'bindAddr', str, 'settings'),
            enable_tls=_require(data, 'enableTls', bool, 'settings'),
        )


@dataclass(frozen=True)
class ServerStatus:
    """Point-in-time view of the listener slot."""

    running: bool
    port: Optional[int] = None
    is_tls: Optional[bool] = None
    bind_addr: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        if not self.running:
            return {'running': False}
        return {
            'running': True,
            'port': self.port,
            'is_tls': self.is_tls,
            'bind_addr': self.bind_addr,
        }


@dataclass
class ProjectData:
    """
    Snapshot of the complete mutable state, the unit of save/load.

    Example:
        data = ProjectData(name='demo', endpoints=registry.list())
        text = json.dumps(data.to_dict())
    """

    name: str
    last_saved: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    endpoints: List[Endpoint] = field(default_factory=list)
    settings: ServerSettings = field(default_factory=ServerSettings)
    tls_config: Optional[TlsConfig] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'lastSaved': self.last_saved,
            'endpoints': [e.to_dict() for e in self.endpoints],
            'settings': self.settings.to_dict(),
            'tlsConfig': self.tls_config.to_dict() if self.tls_config else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProjectData':
        """
        Create ProjectData from a parsed project document.

        Raises:
            ValidationError: If a required field is missing or mistyped
        """
        if not isinstance(data, dict):
            raise ValidationError("project: expected a JSON object")

        endpoints = _require(data, 'endpoints', list, 'project')
        tls_data = data.get('tlsConfig')

        return cls(
            name=_require(data, 'name', str, 'project'),
            last_saved=_require(data, 'lastSaved', str, 'project'),
            endpoints=[Endpoint.from_dict(e) for e in endpoints],
            settings=ServerSettings.from_dict(_require(data, 'settings', dict, 'project')),
            tls_config=TlsConfig.from_dict(tls_data) if tls_data is not None else None,
        )
