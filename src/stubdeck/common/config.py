"""
Stubdeck Configuration

Application-level settings with defaults, loadable from YAML.

Example YAML:
    default_port: 8080
    restart_grace_ms: 500
    cors_enabled: false
    log_level: debug
"""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union, get_args, get_origin

import yaml

from ..engine.tls import default_temp_dir
from ..errors import ProjectIOError, ValidationError
from ..models import DEFAULT_BIND_ADDR, DEFAULT_PORT

# Inclusive bounds for numeric settings
_RANGES = {
    'default_port': (0, 65535),
    'restart_grace_ms': (0, None),
    'backlog': (1, None),
}


def _allowed_types(annotation) -> tuple:
    if get_origin(annotation) is Union:
        return get_args(annotation)
    return (annotation,)


@dataclass
class AppConfig:
    """Configuration for the Stubdeck engine."""

    # Listener defaults (seed the project's ServerSettings)
    default_port: int = DEFAULT_PORT
    default_bind_addr: str = DEFAULT_BIND_ADDR

    # Restart behavior
    restart_on_start: bool = True  # False -> AlreadyRunningError instead
    restart_grace_ms: int = 300  # Fixed wait for the old socket to release

    # Ephemeral certificates
    temp_namespace: str = "stubdeck"  # Directory name under the OS temp dir
    temp_dir: Optional[str] = None  # Full override of the temp directory
    cleanup_on_exit: bool = True

    # Mock surface
    cors_enabled: bool = True
    backlog: int = 2048

    # Logging
    log_level: str = "info"
    access_log: bool = False

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            allowed = _allowed_types(f.type)
            # bool is an int subclass; only accept it for bool fields
            if isinstance(value, bool) and bool not in allowed:
                raise ValidationError(f"config: '{f.name}' must not be a boolean")
            if not isinstance(value, allowed):
                raise ValidationError(
                    f"config: '{f.name}' has wrong type ({type(value).__name__})"
                )

        for name, (low, high) in _RANGES.items():
            value = getattr(self, name)
            if value < low or (high is not None and value > high):
                raise ValidationError(f"config: '{name}' out of range ({value})")

    def resolve_temp_dir(self) -> Path:
        """Directory that holds ephemeral certificate files."""
        if self.temp_dir:
            return Path(self.temp_dir)
        return default_temp_dir(self.temp_namespace)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AppConfig':
        """Create AppConfig from dictionary. Unknown keys are ignored."""
        if not isinstance(data, dict):
            raise ValidationError("config: expected a mapping")
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def from_yaml(cls, yaml_path: str) -> 'AppConfig':
        """
        Load configuration from a YAML file.

        Raises:
            ProjectIOError: If the file cannot be read
            ValidationError: If the YAML is malformed
        """
        try:
            with open(yaml_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise ProjectIOError(f"Failed to read config {yaml_path}: {e}") from e
        except yaml.YAMLError as e:
            raise ValidationError(f"Invalid config {yaml_path}: {e}") from e

        return cls.from_dict(data or {})
