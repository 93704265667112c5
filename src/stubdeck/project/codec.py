"""
Stubdeck Project Codec

Snapshots the live state into a ProjectData document and applies a
document back onto the live state.

File format (UTF-8 JSON):
    {
      "name": "...",
      "lastSaved": "<ISO-8601>",
      "endpoints": [{"id", "method", "path", "status", "delay", "response"}],
      "settings": {"port", "bindAddr", "enableTls"},
      "tlsConfig": {"certPath", "keyPath"} | null
    }
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Union

from ..engine import EndpointRegistry, TlsProvisioner
from ..errors import ProjectIOError, ValidationError
from ..models import ProjectData
from ..state import SettingsStore

logger = logging.getLogger(__name__)


class ProjectStateCodec:
    """
    Export/import of the complete mutable state.

    Each field is replaced independently on import; there is no
    cross-field transaction, but every single replacement is all-or-nothing.

    Example:
        codec = ProjectStateCodec(state.registry, state.tls, state.settings)
        data = codec.export_state('my project')
        write_project('my.json', data)
        codec.import_state(read_project('my.json'))
    """

    def __init__(self, registry: EndpointRegistry, tls: TlsProvisioner, settings: SettingsStore):
        self.registry = registry
        self.tls = tls
        self.settings = settings

    def export_state(self, name: str) -> ProjectData:
        """Snapshot registry, TLS config and settings with the current timestamp."""
        return ProjectData(
            name=name,
            last_saved=datetime.now(timezone.utc).isoformat(),
            endpoints=self.registry.list(),
            settings=self.settings.get(),
            tls_config=self.tls.get()
        )

    def import_state(self, data: ProjectData) -> None:
        """Replace registry, TLS config and settings wholesale."""
        self.registry.replace_all(data.endpoints)
        self.tls.replace(data.tls_config)
        self.settings.set(data.settings)
        logger.info(f"Loaded project '{data.name}' ({len(data.endpoints)} endpoints)")


def dumps(data: ProjectData) -> str:
    return json.dumps(data.to_dict(), indent=2, ensure_ascii=False)


def loads(text: str) -> ProjectData:
    """
    Parse a project document.

    Raises:
        ValidationError: If the text is not JSON or not a valid project
    """
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid project file: {e}") from e
    return ProjectData.from_dict(raw)


def write_project(path: Union[str, Path], data: ProjectData) -> Path:
    """
    Write ``data`` to ``path`` as UTF-8 JSON.

    Raises:
        ProjectIOError: If the file cannot be written
    """
    target = Path(path)
    try:
        with open(target, 'w', encoding='utf-8') as f:
            f.write(dumps(data))
    except OSError as e:
        raise ProjectIOError(f"Failed to save project to {target}: {e}") from e

    logger.info(f"Saved project '{data.name}' to {target}")
    return target


def read_project(path: Union[str, Path]) -> ProjectData:
    """
    Load a project file.

    Raises:
        ProjectIOError: If the file cannot be read
        ValidationError: If the content is not a valid project document
    """
    source = Path(path)
    try:
        with open(source, 'r', encoding='utf-8') as f:
            text = f.read()
    except OSError as e:
        raise ProjectIOError(f"Failed to read project from {source}: {e}") from e
    except UnicodeDecodeError as e:
        raise ValidationError(f"Project file {source} is not UTF-8: {e}") from e

    return loads(text)
