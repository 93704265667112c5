"""
Stubdeck Project Module

Save/load of the complete session state as a single JSON document.
"""

from .codec import ProjectStateCodec, dumps, loads, read_project, write_project

__all__ = [
    'ProjectStateCodec',
    'dumps',
    'loads',
    'read_project',
    'write_project',
]
