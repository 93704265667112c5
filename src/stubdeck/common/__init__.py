"""
Stubdeck Common Utilities

Configuration, logging setup and network helpers shared across modules.
"""

from .config import AppConfig
from .logging_utils import setup_logging
from .network import LocalAddressProvider, get_lan_ip

__all__ = [
    'AppConfig',
    'setup_logging',
    'LocalAddressProvider',
    'get_lan_ip',
]
