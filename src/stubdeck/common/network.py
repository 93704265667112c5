"""
Stubdeck Network Helpers

Default provider of bindable local addresses, used when no host
interface enumerator is injected into the command surface.
"""

import logging
import socket
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)


def get_lan_ip() -> Optional[str]:
    """Primary outbound IPv4 address, or None if there is no route."""
    s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        s.connect(("192.0.2.1", 80))  # No packets sent; picks the interface
        return s.getsockname()[0]
    except OSError as e:
        logger.debug(f"LAN address discovery failed: {e}")
        return None
    finally:
        s.close()


class LocalAddressProvider:
    """Loopback, wildcard and the primary LAN address."""

    def list_local_addresses(self) -> List[Tuple[str, str]]:
        addresses = [
            ("localhost", "127.0.0.1"),
            ("all interfaces", "0.0.0.0"),
        ]
        lan_ip = get_lan_ip()
        if lan_ip and lan_ip not in ("127.0.0.1", "0.0.0.0"):
            addresses.append(("lan", lan_ip))
        return addresses
