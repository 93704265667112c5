"""
Stubdeck TLS Provisioning

Holds the active certificate/key configuration and can mint an ephemeral
self-signed pair for ``localhost``.

Features:
- User-supplied cert/key paths (stored as-is, validated lazily at start)
- Ephemeral self-signed generation into an app-namespaced temp directory
- Tracking and cleanup of the temp files this process wrote
- PEM loading/validation used by the lifecycle manager before binding
"""

import ipaddress
import logging
import os
import ssl
import tempfile
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional, Union

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

from ..errors import ProjectIOError, TlsLoadError
from ..models import TlsConfig

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "stubdeck"
CERT_FILENAME = "temp_cert.pem"
KEY_FILENAME = "temp_key.pem"

EPHEMERAL_SUBJECT = "localhost"
EPHEMERAL_VALIDITY_DAYS = 365
RSA_KEY_SIZE = 2048


def default_temp_dir(namespace: str = DEFAULT_NAMESPACE) -> Path:
    """Application-reserved directory under the OS temp dir."""
    return Path(tempfile.gettempdir()) / namespace


def generate_self_signed(common_name: str = EPHEMERAL_SUBJECT):
    """
    Create a self-signed certificate and its RSA key.

    Returns:
        Tuple of (cert_pem, key_pem) as bytes
    """
    key = rsa.generate_private_key(public_exponent=65537, key_size=RSA_KEY_SIZE)
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])

    not_before = datetime.now(timezone.utc) - timedelta(minutes=5)
    not_after = not_before + timedelta(days=EPHEMERAL_VALIDITY_DAYS)

    san = x509.SubjectAlternativeName([
        x509.DNSName(common_name),
        x509.IPAddress(ipaddress.IPv4Address("127.0.0.1")),
        x509.IPAddress(ipaddress.IPv6Address("::1")),
    ])

    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before)
        .not_valid_after(not_after)
        .add_extension(san, critical=False)
        .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
        .add_extension(x509.ExtendedKeyUsage([ExtendedKeyUsageOID.SERVER_AUTH]), critical=False)
        .sign(key, hashes.SHA256())
    )

    cert_pem = cert.public_bytes(serialization.Encoding.PEM)
    key_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption()
    )
    return cert_pem, key_pem


def load_tls_material(config: TlsConfig) -> ssl.SSLContext:
    """
    Read and validate a certificate/key pair.

    Args:
        config: Paths to the PEM certificate and private key

    Returns:
        Server-side SSLContext with the pair loaded

    Raises:
        TlsLoadError: If either file is unreadable, malformed, or the key
            does not belong to the certificate
    """
    try:
        cert_bytes = Path(config.cert_path).read_bytes()
        key_bytes = Path(config.key_path).read_bytes()
    except OSError as e:
        raise TlsLoadError(f"Failed to load TLS config: {e}") from e

    try:
        x509.load_pem_x509_certificate(cert_bytes)
    except ValueError as e:
        raise TlsLoadError(f"Failed to load TLS config: invalid certificate PEM in {config.cert_path}: {e}") from e

    try:
        serialization.load_pem_private_key(key_bytes, password=None)
    except (ValueError, TypeError) as e:
        raise TlsLoadError(f"Failed to load TLS config: invalid private key PEM in {config.key_path}: {e}") from e

    context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    try:
        context.load_cert_chain(config.cert_path, config.key_path)
    except (ssl.SSLError, OSError) as e:
        raise TlsLoadError(f"Failed to load TLS config: {e}") from e
    return context


class TlsProvisioner:
    """
    Owner of the active TlsConfig and of any ephemeral files it generated.

    ``clear()`` and ``cleanup_ephemeral()`` are deliberately independent:
    cleanup removes the owned files but leaves the active config pointing
    at them, and clear drops the config without touching files. Callers
    that want both call both.

    Example:
        tls = TlsProvisioner()
        config = tls.generate_ephemeral()
        ...
        tls.clear()
        tls.cleanup_ephemeral()
    """

    def __init__(self, temp_dir: Optional[Union[str, Path]] = None):
        """
        Initialize provisioner.

        Args:
            temp_dir: Directory for ephemeral files (defaults to the
                application namespace under the OS temp dir)
        """
        self.temp_dir = Path(temp_dir) if temp_dir else default_temp_dir()
        self._lock = threading.Lock()
        self._config: Optional[TlsConfig] = None
        self._owned_files: List[Path] = []

    @property
    def cert_file(self) -> Path:
        return self.temp_dir / CERT_FILENAME

    @property
    def key_file(self) -> Path:
        return self.temp_dir / KEY_FILENAME

    def set(self, cert_path: str, key_path: str) -> TlsConfig:
        """Store user-supplied paths. No existence or validity check."""
        config = TlsConfig(cert_path=cert_path, key_path=key_path)
        with self._lock:
            self._config = config
        logger.info(f"TLS configuration set: cert={cert_path} key={key_path}")
        return config

    def get(self) -> Optional[TlsConfig]:
        with self._lock:
            return self._config

    def clear(self) -> None:
        with self._lock:
            self._config = None
        logger.info("TLS configuration cleared")

    def replace(self, config: Optional[TlsConfig]) -> None:
        """Overwrite the active config wholesale (project load)."""
        with self._lock:
            self._config = config

    def owned_files(self) -> List[Path]:
        """Temp files written by this provisioner and not yet cleaned up."""
        with self._lock:
            return list(self._owned_files)

    def generate_ephemeral(self) -> TlsConfig:
        """
        Generate a self-signed pair for localhost and make it active.

        Files are written to ``temp_dir`` as temp_cert.pem / temp_key.pem,
        overwriting any previous ephemeral pair.

        Returns:
            The new active TlsConfig

        Raises:
            ProjectIOError: If the files cannot be written
        """
        cert_pem, key_pem = generate_self_signed()

        try:
            self.temp_dir.mkdir(parents=True, exist_ok=True)
            self.cert_file.write_bytes(cert_pem)
            self.key_file.write_bytes(key_pem)
            if os.name == 'posix':
                os.chmod(self.key_file, 0o600)
        except OSError as e:
            raise ProjectIOError(f"Failed to write temporary certificate: {e}") from e

        config = TlsConfig(cert_path=str(self.cert_file), key_path=str(self.key_file))
        with self._lock:
            for path in (self.cert_file, self.key_file):
                if path not in self._owned_files:
                    self._owned_files.append(path)
            self._config = config

        logger.info(f"Generated ephemeral certificate for {EPHEMERAL_SUBJECT} in {self.temp_dir}")
        return config

    def cleanup_ephemeral(self) -> None:
        """
        Delete every owned temp file. Missing files are ignored.

        Does not clear the active TlsConfig.
        """
        with self._lock:
            owned = self._owned_files
            self._owned_files = []

        for path in owned:
            try:
                path.unlink()
                logger.debug(f"Removed temporary file {path}")
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning(f"Could not remove temporary file {path}: {e}")
