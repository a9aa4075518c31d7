"""sitepush - publish a generated static site to an SFTP server."""

from .config import ConnectionConfig, load_connection_config
from .exceptions import (
    ManifestError,
    SitePushConfigError,
    SitePushError,
    SitePushTransportError,
    TransportNotConnectedError,
)
from .hasher import ContentHasher, calculate_hash
from .transport import RemoteRead, RemoteReadStatus, SftpTransport

__version__ = "0.3.0"

__all__ = [
    "ConnectionConfig",
    "ContentHasher",
    "ManifestError",
    "RemoteRead",
    "RemoteReadStatus",
    "SftpTransport",
    "SitePushConfigError",
    "SitePushError",
    "SitePushTransportError",
    "TransportNotConnectedError",
    "calculate_hash",
    "load_connection_config",
]
