"""SFTP transport for sitepush.

Wraps a single paramiko SSH session and exposes the primitive remote
operations the sync engine needs. Every operation that can fail logs the
reason and returns a sentinel (False / None) instead of raising.
"""

import logging
import os
import posixpath
import socket
import stat
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Optional, Union

import paramiko

from .config import ConnectionConfig
from .exceptions import TransportNotConnectedError
from .utils import remote_parent

logger = logging.getLogger(__name__)

# Private key formats tried in order when loading a key file
KEY_CLASSES: tuple[type[paramiko.PKey], ...] = (
    paramiko.Ed25519Key,
    paramiko.ECDSAKey,
    paramiko.RSAKey,
)

# paramiko encodes remote paths as UTF-8; undecodable local names surface as
# UnicodeEncodeError
_SFTP_ERRORS = (OSError, paramiko.SSHException, UnicodeError)


class RemoteReadStatus(str, Enum):
    """Outcome of reading a remote file."""

    OK = "ok"
    """File was read"""

    ABSENT = "absent"
    """File does not exist"""

    ERROR = "error"
    """File may exist but could not be read"""


@dataclass
class RemoteRead:
    """Result of reading a remote file."""

    status: RemoteReadStatus
    content: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == RemoteReadStatus.OK


class SftpTransport:
    """One authenticated SFTP session to a remote host.

    Examples:
        >>> with SftpTransport() as transport:
        ...     if transport.connect(config):
        ...         transport.upload_file(Path("site/index.html"), "/www/index.html")
    """

    def __init__(self) -> None:
        self._transport: Optional[paramiko.Transport] = None
        self._sftp: Optional[paramiko.SFTPClient] = None

    def __enter__(self) -> "SftpTransport":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.disconnect()

    @property
    def is_connected(self) -> bool:
        """Whether an authenticated SFTP session is open."""
        return self._sftp is not None

    # =========================================================================
    # Connection
    # =========================================================================

    def connect(self, config: ConnectionConfig) -> bool:
        """Open and authenticate the session.

        Key authentication is attempted first when a key path is configured;
        password authentication is the fallback.

        Args:
            config: Connection settings

        Returns:
            True if some authentication method succeeded and the SFTP
            subsystem is available, False otherwise
        """
        self.disconnect()
        logger.debug(f"Connecting to {config.host}:{config.port}")

        try:
            sock = socket.create_connection(
                (config.host, config.port), timeout=config.timeout
            )
        except OSError as e:
            logger.error(f"SFTP connection to {config.host}:{config.port} failed: {e}")
            return False

        transport = paramiko.Transport(sock)
        transport.banner_timeout = config.timeout
        transport.auth_timeout = config.timeout
        try:
            transport.start_client(timeout=config.timeout)
        except _SFTP_ERRORS as e:
            logger.error(f"SSH handshake with {config.host}:{config.port} failed: {e}")
            transport.close()
            return False

        if config.known_hosts and not self._verify_host_key(transport, config):
            transport.close()
            return False

        authenticated = False
        if config.key_path:
            logger.debug(f"Attempting key auth with: {config.key_path}")
            if self._authenticate_with_key(
                transport, config.username, config.key_path, config.key_passphrase
            ):
                logger.info("Connected via SSH key authentication")
                authenticated = True

        if not authenticated and config.password:
            logger.debug("Attempting password auth")
            if self._authenticate_with_password(
                transport, config.username, config.password
            ):
                logger.info("Connected via password authentication")
                authenticated = True

        if not authenticated:
            logger.error("Authentication failed - no valid method succeeded")
            transport.close()
            return False

        try:
            sftp = paramiko.SFTPClient.from_transport(transport)
        except _SFTP_ERRORS as e:
            logger.error(f"SFTP subsystem unavailable: {e}")
            transport.close()
            return False
        if sftp is None:
            logger.error("SFTP subsystem unavailable: no channel opened")
            transport.close()
            return False

        self._transport = transport
        self._sftp = sftp
        return True

    def _verify_host_key(
        self, transport: paramiko.Transport, config: ConnectionConfig
    ) -> bool:
        """Check the server key against the configured known_hosts file."""
        try:
            host_keys = paramiko.HostKeys(config.known_hosts)
        except OSError as e:
            logger.error(f"Cannot read known_hosts file {config.known_hosts}: {e}")
            return False

        lookup_name = (
            config.host if config.port == 22 else f"[{config.host}]:{config.port}"
        )
        server_key = transport.get_remote_server_key()
        known = host_keys.lookup(lookup_name)
        if known is None or server_key.get_name() not in known:
            logger.error(f"Host key for {lookup_name} not found in {config.known_hosts}")
            return False
        if known[server_key.get_name()] != server_key:
            logger.error(f"Host key mismatch for {lookup_name}")
            return False
        return True

    def _load_private_key(
        self, key_path: str, passphrase: Optional[str]
    ) -> Optional[paramiko.PKey]:
        """Load a private key file, trying each supported key format.

        Returns:
            The loaded key, or None if the file is missing or holds no usable
            private key
        """
        if not os.path.isfile(key_path):
            logger.error(f"Private key file not found: {key_path}")
            return None

        logger.debug("Loading private key...")
        for key_class in KEY_CLASSES:
            try:
                return key_class.from_private_key_file(
                    key_path, password=passphrase or None
                )
            except paramiko.PasswordRequiredException:
                logger.error(f"Private key is encrypted and no passphrase is set: {key_path}")
                return None
            except OSError as e:
                logger.error(f"Failed to read private key file {key_path}: {e}")
                return None
            except (paramiko.SSHException, ValueError) as e:
                logger.debug(f"Not a {key_class.__name__}: {e}")

        logger.error(f"Loaded key is not a usable private key: {key_path}")
        return None

    def _authenticate_with_key(
        self,
        transport: paramiko.Transport,
        username: str,
        key_path: str,
        passphrase: Optional[str],
    ) -> bool:
        key = self._load_private_key(key_path, passphrase)
        if key is None:
            return False

        logger.debug(f"Authenticating as user: {username}")
        try:
            transport.auth_publickey(username, key)
        except paramiko.SSHException as e:
            logger.error(f"Login failed with key for {username}: {e}")
            return False
        return transport.is_authenticated()

    def _authenticate_with_password(
        self, transport: paramiko.Transport, username: str, password: str
    ) -> bool:
        try:
            transport.auth_password(username, password)
        except paramiko.SSHException as e:
            logger.error(f"Password authentication failed: {e}")
            return False
        return transport.is_authenticated()

    def disconnect(self) -> None:
        """Close the session. Safe to call repeatedly or when never connected."""
        sftp, transport = self._sftp, self._transport
        self._sftp = None
        self._transport = None
        try:
            if sftp is not None:
                sftp.close()
            if transport is not None:
                transport.close()
        except _SFTP_ERRORS as e:
            logger.debug(f"Error while closing SFTP session: {e}")

    # =========================================================================
    # Remote primitives
    # =========================================================================

    def _client(self, operation: str) -> paramiko.SFTPClient:
        if self._sftp is None:
            raise TransportNotConnectedError(operation)
        return self._sftp

    @staticmethod
    def _is_dir(sftp: paramiko.SFTPClient, path: str) -> bool:
        try:
            return stat.S_ISDIR(sftp.stat(path).st_mode or 0)
        except FileNotFoundError:
            return False

    def _makedirs(self, sftp: paramiko.SFTPClient, path: str) -> None:
        """Create a remote directory and any missing parents."""
        current = ""
        for part in PurePosixPath(path).parts:
            current = posixpath.join(current, part) if current else part
            if current == "/":
                continue
            if not self._is_dir(sftp, current):
                logger.debug(f"Creating remote directory {current}")
                sftp.mkdir(current)

    def ensure_remote_directory(self, path: str) -> bool:
        """Make sure a remote directory exists, creating it recursively.

        Args:
            path: Remote directory path

        Returns:
            True if the directory exists afterwards
        """
        sftp = self._client("ensure remote directory")
        try:
            if self._is_dir(sftp, path):
                return True
            self._makedirs(sftp, path)
            return True
        except _SFTP_ERRORS as e:
            logger.error(f"Failed to create remote directory {path}: {e}")
            return False

    def upload_file(self, local_path: Union[str, Path], remote_path: str) -> bool:
        """Upload a local file, overwriting the remote file.

        The remote parent directory is created when missing.

        Args:
            local_path: Local file to upload
            remote_path: Destination path on the remote

        Returns:
            True on success
        """
        sftp = self._client("upload file")

        remote_dir = remote_parent(remote_path)
        try:
            if remote_dir and not self._is_dir(sftp, remote_dir):
                self._makedirs(sftp, remote_dir)
        except _SFTP_ERRORS as e:
            logger.error(f"Failed to create remote directory {remote_dir}: {e}")
            return False

        try:
            sftp.put(str(local_path), remote_path)
        except _SFTP_ERRORS as e:
            logger.error(f"Upload error {local_path} -> {remote_path}: {e}")
            return False
        return True

    def file_exists(self, remote_path: str) -> bool:
        """Check whether a remote path exists.

        Returns False both when the path is absent and when the check fails.
        """
        sftp = self._client("check file existence")
        try:
            sftp.stat(remote_path)
        except FileNotFoundError:
            return False
        except _SFTP_ERRORS as e:
            logger.error(f"Failed to check file existence for {remote_path}: {e}")
            return False
        return True

    def read_file_result(self, remote_path: str) -> RemoteRead:
        """Read a remote text file, telling absence apart from read errors."""
        sftp = self._client("read file")
        try:
            with sftp.open(remote_path, "rb") as f:
                data = f.read()
        except FileNotFoundError:
            return RemoteRead(RemoteReadStatus.ABSENT)
        except _SFTP_ERRORS as e:
            logger.error(f"Failed to read file {remote_path}: {e}")
            return RemoteRead(RemoteReadStatus.ERROR, error=str(e))

        try:
            content = data.decode("utf-8")
        except UnicodeDecodeError as e:
            logger.error(f"File {remote_path} is not valid UTF-8: {e}")
            return RemoteRead(RemoteReadStatus.ERROR, error=str(e))
        return RemoteRead(RemoteReadStatus.OK, content=content)

    def read_file(self, remote_path: str) -> Optional[str]:
        """Read a remote text file.

        Returns:
            File content, or None if the file is absent or could not be read
        """
        return self.read_file_result(remote_path).content

    def delete_file(self, remote_path: str) -> bool:
        """Delete a remote file. An already absent file counts as deleted."""
        sftp = self._client("delete file")
        try:
            sftp.remove(remote_path)
        except FileNotFoundError:
            return True
        except _SFTP_ERRORS as e:
            logger.error(f"Failed to delete file {remote_path}: {e}")
            return False
        return True

    def put_content(self, remote_path: str, content: str) -> bool:
        """Write a string to a remote file, replacing its content."""
        sftp = self._client("write content")
        try:
            with sftp.open(remote_path, "wb") as f:
                f.write(content.encode("utf-8"))
        except _SFTP_ERRORS as e:
            logger.error(f"Failed to write content to {remote_path}: {e}")
            return False
        return True
