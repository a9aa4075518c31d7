"""Configuration loading for sitepush.

Connection settings come from environment variables, optionally backed by a
``.env`` file. Real environment variables take precedence over the file.
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from dotenv import dotenv_values

from .exceptions import SitePushConfigError
from .utils import (
    DEFAULT_MANIFEST_NAME,
    DEFAULT_PORT,
    DEFAULT_TIMEOUT,
    normalize_remote_root,
)

logger = logging.getLogger(__name__)

DEFAULT_ENV_FILE = ".env"


@dataclass
class ConnectionConfig:
    """Validated settings for one publish run."""

    host: str
    """Remote SSH host"""

    username: str
    """Login user"""

    remote_path: str
    """Remote root directory the site is mirrored into"""

    input_dir: Path
    """Local directory holding the generated site"""

    port: int = DEFAULT_PORT
    """Remote SSH port"""

    password: Optional[str] = field(default=None, repr=False)
    """Password for password authentication"""

    key_path: Optional[str] = None
    """Path to a private key for key authentication"""

    key_passphrase: Optional[str] = field(default=None, repr=False)
    """Passphrase protecting the private key"""

    known_hosts: Optional[str] = None
    """known_hosts file to verify the server key against"""

    timeout: float = DEFAULT_TIMEOUT
    """Connection timeout in seconds"""

    manifest_name: str = DEFAULT_MANIFEST_NAME
    """Manifest file name under the remote root"""

    secure_manifest: bool = False
    """Whether to deny web access to the manifest through .htaccess"""

    @property
    def auth_methods(self) -> list[str]:
        """Authentication methods in the order they will be attempted."""
        methods = []
        if self.key_path:
            methods.append("publickey")
        if self.password:
            methods.append("password")
        return methods

    def to_dict(self) -> dict:
        """Convert to a dictionary with secrets masked."""
        return {
            "host": self.host,
            "port": self.port,
            "username": self.username,
            "password": "***" if self.password else None,
            "key_path": self.key_path,
            "key_passphrase": "***" if self.key_passphrase else None,
            "known_hosts": self.known_hosts,
            "remote_path": self.remote_path,
            "input_dir": str(self.input_dir),
            "manifest_name": self.manifest_name,
            "secure_manifest": self.secure_manifest,
            "timeout": self.timeout,
        }


def _parse_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None or value.strip() == "":
        return default
    value = value.strip().lower()
    if value in {"1", "true", "yes", "y", "on"}:
        return True
    if value in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _parse_number(name: str, value: Optional[str], default, kind=int):
    if value is None or value.strip() == "":
        return default
    try:
        return kind(value)
    except ValueError as e:
        raise SitePushConfigError(f"Invalid {name}: {value}") from e


def _expand_home(path: Optional[str]) -> Optional[str]:
    """Expand a leading ``~`` in a configured path."""
    if not path:
        return path
    return os.path.expanduser(path)


def read_environment(
    env_file: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> dict[str, str]:
    """Merge a .env file with the process environment.

    Args:
        env_file: Path to a .env file. Defaults to ``.env`` in the current
            directory when that file exists.
        environ: Environment mapping (defaults to ``os.environ``)

    Returns:
        Dictionary of variables, environment values overriding file values

    Raises:
        SitePushConfigError: If an explicitly given env file does not exist
    """
    if environ is None:
        environ = os.environ

    values: dict[str, str] = {}
    if env_file is not None:
        env_path = Path(env_file)
        if not env_path.is_file():
            raise SitePushConfigError(f"Env file not found: {env_path}")
    else:
        env_path = Path(DEFAULT_ENV_FILE)

    if env_path.is_file():
        logger.debug(f"Loading settings from {env_path}")
        for key, value in dotenv_values(env_path).items():
            if value is not None:
                values[key] = value

    values.update(environ)
    return values


def load_connection_config(
    input_dir: Optional[Union[str, Path]] = None,
    env_file: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ConnectionConfig:
    """Load and validate the publishing configuration.

    Args:
        input_dir: Local directory to publish (overrides OUTPUT_DIR)
        env_file: Optional .env file
        environ: Environment mapping (defaults to ``os.environ``)

    Returns:
        Validated ConnectionConfig

    Raises:
        SitePushConfigError: If a required setting is missing or invalid
    """
    env = read_environment(env_file, environ)

    local_dir = input_dir or env.get("OUTPUT_DIR")
    if not local_dir:
        raise SitePushConfigError(
            "No input directory specified (use --input or set OUTPUT_DIR in .env)"
        )
    local_path = Path(local_dir).expanduser()
    if not local_path.is_dir():
        raise SitePushConfigError(f"Input directory does not exist: {local_path}")
    if not os.access(local_path, os.R_OK | os.X_OK):
        raise SitePushConfigError(f"Input directory is not readable: {local_path}")

    host = env.get("SFTP_HOST", "").strip()
    username = env.get("SFTP_USERNAME", "").strip()
    remote_path = env.get("SFTP_REMOTE_PATH", "").strip()
    password = env.get("SFTP_PASSWORD") or None
    key_path = _expand_home(env.get("SFTP_PRIVATE_KEY_PATH") or None)

    if not host:
        raise SitePushConfigError("SFTP_HOST not configured in .env")
    if not username:
        raise SitePushConfigError("SFTP_USERNAME not configured in .env")
    if not remote_path:
        raise SitePushConfigError("SFTP_REMOTE_PATH not configured in .env")
    if not password and not key_path:
        raise SitePushConfigError(
            "Either SFTP_PASSWORD or SFTP_PRIVATE_KEY_PATH must be configured"
        )

    port = _parse_number("SFTP_PORT", env.get("SFTP_PORT"), DEFAULT_PORT)
    if not 0 < port < 65536:
        raise SitePushConfigError(f"Invalid SFTP_PORT: {port}")

    return ConnectionConfig(
        host=host,
        port=port,
        username=username,
        password=password,
        key_path=key_path,
        key_passphrase=env.get("SFTP_PRIVATE_KEY_PASSPHRASE") or None,
        known_hosts=_expand_home(env.get("SFTP_KNOWN_HOSTS") or None),
        timeout=_parse_number(
            "SFTP_TIMEOUT", env.get("SFTP_TIMEOUT"), DEFAULT_TIMEOUT, float
        ),
        remote_path=normalize_remote_root(remote_path),
        input_dir=local_path,
        manifest_name=env.get("SITEPUSH_MANIFEST_NAME") or DEFAULT_MANIFEST_NAME,
        secure_manifest=_parse_bool(env.get("SITEPUSH_SECURE_MANIFEST")),
    )
