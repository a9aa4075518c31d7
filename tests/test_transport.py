"""Tests for the SFTP transport."""

import errno
import stat
from pathlib import Path
from unittest.mock import MagicMock, Mock, call, patch

import paramiko
import pytest

from sitepush.config import ConnectionConfig
from sitepush.exceptions import TransportNotConnectedError
from sitepush.transport import RemoteReadStatus, SftpTransport


def _dir_attrs() -> Mock:
    attrs = Mock()
    attrs.st_mode = stat.S_IFDIR | 0o755
    return attrs


def _key_class(name: str) -> Mock:
    """Stand-in for a paramiko key class such as RSAKey."""
    key_class = Mock()
    key_class.__name__ = name
    return key_class


def _encode_like_paramiko(path: str) -> bytes:
    """paramiko sends remote paths as strict UTF-8."""
    return path.encode("utf-8")


@pytest.fixture
def config(tmp_path):
    """Password-only connection settings."""
    return ConnectionConfig(
        host="example.com",
        username="deploy",
        remote_path="/var/www",
        input_dir=tmp_path,
        password="secret",
    )


@pytest.fixture
def mock_paramiko():
    """Patch the socket and paramiko session classes."""
    with patch("sitepush.transport.socket.create_connection") as create_connection, \
            patch("sitepush.transport.paramiko.Transport") as transport_cls, \
            patch.object(paramiko.SFTPClient, "from_transport") as from_transport:
        ssh = transport_cls.return_value
        ssh.is_authenticated.return_value = True
        from_transport.return_value = MagicMock()
        yield Mock(
            create_connection=create_connection,
            ssh=ssh,
            from_transport=from_transport,
        )


@pytest.fixture
def connected():
    """Transport with a mocked SFTP client already attached."""
    transport = SftpTransport()
    sftp = MagicMock()
    transport._sftp = sftp
    return transport, sftp


class TestConnect:
    """Tests for SftpTransport.connect."""

    def test_password_auth(self, config, mock_paramiko):
        """Password authentication opens the SFTP session."""
        transport = SftpTransport()

        assert transport.connect(config) is True
        assert transport.is_connected
        mock_paramiko.create_connection.assert_called_once_with(
            ("example.com", 22), timeout=30.0
        )
        mock_paramiko.ssh.auth_password.assert_called_once_with("deploy", "secret")
        mock_paramiko.ssh.auth_publickey.assert_not_called()

    def test_key_auth_preferred(self, config, mock_paramiko, tmp_path):
        """A usable key is tried before the password."""
        key_file = tmp_path / "id_ed25519"
        key_file.write_text("dummy")
        config.key_path = str(key_file)
        key = Mock(spec=paramiko.PKey)
        key_class = _key_class("Ed25519Key")
        key_class.from_private_key_file.return_value = key

        with patch("sitepush.transport.KEY_CLASSES", (key_class,)):
            assert SftpTransport().connect(config) is True

        mock_paramiko.ssh.auth_publickey.assert_called_once_with("deploy", key)
        mock_paramiko.ssh.auth_password.assert_not_called()

    def test_key_formats_tried_in_order(self, config, mock_paramiko, tmp_path):
        """A key class that cannot parse the file falls through to the next."""
        key_file = tmp_path / "id_rsa"
        key_file.write_text("dummy")
        config.key_path = str(key_file)
        config.password = None
        wrong = _key_class("Ed25519Key")
        wrong.from_private_key_file.side_effect = paramiko.SSHException("not ed25519")
        right = _key_class("RSAKey")
        right.from_private_key_file.return_value = Mock(spec=paramiko.PKey)

        with patch("sitepush.transport.KEY_CLASSES", (wrong, right)):
            assert SftpTransport().connect(config) is True

        right.from_private_key_file.assert_called_once_with(str(key_file), password=None)

    def test_missing_key_falls_back_to_password(self, config, mock_paramiko, tmp_path):
        """A missing key file is not fatal when a password is configured."""
        config.key_path = str(tmp_path / "missing")

        assert SftpTransport().connect(config) is True

        mock_paramiko.ssh.auth_publickey.assert_not_called()
        mock_paramiko.ssh.auth_password.assert_called_once()

    def test_unusable_key_without_password(self, config, mock_paramiko, tmp_path):
        """No method succeeding means connect returns False."""
        key_file = tmp_path / "garbage"
        key_file.write_text("not a key")
        config.key_path = str(key_file)
        config.password = None
        key_class = _key_class("RSAKey")
        key_class.from_private_key_file.side_effect = paramiko.SSHException("bad")

        transport = SftpTransport()
        with patch("sitepush.transport.KEY_CLASSES", (key_class,)):
            assert transport.connect(config) is False

        assert not transport.is_connected
        mock_paramiko.ssh.close.assert_called()

    def test_encrypted_key_without_passphrase(self, config, mock_paramiko, tmp_path):
        """An encrypted key without passphrase falls back to the password."""
        key_file = tmp_path / "id_ecdsa"
        key_file.write_text("encrypted")
        config.key_path = str(key_file)
        key_class = _key_class("ECDSAKey")
        key_class.from_private_key_file.side_effect = (
            paramiko.PasswordRequiredException("need passphrase")
        )

        with patch("sitepush.transport.KEY_CLASSES", (key_class,)):
            assert SftpTransport().connect(config) is True

        mock_paramiko.ssh.auth_password.assert_called_once()

    def test_password_rejected(self, config, mock_paramiko):
        """Rejected credentials give False, not an exception."""
        mock_paramiko.ssh.auth_password.side_effect = (
            paramiko.AuthenticationException("denied")
        )

        transport = SftpTransport()
        assert transport.connect(config) is False
        assert not transport.is_connected

    def test_unreachable_host(self, config, mock_paramiko):
        """Socket errors are reported as a failed connect."""
        mock_paramiko.create_connection.side_effect = OSError("Connection refused")

        assert SftpTransport().connect(config) is False

    def test_handshake_failure_closes_transport(self, config, mock_paramiko):
        """A failed SSH handshake closes the half-open session."""
        mock_paramiko.ssh.start_client.side_effect = paramiko.SSHException("eof")

        assert SftpTransport().connect(config) is False
        mock_paramiko.ssh.close.assert_called_once()

    def test_sftp_subsystem_unavailable(self, config, mock_paramiko):
        """Authentication alone is not enough without an SFTP channel."""
        mock_paramiko.from_transport.return_value = None

        transport = SftpTransport()
        assert transport.connect(config) is False
        assert not transport.is_connected


class TestDisconnect:
    """Tests for SftpTransport.disconnect."""

    def test_disconnect_never_connected(self):
        """Disconnecting an unused transport is a no-op."""
        transport = SftpTransport()
        transport.disconnect()
        transport.disconnect()
        assert not transport.is_connected

    def test_disconnect_is_idempotent(self, connected):
        """The session is closed once even when disconnect repeats."""
        transport, sftp = connected
        transport.disconnect()
        transport.disconnect()
        sftp.close.assert_called_once()
        assert not transport.is_connected

    def test_context_manager_disconnects(self, connected):
        transport, sftp = connected
        with transport:
            pass
        sftp.close.assert_called_once()


class TestNotConnected:
    """Remote primitives refuse to run without a session."""

    @pytest.mark.parametrize(
        "method, args",
        [
            ("ensure_remote_directory", ("/www",)),
            ("upload_file", (Path("a.html"), "/www/a.html")),
            ("file_exists", ("/www/a.html",)),
            ("read_file", ("/www/a.html",)),
            ("delete_file", ("/www/a.html",)),
            ("put_content", ("/www/a.html", "x")),
        ],
    )
    def test_raises(self, method, args):
        with pytest.raises(TransportNotConnectedError, match="not connected"):
            getattr(SftpTransport(), method)(*args)


class TestRemoteDirectories:
    """Tests for remote directory creation."""

    def test_existing_directory(self, connected):
        transport, sftp = connected
        sftp.stat.return_value = _dir_attrs()

        assert transport.ensure_remote_directory("/var/www") is True
        sftp.mkdir.assert_not_called()

    def test_creates_missing_ancestors(self, connected):
        """Every missing level is created from the top down."""
        transport, sftp = connected
        sftp.stat.side_effect = FileNotFoundError("missing")

        assert transport.ensure_remote_directory("/var/www/site") is True
        assert sftp.mkdir.call_args_list == [
            call("/var"),
            call("/var/www"),
            call("/var/www/site"),
        ]

    def test_creation_failure(self, connected):
        transport, sftp = connected
        sftp.stat.side_effect = FileNotFoundError("missing")
        sftp.mkdir.side_effect = PermissionError("denied")

        assert transport.ensure_remote_directory("/var/www") is False


class TestUpload:
    """Tests for SftpTransport.upload_file."""

    def test_upload(self, connected, tmp_path):
        transport, sftp = connected
        sftp.stat.return_value = _dir_attrs()
        local = tmp_path / "index.html"
        local.write_text("<html></html>")

        assert transport.upload_file(local, "/www/index.html") is True
        sftp.put.assert_called_once_with(str(local), "/www/index.html")

    def test_upload_creates_parent(self, connected, tmp_path):
        """Missing parent directories are created before the put."""
        transport, sftp = connected
        sftp.stat.side_effect = FileNotFoundError("missing")
        local = tmp_path / "site.css"
        local.write_text("body {}")

        assert transport.upload_file(local, "/www/css/site.css") is True
        sftp.mkdir.assert_any_call("/www/css")

    def test_upload_failure(self, connected, tmp_path):
        transport, sftp = connected
        sftp.stat.return_value = _dir_attrs()
        sftp.put.side_effect = OSError("Failure")

        assert transport.upload_file(tmp_path / "a.html", "/www/a.html") is False

    def test_upload_undecodable_name(self, connected, tmp_path):
        """A surrogate-escaped local name fails the upload without raising."""
        transport, sftp = connected
        sftp.stat.return_value = _dir_attrs()
        sftp.put.side_effect = lambda local, remote: _encode_like_paramiko(remote)

        assert transport.upload_file(tmp_path / "x", "/www/bad\udcff.html") is False

    def test_upload_undecodable_parent(self, connected, tmp_path):
        transport, sftp = connected
        sftp.stat.side_effect = lambda path: _encode_like_paramiko(path)

        assert transport.upload_file(tmp_path / "x", "/www/bad\udcff/a.html") is False
        sftp.put.assert_not_called()


class TestFileExists:
    """Tests for SftpTransport.file_exists."""

    def test_exists(self, connected):
        transport, sftp = connected
        sftp.stat.return_value = Mock()
        assert transport.file_exists("/www/a.html") is True

    def test_absent(self, connected):
        transport, sftp = connected
        sftp.stat.side_effect = IOError(errno.ENOENT, "No such file")
        assert transport.file_exists("/www/a.html") is False

    def test_error_reports_false(self, connected):
        transport, sftp = connected
        sftp.stat.side_effect = paramiko.SSHException("channel closed")
        assert transport.file_exists("/www/a.html") is False


class TestReadFile:
    """Tests for reading remote files."""

    def test_read_ok(self, connected):
        transport, sftp = connected
        handle = sftp.open.return_value.__enter__.return_value
        handle.read.return_value = '["a.html"]'.encode("utf-8")

        result = transport.read_file_result("/www/manifest.json")

        assert result.status == RemoteReadStatus.OK
        assert result.ok
        assert result.content == '["a.html"]'
        assert transport.read_file("/www/manifest.json") == '["a.html"]'

    def test_read_absent(self, connected):
        """A missing file is absent, not an error."""
        transport, sftp = connected
        sftp.open.side_effect = IOError(errno.ENOENT, "No such file")

        result = transport.read_file_result("/www/manifest.json")

        assert result.status == RemoteReadStatus.ABSENT
        assert transport.read_file("/www/manifest.json") is None

    def test_read_error(self, connected):
        """Other failures are reported separately from absence."""
        transport, sftp = connected
        sftp.open.side_effect = PermissionError("Permission denied")

        result = transport.read_file_result("/www/manifest.json")

        assert result.status == RemoteReadStatus.ERROR
        assert "Permission denied" in result.error
        assert transport.read_file("/www/manifest.json") is None

    def test_read_invalid_utf8(self, connected):
        transport, sftp = connected
        handle = sftp.open.return_value.__enter__.return_value
        handle.read.return_value = b"\xff\xfe\x00"

        assert transport.read_file_result("/x").status == RemoteReadStatus.ERROR


class TestDeleteAndWrite:
    """Tests for delete_file and put_content."""

    def test_delete(self, connected):
        transport, sftp = connected
        assert transport.delete_file("/www/old.html") is True
        sftp.remove.assert_called_once_with("/www/old.html")

    def test_delete_absent_is_success(self, connected):
        """Deleting an absent file counts as success."""
        transport, sftp = connected
        sftp.remove.side_effect = FileNotFoundError("gone")
        assert transport.delete_file("/www/old.html") is True

    def test_delete_failure(self, connected):
        transport, sftp = connected
        sftp.remove.side_effect = PermissionError("denied")
        assert transport.delete_file("/www/old.html") is False

    def test_put_content(self, connected):
        transport, sftp = connected
        handle = sftp.open.return_value.__enter__.return_value

        assert transport.put_content("/www/manifest.json", '["é"]') is True
        sftp.open.assert_called_once_with("/www/manifest.json", "wb")
        handle.write.assert_called_once_with('["é"]'.encode("utf-8"))

    def test_put_content_failure(self, connected):
        transport, sftp = connected
        sftp.open.side_effect = OSError("Failure")
        assert transport.put_content("/www/manifest.json", "[]") is False

    def test_put_content_unencodable(self, connected):
        transport, sftp = connected
        assert transport.put_content("/www/notes.txt", "bad\udcff") is False

    def test_delete_undecodable_name(self, connected):
        transport, sftp = connected
        sftp.remove.side_effect = _encode_like_paramiko
        assert transport.delete_file("/www/bad\udcff.html") is False

    def test_file_exists_undecodable_name(self, connected):
        transport, sftp = connected
        sftp.stat.side_effect = _encode_like_paramiko
        assert transport.file_exists("/www/bad\udcff.html") is False
