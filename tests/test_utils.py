"""Tests for utility functions."""

import pytest

from sitepush.utils import format_size, join_remote, normalize_remote_root, remote_parent


class TestJoinRemote:
    """Tests for join_remote."""

    @pytest.mark.parametrize(
        "root, rel, expected",
        [
            ("/var/www", "index.html", "/var/www/index.html"),
            ("/var/www/", "css/site.css", "/var/www/css/site.css"),
            ("/", "index.html", "/index.html"),
            ("/var/www", "/index.html", "/var/www/index.html"),
            ("www", "a.html", "www/a.html"),
        ],
    )
    def test_join(self, root, rel, expected):
        assert join_remote(root, rel) == expected


class TestRemoteParent:
    """Tests for remote_parent."""

    def test_nested(self):
        assert remote_parent("/var/www/css/site.css") == "/var/www/css"

    def test_root_file(self):
        assert remote_parent("/index.html") == "/"

    def test_bare_name(self):
        assert remote_parent("index.html") == ""


class TestNormalizeRemoteRoot:
    """Tests for normalize_remote_root."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("/var/www/", "/var/www"),
            ("/var/www//", "/var/www"),
            ("/var/www", "/var/www"),
            ("/", "/"),
            ("//", "/"),
            ("htdocs/", "htdocs"),
        ],
    )
    def test_normalize(self, value, expected):
        assert normalize_remote_root(value) == expected


class TestFormatSize:
    """Tests for format_size function."""

    def test_format_bytes(self):
        """Test formatting bytes."""
        assert format_size(0) == "0 B"
        assert format_size(512) == "512 B"
        assert format_size(1023) == "1023 B"

    def test_format_kilobytes(self):
        """Test formatting kilobytes."""
        assert format_size(1024) == "1.0 KB"
        assert format_size(1536) == "1.5 KB"

    def test_format_megabytes(self):
        """Test formatting megabytes."""
        assert format_size(1024 * 1024) == "1.0 MB"
        assert format_size(int(2.5 * 1024 * 1024)) == "2.5 MB"

    def test_format_gigabytes(self):
        """Test formatting gigabytes."""
        assert format_size(1024 * 1024 * 1024) == "1.0 GB"
