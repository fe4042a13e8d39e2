"""
Tests for helpers: paths, formatting, languages and error descriptions
"""
import errno
import socket

import paramiko
import pytest

from shellpair.core.client import describe_error
from shellpair.core.utils import format_permissions, format_size, join_remote_path, load_ssh_config
from shellpair.domain.files.languages import language_for_extension
from shellpair.domain.files.models import FileEntry
from shellpair.domain.session.classifier import ErrorCategory, ErrorClassifier
from shellpair.domain.session.models import TargetDescriptor


class TestPaths:
    @pytest.mark.parametrize("directory, name, expected", [
        ("/home/bob", "docs", "/home/bob/docs"),
        ("/home/bob/", "docs", "/home/bob/docs"),
        ("/home/bob", "..", "/home"),
        ("/home", "..", "/"),
        ("/", "etc", "/etc"),
    ])
    def test_join_remote_path(self, directory, name, expected):
        assert join_remote_path(directory, name) == expected


class TestFormatting:
    def test_format_size(self):
        assert format_size(512) == "512 B"
        assert format_size(1536) == "1.5 KB"
        assert format_size(5 * 1024 * 1024) == "5.0 MB"

    def test_format_permissions(self):
        assert format_permissions(0o040755) == "drwxr-xr-x"
        assert format_permissions(0o100644) == "-rw-r--r--"
        assert format_permissions(None) == "?---------"


class TestFileEntry:
    @pytest.mark.parametrize("name, extension", [
        ("main.py", "py"),
        ("Archive.TAR.GZ", "gz"),
        (".bashrc", ""),
        (".config.yml", "yml"),
        ("Makefile", ""),
    ])
    def test_extension(self, name, extension):
        assert FileEntry(name=name, path=f"/{name}", is_directory=False).extension == extension

    def test_hidden_and_parent(self):
        parent = FileEntry(name="..", path="/", is_directory=True)
        hidden = FileEntry(name=".ssh", path="/home/bob/.ssh", is_directory=True)

        assert parent.is_parent and not parent.is_hidden
        assert hidden.is_hidden


class TestLanguages:
    @pytest.mark.parametrize("extension, language", [
        ("py", "python"),
        ("TSX", "typescript"),
        ("yml", "yaml"),
        ("rs", "rust"),
        ("log", "plaintext"),
        ("unknownext", "plaintext"),
        ("", "plaintext"),
    ])
    def test_language_for_extension(self, extension, language):
        assert language_for_extension(extension) == language


class TestDescribeError:
    target = TargetDescriptor(username="bob", host="10.0.0.5")

    def category(self, exc):
        return ErrorClassifier().classify(describe_error(exc), self.target).category

    def test_authentication(self):
        assert self.category(paramiko.AuthenticationException("bad")) is ErrorCategory.AUTH_FAILED

    def test_refused(self):
        exc = paramiko.ssh_exception.NoValidConnectionsError(
            {("10.0.0.5", 22): OSError(errno.ECONNREFUSED, "Connection refused")}
        )

        assert self.category(exc) is ErrorCategory.REFUSED

    def test_timeout(self):
        assert self.category(socket.timeout("timed out")) is ErrorCategory.TIMEOUT

    def test_unresolvable_host(self):
        assert self.category(socket.gaierror(-2, "Name or service not known")) is ErrorCategory.NETWORK

    def test_permission(self):
        assert self.category(PermissionError(errno.EACCES, "Permission denied")) is ErrorCategory.PERMISSION_DENIED

    def test_plain_exception(self):
        assert describe_error(RuntimeError("odd")) == "odd"
        assert describe_error(RuntimeError()) == "RuntimeError"


class TestSshConfig:
    def test_missing_config(self, tmp_path):
        entry = load_ssh_config("box", tmp_path / "absent")

        assert entry == {"host": "box", "user": None, "port": 22, "key_file": None}

    def test_alias(self, tmp_path):
        config = tmp_path / "config"
        config.write_text(
            "Host box\n  HostName 10.0.0.5\n  User bob\n  Port 2222\n  IdentityFile ~/.ssh/box\n",
            encoding="utf-8",
        )

        entry = load_ssh_config("box", config)

        assert entry["host"] == "10.0.0.5"
        assert entry["user"] == "bob"
        assert entry["port"] == 2222
        assert entry["key_file"].endswith(".ssh/box")
