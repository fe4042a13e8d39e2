"""
Tests for the SFTP directory listing of the paramiko transport
"""
import stat

import paramiko

from shellpair.infrastructure.transport.paramiko_transport import _list_directory


def make_attr(name: str, mode: int, size: int = 0) -> paramiko.SFTPAttributes:
    attr = paramiko.SFTPAttributes()
    attr.filename = name
    attr.st_mode = mode
    attr.st_size = size
    attr.st_mtime = 1700000000
    return attr


class StubSFTP:
    def __init__(self, entries, parent_error=None):
        self.entries = entries
        self.parent_error = parent_error

    def normalize(self, path):
        return path.rstrip("/") or "/"

    def listdir_attr(self, path):
        return list(self.entries)

    def stat(self, path):
        if self.parent_error is not None:
            raise self.parent_error
        return make_attr("home", stat.S_IFDIR | 0o755)


class TestListDirectory:
    def test_parent_entry_first(self):
        sftp = StubSFTP([make_attr("notes.txt", stat.S_IFREG | 0o644, size=12)])

        entries = _list_directory(sftp, "/home/bob/")

        assert [e.name for e in entries] == ["..", "notes.txt"]
        assert entries[0].path == "/home"
        assert entries[0].is_directory
        assert entries[0].permissions == "drwxr-xr-x"
        assert entries[1].path == "/home/bob/notes.txt"
        assert entries[1].size == 12

    def test_unreadable_parent_still_lists(self):
        sftp = StubSFTP(
            [make_attr("docs", stat.S_IFDIR | 0o700)],
            parent_error=PermissionError(13, "Permission denied"),
        )

        entries = _list_directory(sftp, "/srv/data")

        assert [e.name for e in entries] == ["..", "docs"]
        assert entries[0].path == "/srv"
        assert entries[0].is_directory

    def test_root_has_no_parent(self):
        sftp = StubSFTP([make_attr("etc", stat.S_IFDIR | 0o755)])

        entries = _list_directory(sftp, "/")

        assert [e.name for e in entries] == ["etc"]
