"""
Tests for file operations over a paired file channel
"""
import pytest
import pytest_asyncio

from shellpair.core.exceptions import (
    ChannelNotReadyError,
    PermissionDeniedError,
    TransportError,
)
from shellpair.domain.files.models import FileEntry


def entry(name: str, directory: bool = False) -> FileEntry:
    return FileEntry(name=name, path=f"/home/bob/{name}", is_directory=directory)


@pytest_asyncio.fixture
async def paired(orchestrator, profile):
    session = await orchestrator.open_from_profile(profile)
    channel_id = await orchestrator.wait_for_pairing(session.session_id)
    yield session, channel_id
    await orchestrator.shutdown()


@pytest.mark.asyncio
class TestListing:
    async def test_hidden_entries_filtered(self, files, transport, paired):
        _, channel_id = paired
        transport.entries["/home/bob"] = [entry("docs", True), entry(".git", True), entry("..", True)]

        names = [e.name for e in await files.list(channel_id, "/home/bob")]

        assert names == ["docs", ".."]

    async def test_show_hidden(self, files, transport, paired):
        _, channel_id = paired
        transport.entries["/home/bob"] = [entry(".bashrc"), entry("notes.txt")]

        names = [e.name for e in await files.list(channel_id, "/home/bob", show_hidden=True)]

        assert names == [".bashrc", "notes.txt"]

    async def test_failure_is_classified_with_path(self, files, transport, paired):
        _, channel_id = paired
        transport.path_errors["/root"] = TransportError("permission denied: [Errno 13] Permission denied")

        with pytest.raises(PermissionDeniedError) as exc_info:
            await files.list(channel_id, "/root")

        assert exc_info.value.path == "/root"
        assert "bob@10.0.0.5:22" in str(exc_info.value)


@pytest.mark.asyncio
class TestChannelState:
    async def test_unknown_channel(self, files):
        with pytest.raises(ChannelNotReadyError):
            await files.list("sftp-nobody-0", "/")

    async def test_before_pairing(self, files, transport, orchestrator, profile, registry):
        session = await orchestrator.open_from_profile(profile)

        with pytest.raises(ChannelNotReadyError):
            await files.read(f"sftp-{session.session_id}-0", "/etc/hosts")

        assert transport.count("open_file") == 0
        await orchestrator.shutdown()

    async def test_after_close(self, files, orchestrator, paired):
        session, channel_id = paired
        await orchestrator.close(session.session_id)

        with pytest.raises(ChannelNotReadyError):
            await files.list(channel_id, "/")

    async def test_transport_lost_channel(self, files, transport, paired):
        _, channel_id = paired
        transport.file_channels.clear()

        with pytest.raises(ChannelNotReadyError) as exc_info:
            await files.stat(channel_id, "/")

        assert exc_info.value.reason == "channel closed"


@pytest.mark.asyncio
class TestOperations:
    async def test_write_then_read(self, files, paired):
        _, channel_id = paired

        await files.write(channel_id, "/tmp/a.txt", "hello")

        assert await files.read(channel_id, "/tmp/a.txt") == "hello"

    async def test_preview_language(self, files, transport, paired):
        _, channel_id = paired
        transport.contents["/srv/app/main.py"] = "print('hi')\n"
        main = FileEntry(name="main.py", path="/srv/app/main.py", is_directory=False)

        preview = await files.preview(channel_id, main)

        assert preview.language == "python"
        assert preview.content == "print('hi')\n"
        assert preview.name == "main.py"

    async def test_preview_unknown_extension(self, files, transport, paired):
        _, channel_id = paired
        transport.contents["/srv/Makefile"] = "all:\n"
        makefile = FileEntry(name="Makefile", path="/srv/Makefile", is_directory=False)

        preview = await files.preview(channel_id, makefile)

        assert preview.language == "plaintext"

    async def test_preview_directory(self, files, paired):
        _, channel_id = paired

        assert await files.preview(channel_id, entry("docs", True)) is None

    async def test_download_and_upload(self, files, transport, paired, tmp_path):
        _, channel_id = paired
        transport.contents["/var/log/app.log"] = "line\n"
        local = tmp_path / "app.log"
        progress = []

        await files.download(channel_id, "/var/log/app.log", str(local), lambda d, t: progress.append((d, t)))
        await files.upload(channel_id, str(local), "/tmp/copy.log")

        assert local.read_text() == "line\n"
        assert progress == [(5, 5)]
        assert transport.contents["/tmp/copy.log"] == "line\n"

    async def test_delete_and_mkdir(self, files, transport, paired):
        _, channel_id = paired
        transport.contents["/tmp/old"] = "x"

        await files.delete(channel_id, "/tmp/old")
        await files.mkdir(channel_id, "/tmp/new")

        assert "/tmp/old" not in transport.contents
        assert "/tmp/new" in transport.entries
