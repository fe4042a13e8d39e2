"""
paramiko-backed channel transport

Every channel owns its own SSH connection. Blocking paramiko calls run in
worker threads; a reader thread per terminal forwards output and exit to
the event loop.
"""
import asyncio
import posixpath
import stat
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, TypeVar

import paramiko

from ...core.client import RemoteClient, describe_error
from ...core.constants import DEFAULT_SSH_TIMEOUT, DEFAULT_TERM_TYPE, READ_CHUNK_SIZE, PARENT_DIRECTORY_ENTRY
from ...core.exceptions import ChannelNotFoundError, TransportError
from ...core.interfaces import (
    ChannelTransport,
    ProgressCallback,
    TerminalExitHandler,
    TerminalOutputHandler,
)
from ...core.logging import get_logger
from ...core.utils import format_permissions, join_remote_path
from ...domain.files.models import FileEntry
from ...domain.session.models import TargetDescriptor

logger = get_logger(__name__)

T = TypeVar("T")


def _guarded(fn: Callable[[], T]) -> Callable[[], T]:
    """Re-raise any failure of ``fn`` as a TransportError with a descriptive text"""
    def call() -> T:
        try:
            return fn()
        except TransportError:
            raise
        except Exception as e:
            raise TransportError(describe_error(e)) from e
    return call


@dataclass
class _TerminalHandle:
    client: RemoteClient
    channel: paramiko.Channel
    closing: threading.Event = field(default_factory=threading.Event)

    def close(self) -> None:
        self.closing.set()
        try:
            self.channel.close()
        finally:
            self.client.close()


@dataclass
class _FileHandle:
    client: RemoteClient
    sftp: paramiko.SFTPClient

    def close(self) -> None:
        try:
            self.sftp.close()
        finally:
            self.client.close()


def _to_entry(directory: str, attr: paramiko.SFTPAttributes) -> FileEntry:
    mode = attr.st_mode
    return FileEntry(
        name=attr.filename,
        path=join_remote_path(directory, attr.filename),
        is_directory=mode is not None and stat.S_ISDIR(mode),
        size=attr.st_size or 0,
        modified_at=float(attr.st_mtime) if attr.st_mtime is not None else None,
        permissions=format_permissions(mode),
    )


def _list_directory(sftp: paramiko.SFTPClient, path: str) -> List[FileEntry]:
    directory = sftp.normalize(path)
    entries = [_to_entry(directory, attr) for attr in sftp.listdir_attr(directory)]
    # SFTP servers omit '..'; add it so the parent stays reachable
    if directory != "/":
        parent = join_remote_path(directory, PARENT_DIRECTORY_ENTRY)
        try:
            attr = sftp.stat(parent)
        except IOError as e:
            logger.debug(f"Cannot stat {parent}: {e}")
            entries.insert(0, FileEntry(name=PARENT_DIRECTORY_ENTRY, path=parent, is_directory=True))
        else:
            attr.filename = PARENT_DIRECTORY_ENTRY
            entries.insert(0, _to_entry(directory, attr))
    return entries


class ParamikoTransport(ChannelTransport):
    """ChannelTransport over paramiko SSH shells and SFTP sessions"""

    def __init__(
        self,
        connect_timeout: float = DEFAULT_SSH_TIMEOUT,
        term_type: str = DEFAULT_TERM_TYPE,
    ):
        self.connect_timeout = connect_timeout
        self.term_type = term_type
        self._terminals: Dict[str, _TerminalHandle] = {}
        self._files: Dict[str, _FileHandle] = {}
        self._on_output: Optional[TerminalOutputHandler] = None
        self._on_exit: Optional[TerminalExitHandler] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def subscribe_terminal(self, on_output: TerminalOutputHandler, on_exit: TerminalExitHandler) -> None:
        self._on_output = on_output
        self._on_exit = on_exit

    # --------------------
    # Helpers
    # --------------------
    def _client(self, target: TargetDescriptor, secret: Optional[str], key_path: Optional[str]) -> RemoteClient:
        return RemoteClient(
            host=target.host,
            user=target.username,
            port=target.port,
            password=secret,
            key_path=key_path,
            timeout=self.connect_timeout,
        )

    async def _open(self, fn: Callable[[], Any], on_orphan: Callable[[Any], None]) -> Any:
        """
        Run a blocking open in a worker thread.

        If the awaiting task is cancelled the thread still finishes; whatever
        it opened is handed to ``on_orphan`` so it does not leak.
        """
        future = asyncio.ensure_future(asyncio.to_thread(_guarded(fn)))
        try:
            return await asyncio.shield(future)
        except asyncio.CancelledError:
            def release(done: asyncio.Future) -> None:
                if not done.cancelled() and done.exception() is None:
                    on_orphan(done.result())
            future.add_done_callback(release)
            raise

    def _terminal(self, channel_id: str) -> _TerminalHandle:
        handle = self._terminals.get(channel_id)
        if handle is None:
            raise ChannelNotFoundError(channel_id)
        return handle

    def _file(self, channel_id: str) -> _FileHandle:
        handle = self._files.get(channel_id)
        if handle is None:
            raise ChannelNotFoundError(channel_id)
        return handle

    async def _sftp_call(self, channel_id: str, fn: Callable[[paramiko.SFTPClient], T]) -> T:
        sftp = self._file(channel_id).sftp
        return await asyncio.to_thread(_guarded(lambda: fn(sftp)))

    # --------------------
    # Terminal channels
    # --------------------
    async def open_terminal_channel(
        self,
        channel_id: str,
        target: TargetDescriptor,
        secret: Optional[str],
        cols: int,
        rows: int,
        key_path: Optional[str] = None,
    ) -> None:
        if channel_id in self._terminals:
            raise TransportError(f"Terminal channel already open: {channel_id}")
        self._loop = asyncio.get_running_loop()

        def connect() -> _TerminalHandle:
            client = self._client(target, secret, key_path)
            try:
                client.connect()
                channel = client.open_shell(cols, rows, term=self.term_type)
            except Exception:
                client.close()
                raise
            return _TerminalHandle(client=client, channel=channel)

        handle = await self._open(connect, lambda h: h.close())
        self._terminals[channel_id] = handle
        threading.Thread(
            target=self._read_terminal,
            args=(channel_id, handle),
            name=f"reader-{channel_id}",
            daemon=True,
        ).start()
        logger.debug(f"Terminal channel {channel_id} open ({target})")

    def _read_terminal(self, channel_id: str, handle: _TerminalHandle) -> None:
        reason: Optional[str] = None
        try:
            while True:
                data = handle.channel.recv(READ_CHUNK_SIZE)
                if not data:
                    break
                self._dispatch(self._deliver_output, channel_id, data)
        except Exception as e:
            reason = describe_error(e)
        if handle.closing.is_set():
            return
        status = handle.channel.exit_status if handle.channel.exit_status_ready() else None
        if reason is None and status is not None:
            reason = f"shell exited with status {status}"
        self._dispatch(self._deliver_exit, channel_id, reason)

    def _dispatch(self, fn: Callable[..., None], *args: Any) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        try:
            loop.call_soon_threadsafe(fn, *args)
        except RuntimeError:
            # loop shut down between the check and the call
            pass

    def _deliver_output(self, channel_id: str, data: bytes) -> None:
        if self._on_output is not None and channel_id in self._terminals:
            self._on_output(channel_id, data)

    def _deliver_exit(self, channel_id: str, reason: Optional[str]) -> None:
        handle = self._terminals.pop(channel_id, None)
        if handle is None:
            return
        handle.closing.set()
        handle.client.close()
        if self._on_exit is not None:
            self._on_exit(channel_id, reason)

    async def close_terminal_channel(self, channel_id: str) -> None:
        handle = self._terminals.pop(channel_id, None)
        if handle is None:
            raise ChannelNotFoundError(channel_id)
        await asyncio.to_thread(_guarded(handle.close))

    async def write_terminal_channel(self, channel_id: str, data: bytes) -> None:
        channel = self._terminal(channel_id).channel
        await asyncio.to_thread(_guarded(lambda: channel.sendall(data)))

    async def resize_terminal_channel(self, channel_id: str, cols: int, rows: int) -> None:
        channel = self._terminal(channel_id).channel
        await asyncio.to_thread(_guarded(lambda: channel.resize_pty(width=cols, height=rows)))

    # --------------------
    # File channels
    # --------------------
    async def open_file_channel(
        self,
        channel_id: str,
        target: TargetDescriptor,
        secret: Optional[str],
        key_path: Optional[str] = None,
    ) -> None:
        if channel_id in self._files:
            raise TransportError(f"File channel already open: {channel_id}")

        def connect() -> _FileHandle:
            client = self._client(target, secret, key_path)
            try:
                client.connect()
                sftp = client.open_sftp()
            except Exception:
                client.close()
                raise
            return _FileHandle(client=client, sftp=sftp)

        self._files[channel_id] = await self._open(connect, lambda h: h.close())
        logger.debug(f"File channel {channel_id} open ({target})")

    async def close_file_channel(self, channel_id: str) -> None:
        handle = self._files.pop(channel_id, None)
        if handle is None:
            raise ChannelNotFoundError(channel_id)
        await asyncio.to_thread(_guarded(handle.close))

    async def list_remote_entries(self, channel_id: str, path: str) -> List[FileEntry]:
        return await self._sftp_call(channel_id, lambda sftp: _list_directory(sftp, path))

    async def stat_remote_entry(self, channel_id: str, path: str) -> FileEntry:
        def stat_entry(sftp: paramiko.SFTPClient) -> FileEntry:
            resolved = sftp.normalize(path)
            attr = sftp.stat(resolved)
            attr.filename = posixpath.basename(resolved) or "/"
            return _to_entry(posixpath.dirname(resolved) or "/", attr)

        return await self._sftp_call(channel_id, stat_entry)

    async def read_remote_file(self, channel_id: str, path: str) -> str:
        def read(sftp: paramiko.SFTPClient) -> str:
            with sftp.open(path, "rb") as remote_file:
                remote_file.prefetch()
                return remote_file.read().decode("utf-8", errors="replace")

        return await self._sftp_call(channel_id, read)

    async def write_remote_file(self, channel_id: str, path: str, content: str) -> None:
        def write(sftp: paramiko.SFTPClient) -> None:
            with sftp.open(path, "wb") as remote_file:
                remote_file.write(content.encode("utf-8"))

        await self._sftp_call(channel_id, write)

    async def download_remote_file(
        self,
        channel_id: str,
        remote_path: str,
        local_path: str,
        progress: Optional[ProgressCallback] = None,
    ) -> None:
        await self._sftp_call(channel_id, lambda sftp: sftp.get(remote_path, local_path, callback=progress))

    async def upload_remote_file(
        self,
        channel_id: str,
        local_path: str,
        remote_path: str,
        progress: Optional[ProgressCallback] = None,
    ) -> None:
        await self._sftp_call(channel_id, lambda sftp: sftp.put(local_path, remote_path, callback=progress))

    async def delete_remote_file(self, channel_id: str, path: str) -> None:
        def delete(sftp: paramiko.SFTPClient) -> None:
            mode = sftp.lstat(path).st_mode
            if mode is not None and stat.S_ISDIR(mode):
                sftp.rmdir(path)
            else:
                sftp.remove(path)

        await self._sftp_call(channel_id, delete)

    async def make_remote_directory(self, channel_id: str, path: str) -> None:
        await self._sftp_call(channel_id, lambda sftp: sftp.mkdir(path))

    async def close(self) -> None:
        """Close every open channel"""
        for channel_id in list(self._terminals):
            await self.close_terminal_channel(channel_id)
        for channel_id in list(self._files):
            await self.close_file_channel(channel_id)
