"""
File operation service - remote file access over a paired file channel
"""
from typing import Awaitable, Callable, List, Optional, TypeVar

from ...core.exceptions import ChannelNotFoundError, ChannelNotReadyError
from ...core.interfaces import ChannelTransport, ProgressCallback
from ...core.logging import get_logger
from ..session.classifier import ErrorClassifier
from ..session.models import Session
from ..session.registry import SessionRegistry
from .languages import language_for_extension
from .models import FileEntry, FilePreview

logger = get_logger(__name__)

T = TypeVar("T")


class FileService:
    """
    File operations against the file channel of a paired session.

    Each call is a single transport request with no retry. Transport
    failures are re-raised as classified errors carrying the path.
    """

    def __init__(
        self,
        transport: ChannelTransport,
        registry: SessionRegistry,
        classifier: ErrorClassifier,
    ):
        self.transport = transport
        self.registry = registry
        self.classifier = classifier

    def _require_paired(self, channel_id: str) -> Session:
        session = self.registry.find_by_file_channel(channel_id)
        if session is None:
            raise ChannelNotReadyError(channel_id, "no live session owns this channel")
        if not session.is_paired:
            raise ChannelNotReadyError(channel_id, session.pairing_state.value)
        return session

    async def _run(
        self,
        channel_id: str,
        operation: str,
        path: str,
        call: Callable[[], Awaitable[T]],
    ) -> T:
        session = self._require_paired(channel_id)
        try:
            return await call()
        except ChannelNotFoundError as e:
            raise ChannelNotReadyError(channel_id, "channel closed") from e
        except Exception as e:
            error = self.classifier.to_exception(e, session.target, path=path)
            logger.error(f"{operation} failed ({session.target}:{path}): {e}")
            raise error from e

    async def list(self, channel_id: str, path: str, show_hidden: bool = False) -> List[FileEntry]:
        """
        List a remote directory in transport order.

        Hidden entries are dropped unless ``show_hidden``; the parent
        directory entry is always kept.
        """
        entries = await self._run(
            channel_id, "list", path,
            lambda: self.transport.list_remote_entries(channel_id, path),
        )
        if show_hidden:
            return list(entries)
        return [entry for entry in entries if not entry.is_hidden]

    async def stat(self, channel_id: str, path: str) -> FileEntry:
        return await self._run(
            channel_id, "stat", path,
            lambda: self.transport.stat_remote_entry(channel_id, path),
        )

    async def read(self, channel_id: str, path: str) -> str:
        return await self._run(
            channel_id, "read", path,
            lambda: self.transport.read_remote_file(channel_id, path),
        )

    async def write(self, channel_id: str, path: str, content: str) -> None:
        await self._run(
            channel_id, "write", path,
            lambda: self.transport.write_remote_file(channel_id, path, content),
        )

    async def download(
        self,
        channel_id: str,
        remote_path: str,
        local_path: str,
        progress: Optional[ProgressCallback] = None,
    ) -> None:
        await self._run(
            channel_id, "download", remote_path,
            lambda: self.transport.download_remote_file(channel_id, remote_path, local_path, progress),
        )

    async def upload(
        self,
        channel_id: str,
        local_path: str,
        remote_path: str,
        progress: Optional[ProgressCallback] = None,
    ) -> None:
        await self._run(
            channel_id, "upload", remote_path,
            lambda: self.transport.upload_remote_file(channel_id, local_path, remote_path, progress),
        )

    async def delete(self, channel_id: str, path: str) -> None:
        await self._run(
            channel_id, "delete", path,
            lambda: self.transport.delete_remote_file(channel_id, path),
        )

    async def mkdir(self, channel_id: str, path: str) -> None:
        await self._run(
            channel_id, "mkdir", path,
            lambda: self.transport.make_remote_directory(channel_id, path),
        )

    async def preview(self, channel_id: str, entry: FileEntry) -> Optional[FilePreview]:
        """Read a file for display; directories have no preview"""
        if entry.is_directory:
            return None
        content = await self.read(channel_id, entry.path)
        return FilePreview(
            content=content,
            language=language_for_extension(entry.extension),
            path=entry.path,
            name=entry.name,
        )
