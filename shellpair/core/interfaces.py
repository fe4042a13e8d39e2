"""
Core interfaces for dependency injection
"""
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..domain.files.models import FileEntry
    from ..domain.session.models import SessionProfile, TargetDescriptor


ProgressCallback = Callable[[int, int], None]
TerminalOutputHandler = Callable[[str, bytes], None]
TerminalExitHandler = Callable[[str, Optional[str]], None]


class ChannelTransport(ABC):
    """
    Terminal and file-transfer transport, addressed by channel id.

    Closing an unknown channel raises ``ChannelNotFoundError``; every other
    failure raises ``TransportError`` with a human-readable description.
    """

    @abstractmethod
    async def open_terminal_channel(
        self,
        channel_id: str,
        target: "TargetDescriptor",
        secret: Optional[str],
        cols: int,
        rows: int,
        key_path: Optional[str] = None,
    ) -> None:
        """Open an interactive shell channel"""
        pass

    @abstractmethod
    async def close_terminal_channel(self, channel_id: str) -> None:
        pass

    @abstractmethod
    async def write_terminal_channel(self, channel_id: str, data: bytes) -> None:
        pass

    @abstractmethod
    async def resize_terminal_channel(self, channel_id: str, cols: int, rows: int) -> None:
        pass

    @abstractmethod
    async def open_file_channel(
        self,
        channel_id: str,
        target: "TargetDescriptor",
        secret: Optional[str],
        key_path: Optional[str] = None,
    ) -> None:
        """Open a file-transfer channel"""
        pass

    @abstractmethod
    async def close_file_channel(self, channel_id: str) -> None:
        pass

    @abstractmethod
    async def list_remote_entries(self, channel_id: str, path: str) -> List["FileEntry"]:
        pass

    @abstractmethod
    async def stat_remote_entry(self, channel_id: str, path: str) -> "FileEntry":
        pass

    @abstractmethod
    async def read_remote_file(self, channel_id: str, path: str) -> str:
        pass

    @abstractmethod
    async def write_remote_file(self, channel_id: str, path: str, content: str) -> None:
        pass

    @abstractmethod
    async def download_remote_file(
        self,
        channel_id: str,
        remote_path: str,
        local_path: str,
        progress: Optional[ProgressCallback] = None,
    ) -> None:
        pass

    @abstractmethod
    async def upload_remote_file(
        self,
        channel_id: str,
        local_path: str,
        remote_path: str,
        progress: Optional[ProgressCallback] = None,
    ) -> None:
        pass

    @abstractmethod
    async def delete_remote_file(self, channel_id: str, path: str) -> None:
        pass

    @abstractmethod
    async def make_remote_directory(self, channel_id: str, path: str) -> None:
        pass

    @abstractmethod
    def subscribe_terminal(
        self,
        on_output: TerminalOutputHandler,
        on_exit: TerminalExitHandler,
    ) -> None:
        """Register handlers for terminal output and terminal death"""
        pass


class SecretStore(ABC):
    """Secret storage interface, keyed by profile id"""

    @abstractmethod
    async def lookup(self, profile_id: str) -> Optional[str]:
        """Return the stored secret, or None when there is no entry"""
        pass

    @abstractmethod
    async def store(self, profile_id: str, secret: str) -> None:
        pass

    @abstractmethod
    async def delete(self, profile_id: str) -> None:
        pass


class ProfileStore(ABC):
    """Saved profile storage interface"""

    @abstractmethod
    def list(self) -> List["SessionProfile"]:
        pass

    @abstractmethod
    def get(self, profile_id: str) -> Optional["SessionProfile"]:
        pass

    @abstractmethod
    def save(self, profile: "SessionProfile") -> None:
        pass

    @abstractmethod
    def delete(self, profile_id: str) -> None:
        pass
