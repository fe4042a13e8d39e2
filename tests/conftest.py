"""
Shared fixtures: an in-memory channel transport and a wired orchestrator
"""
import asyncio
from typing import Dict, List, Optional, Tuple

import pytest

from shellpair.core.exceptions import ChannelNotFoundError, TransportError
from shellpair.core.interfaces import ChannelTransport
from shellpair.core.telemetry import Telemetry
from shellpair.domain.files.models import FileEntry
from shellpair.domain.files.service import FileService
from shellpair.domain.session.classifier import ErrorClassifier
from shellpair.domain.session.credentials import CredentialResolver
from shellpair.domain.session.models import OrchestratorConfig, SessionProfile
from shellpair.domain.session.orchestrator import SessionOrchestrator
from shellpair.domain.session.registry import SessionRegistry
from shellpair.infrastructure.secrets.memory_store import MemorySecretStore


class FakeTransport(ChannelTransport):
    """Records every call; failures are injected per channel kind or path"""

    def __init__(self) -> None:
        self.terminals: Dict[str, dict] = {}
        self.file_channels: Dict[str, dict] = {}
        self.calls: List[Tuple[str, str]] = []
        self.written: List[Tuple[str, bytes]] = []
        self.resized: List[Tuple[str, int, int]] = []
        self.terminal_error: Optional[Exception] = None
        self.file_error: Optional[Exception] = None
        self.io_error: Optional[Exception] = None
        self.terminal_gate: Optional[asyncio.Event] = None
        self.file_gate: Optional[asyncio.Event] = None
        self.entries: Dict[str, List[FileEntry]] = {}
        self.contents: Dict[str, str] = {}
        self.path_errors: Dict[str, Exception] = {}
        self.on_output = None
        self.on_exit = None

    def subscribe_terminal(self, on_output, on_exit) -> None:
        self.on_output = on_output
        self.on_exit = on_exit

    def emit_output(self, channel_id: str, data: bytes) -> None:
        self.on_output(channel_id, data)

    def emit_exit(self, channel_id: str, reason: Optional[str] = None) -> None:
        self.terminals.pop(channel_id, None)
        self.on_exit(channel_id, reason)

    def count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)

    async def open_terminal_channel(self, channel_id, target, secret, cols, rows, key_path=None):
        self.calls.append(("open_terminal", channel_id))
        if self.terminal_gate is not None:
            await self.terminal_gate.wait()
        if self.terminal_error is not None:
            raise self.terminal_error
        self.terminals[channel_id] = {
            "target": target, "secret": secret, "cols": cols, "rows": rows, "key_path": key_path,
        }

    async def close_terminal_channel(self, channel_id):
        self.calls.append(("close_terminal", channel_id))
        # paramiko closes in a worker thread
        await asyncio.sleep(0)
        if self.terminals.pop(channel_id, None) is None:
            raise ChannelNotFoundError(channel_id)

    async def write_terminal_channel(self, channel_id, data):
        self.calls.append(("write", channel_id))
        if self.io_error is not None:
            raise self.io_error
        if channel_id not in self.terminals:
            raise ChannelNotFoundError(channel_id)
        self.written.append((channel_id, data))

    async def resize_terminal_channel(self, channel_id, cols, rows):
        self.calls.append(("resize", channel_id))
        if self.io_error is not None:
            raise self.io_error
        if channel_id not in self.terminals:
            raise ChannelNotFoundError(channel_id)
        self.resized.append((channel_id, cols, rows))

    async def open_file_channel(self, channel_id, target, secret, key_path=None):
        self.calls.append(("open_file", channel_id))
        if self.file_gate is not None:
            await self.file_gate.wait()
        if self.file_error is not None:
            raise self.file_error
        self.file_channels[channel_id] = {"target": target, "secret": secret}

    async def close_file_channel(self, channel_id):
        self.calls.append(("close_file", channel_id))
        await asyncio.sleep(0)
        if self.file_channels.pop(channel_id, None) is None:
            raise ChannelNotFoundError(channel_id)

    def _check(self, channel_id: str, path: str) -> None:
        if channel_id not in self.file_channels:
            raise ChannelNotFoundError(channel_id)
        if path in self.path_errors:
            raise self.path_errors[path]

    async def list_remote_entries(self, channel_id, path):
        self._check(channel_id, path)
        return list(self.entries.get(path, []))

    async def stat_remote_entry(self, channel_id, path):
        self._check(channel_id, path)
        name = path.rsplit("/", 1)[-1]
        return FileEntry(name=name, path=path, is_directory=path not in self.contents)

    async def read_remote_file(self, channel_id, path):
        self._check(channel_id, path)
        if path not in self.contents:
            raise TransportError(f"no such file: {path}")
        return self.contents[path]

    async def write_remote_file(self, channel_id, path, content):
        self._check(channel_id, path)
        self.contents[path] = content

    async def download_remote_file(self, channel_id, remote_path, local_path, progress=None):
        self._check(channel_id, remote_path)
        data = self.contents[remote_path].encode("utf-8")
        with open(local_path, "wb") as f:
            f.write(data)
        if progress is not None:
            progress(len(data), len(data))

    async def upload_remote_file(self, channel_id, local_path, remote_path, progress=None):
        self._check(channel_id, remote_path)
        with open(local_path, "r", encoding="utf-8") as f:
            self.contents[remote_path] = f.read()

    async def delete_remote_file(self, channel_id, path):
        self._check(channel_id, path)
        self.contents.pop(path, None)

    async def make_remote_directory(self, channel_id, path):
        self._check(channel_id, path)
        self.entries.setdefault(path, [])


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def secrets() -> MemorySecretStore:
    return MemorySecretStore()


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture
def classifier() -> ErrorClassifier:
    return ErrorClassifier()


@pytest.fixture
def telemetry() -> Telemetry:
    return Telemetry()


@pytest.fixture
def config() -> OrchestratorConfig:
    return OrchestratorConfig(settle_delay=0.01, pairing_wait_timeout=2.0)


@pytest.fixture
def orchestrator(transport, registry, secrets, classifier, config, telemetry) -> SessionOrchestrator:
    return SessionOrchestrator(
        transport,
        registry,
        CredentialResolver(secrets),
        classifier,
        config=config,
        telemetry=telemetry,
    )


@pytest.fixture
def files(transport, registry, classifier) -> FileService:
    return FileService(transport, registry, classifier)


@pytest.fixture
def profile() -> SessionProfile:
    return SessionProfile(id="p1", host="10.0.0.5", username="bob", port=22, display_name="build box")
