"""
Component wiring for CLI commands
"""
import re
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional, Tuple

from ...adapters.config.loader import Settings
from ...core.exceptions import ProfileError
from ...core.logging import get_logger
from ...core.utils import load_ssh_config
from ...domain.files.service import FileService
from ...domain.session.classifier import ErrorClassifier
from ...domain.session.credentials import CredentialResolver
from ...domain.session.models import HostParams, Session, SessionProfile
from ...domain.session.orchestrator import SessionOrchestrator
from ...domain.session.profiles import ProfileService
from ...domain.session.registry import SessionRegistry
from ...infrastructure.secrets.keyring_store import KeyringSecretStore
from ...infrastructure.state.profile_store import FileProfileStore
from ...infrastructure.transport.paramiko_transport import ParamikoTransport
from .prompts import RichPromptProvider

logger = get_logger(__name__)

_TARGET_PATTERN = re.compile(r"^(?:(?P<user>[^@]+)@)?(?P<host>[^:@]+)(?::(?P<port>\d+))?$")


@dataclass
class Runtime:
    """Explicitly constructed service graph shared by one CLI invocation"""
    settings: Settings
    transport: ParamikoTransport
    registry: SessionRegistry
    credentials: CredentialResolver
    classifier: ErrorClassifier
    orchestrator: SessionOrchestrator
    files: FileService
    profiles: ProfileService


def build_runtime(settings: Settings) -> Runtime:
    transport = ParamikoTransport(connect_timeout=settings.connect_timeout)
    registry = SessionRegistry()
    classifier = ErrorClassifier()
    credentials = CredentialResolver(KeyringSecretStore(settings.keyring_service))
    orchestrator = SessionOrchestrator(
        transport,
        registry,
        credentials,
        classifier,
        config=settings.orchestrator,
    )
    return Runtime(
        settings=settings,
        transport=transport,
        registry=registry,
        credentials=credentials,
        classifier=classifier,
        orchestrator=orchestrator,
        files=FileService(transport, registry, classifier),
        profiles=ProfileService(FileProfileStore(settings.profiles_dir), credentials),
    )


def parse_target(text: str) -> Tuple[Optional[str], str, Optional[int]]:
    """
    Split ``[user@]host[:port]``.

    Raises:
        ProfileError: If the text is not a valid target
    """
    match = _TARGET_PATTERN.match(text.strip())
    if not match:
        raise ProfileError(f"Not a profile name or [user@]host[:port]: {text!r}")
    port = match.group("port")
    return match.group("user"), match.group("host"), int(port) if port else None


def host_params_for(text: str, prompts: RichPromptProvider) -> HostParams:
    """Build ad-hoc connection parameters, using ~/.ssh/config for aliases"""
    user, host, port = parse_target(text)
    ssh_entry = load_ssh_config(host)
    user = user or ssh_entry.get("user") or prompts.prompt("SSH username", default="root")
    key_file = ssh_entry.get("key_file")
    password = None
    if not key_file:
        password = prompts.prompt(f"Password for {user}@{ssh_entry['host']}", password=True) or None
    return HostParams(
        host=ssh_entry["host"],
        username=user,
        port=port or ssh_entry["port"],
        password=password,
        private_key=key_file,
    )


async def open_session(runtime: Runtime, name: str, prompts: RichPromptProvider) -> Session:
    """Open a session for a saved profile name, or ad-hoc for ``[user@]host[:port]``"""
    profile: Optional[SessionProfile] = runtime.profiles.find(name)
    if profile is not None:
        return await runtime.orchestrator.open_from_profile(profile)
    return await runtime.orchestrator.open_new(host_params_for(name, prompts))


@asynccontextmanager
async def paired_session(
    runtime: Runtime,
    name: str,
    prompts: RichPromptProvider,
) -> AsyncIterator[Tuple[Session, str]]:
    """Open a session, wait for its file channel and close everything on exit"""
    async with runtime.orchestrator:
        session = await open_session(runtime, name, prompts)
        channel_id = await runtime.orchestrator.wait_for_pairing(session.session_id)
        yield session, channel_id
