"""
Session domain models
"""
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Dict, Any, FrozenSet

from ...core.constants import (
    DEFAULT_SSH_PORT,
    DEFAULT_SETTLE_DELAY,
    DEFAULT_PAIRING_WAIT_TIMEOUT,
    DEFAULT_TERMINAL_COLS,
    DEFAULT_TERMINAL_ROWS,
)
from ...core.exceptions import ProfileError


AUTH_PASSWORD = "password"
AUTH_PRIVATE_KEY = "private_key"
AUTH_MODES = (AUTH_PASSWORD, AUTH_PRIVATE_KEY)


class PairingState(str, Enum):
    """File channel pairing state of a session"""
    UNPAIRED = "unpaired"
    PAIRING = "pairing"
    PAIRED = "paired"
    PAIRING_FAILED = "pairing_failed"


@dataclass(frozen=True)
class TargetDescriptor:
    """The (username, host, port) tuple both channels of a session connect to"""
    username: str
    host: str
    port: int = DEFAULT_SSH_PORT

    def __str__(self) -> str:
        return f"{self.username}@{self.host}:{self.port}"


@dataclass(frozen=True)
class SessionProfile:
    """Saved connection descriptor"""
    id: str
    host: str
    username: str
    port: int = DEFAULT_SSH_PORT
    auth_mode: str = AUTH_PASSWORD
    save_password: bool = False
    display_name: Optional[str] = None
    group: Optional[str] = None
    tags: FrozenSet[str] = frozenset()
    private_key: Optional[str] = None

    @classmethod
    def create(cls, host: str, username: str, **kwargs: Any) -> "SessionProfile":
        """Build a new profile with a fresh id"""
        profile = cls(id=uuid.uuid4().hex, host=host, username=username, **kwargs)
        profile.validate()
        return profile

    @property
    def target(self) -> TargetDescriptor:
        return TargetDescriptor(username=self.username, host=self.host, port=self.port)

    @property
    def title(self) -> str:
        if self.display_name:
            return self.display_name
        return f"{self.username}@{self.host}" if self.username else self.host

    def validate(self) -> None:
        """Validate profile fields"""
        if not self.id:
            raise ProfileError("Profile id must not be empty")
        if not self.host:
            raise ProfileError("Profile host must not be empty")
        if not self.username:
            raise ProfileError(f"Profile '{self.id}': username must not be empty")
        if not isinstance(self.port, int) or not (1 <= self.port <= 65535):
            raise ProfileError(f"Invalid port: {self.port}")
        if self.auth_mode not in AUTH_MODES:
            raise ProfileError(
                f"Invalid auth mode: {self.auth_mode}, must be one of {', '.join(AUTH_MODES)}"
            )
        if self.auth_mode == AUTH_PRIVATE_KEY and not self.private_key:
            raise ProfileError(f"Profile '{self.id}': private_key auth requires a key path")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "id": self.id,
            "host": self.host,
            "port": self.port,
            "username": self.username,
            "auth_mode": self.auth_mode,
            "save_password": self.save_password,
            "display_name": self.display_name,
            "group": self.group,
            "tags": sorted(self.tags),
            "private_key": self.private_key,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionProfile":
        """Create from dictionary"""
        try:
            profile = cls(
                id=data["id"],
                host=data["host"],
                username=data["username"],
                port=int(data.get("port") or DEFAULT_SSH_PORT),
                auth_mode=data.get("auth_mode", AUTH_PASSWORD),
                save_password=bool(data.get("save_password", False)),
                display_name=data.get("display_name"),
                group=data.get("group"),
                tags=frozenset(data.get("tags") or ()),
                private_key=data.get("private_key"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ProfileError(f"Malformed profile data: {e}") from e
        profile.validate()
        return profile


@dataclass
class HostParams:
    """Ad-hoc connection request, not backed by a saved profile"""
    host: str
    username: str
    port: int = DEFAULT_SSH_PORT
    password: Optional[str] = None
    private_key: Optional[str] = None
    display_name: Optional[str] = None
    group: Optional[str] = None
    tags: FrozenSet[str] = frozenset()

    @property
    def target(self) -> TargetDescriptor:
        return TargetDescriptor(username=self.username, host=self.host, port=self.port)

    def validate(self) -> None:
        """Validate connection fields with the same rules as a profile"""
        if not self.host:
            raise ProfileError("Host must not be empty")
        if not self.username:
            raise ProfileError(f"Username must not be empty for {self.host}")
        if not isinstance(self.port, int) or not (1 <= self.port <= 65535):
            raise ProfileError(f"Invalid port: {self.port}")

    def to_profile(self, save_password: bool = False) -> SessionProfile:
        """Turn the request into a profile that can be saved"""
        return SessionProfile.create(
            host=self.host,
            username=self.username,
            port=self.port,
            auth_mode=AUTH_PRIVATE_KEY if self.private_key else AUTH_PASSWORD,
            save_password=save_password,
            display_name=self.display_name,
            group=self.group,
            tags=frozenset(self.tags),
            private_key=self.private_key,
        )


@dataclass
class Session:
    """A terminal channel and its (possibly absent) paired file channel"""
    session_id: str
    target: TargetDescriptor
    title: str
    terminal_channel_id: str
    profile: Optional[SessionProfile] = None
    file_channel_id: Optional[str] = None
    pairing_state: PairingState = PairingState.UNPAIRED
    generation: int = 0
    created_at: float = field(default_factory=time.time)

    @property
    def is_paired(self) -> bool:
        return self.pairing_state is PairingState.PAIRED

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "session_id": self.session_id,
            "target": str(self.target),
            "title": self.title,
            "profile_id": self.profile.id if self.profile else None,
            "terminal_channel_id": self.terminal_channel_id,
            "file_channel_id": self.file_channel_id,
            "pairing_state": self.pairing_state.value,
            "generation": self.generation,
            "created_at": self.created_at,
        }


@dataclass
class OrchestratorConfig:
    """Session orchestrator configuration"""
    # Stabilization window between terminal open and the file channel attempt
    settle_delay: float = DEFAULT_SETTLE_DELAY
    default_cols: int = DEFAULT_TERMINAL_COLS
    default_rows: int = DEFAULT_TERMINAL_ROWS
    pairing_wait_timeout: float = DEFAULT_PAIRING_WAIT_TIMEOUT

    def validate(self) -> None:
        """Validate configuration"""
        from ...core.exceptions import ConfigError

        if self.settle_delay < 0:
            raise ConfigError(f"Invalid settle_delay: {self.settle_delay}")
        if self.default_cols <= 0 or self.default_rows <= 0:
            raise ConfigError(
                f"Invalid terminal size: {self.default_cols}x{self.default_rows}"
            )
        if self.pairing_wait_timeout <= 0:
            raise ConfigError(f"Invalid pairing_wait_timeout: {self.pairing_wait_timeout}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "settle_delay": self.settle_delay,
            "default_cols": self.default_cols,
            "default_rows": self.default_rows,
            "pairing_wait_timeout": self.pairing_wait_timeout,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OrchestratorConfig":
        """Create from dictionary"""
        return cls(
            settle_delay=float(data.get("settle_delay", DEFAULT_SETTLE_DELAY)),
            default_cols=int(data.get("default_cols", DEFAULT_TERMINAL_COLS)),
            default_rows=int(data.get("default_rows", DEFAULT_TERMINAL_ROWS)),
            pairing_wait_timeout=float(
                data.get("pairing_wait_timeout", DEFAULT_PAIRING_WAIT_TIMEOUT)
            ),
        )


@dataclass(frozen=True)
class PairingCompleted:
    """Emitted once when a session's file channel becomes available"""
    session_id: str
    file_channel_id: str
