"""
shellpair - SSH terminal sessions with a paired SFTP channel

Opens an interactive terminal to a remote host and, once the terminal has
settled, pairs a file-transfer channel to the same target:
- Saved connection profiles with optional keyring-backed passwords
- Background pairing that is cancelled by close and reconnect
- Classified, human-readable connection errors
- Remote directory listing, preview, upload and download
"""

__version__ = "0.1.0"

from .core import (
    ShellpairError,
    ClassifiedError,
    ChannelNotReadyError,
    SessionNotFoundError,
    setup_logging,
)
from .domain.session import (
    ErrorClassifier,
    HostParams,
    OrchestratorConfig,
    PairingState,
    Session,
    SessionOrchestrator,
    SessionProfile,
    SessionRegistry,
    TargetDescriptor,
)
from .domain.files import FileEntry, FilePreview, FileService

__all__ = [
    # Version
    "__version__",
    # Errors
    "ShellpairError",
    "ClassifiedError",
    "ChannelNotReadyError",
    "SessionNotFoundError",
    "setup_logging",
    # Sessions
    "ErrorClassifier",
    "HostParams",
    "OrchestratorConfig",
    "PairingState",
    "Session",
    "SessionOrchestrator",
    "SessionProfile",
    "SessionRegistry",
    "TargetDescriptor",
    # Files
    "FileEntry",
    "FilePreview",
    "FileService",
]
