"""
Unified exception definitions
"""
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..domain.session.classifier import ErrorCategory, FormattedMessage
    from ..domain.session.models import TargetDescriptor


class ShellpairError(Exception):
    """Base exception class"""
    pass


class ConfigError(ShellpairError):
    """Configuration error"""
    pass


class ProfileError(ShellpairError):
    """Invalid or missing session profile"""
    pass


class SessionNotFoundError(ShellpairError):
    """Session id is not registered"""
    pass


class TransportError(ShellpairError):
    """Raw failure reported by a terminal or file-transfer transport"""
    pass


class ChannelNotFoundError(TransportError):
    """Channel id is unknown to the transport (benign on close paths)"""

    def __init__(self, channel_id: str):
        super().__init__(f"Channel not found: {channel_id}")
        self.channel_id = channel_id


class ChannelNotReadyError(ShellpairError):
    """File channel is not paired or no longer live"""

    def __init__(self, channel_id: Optional[str], reason: str = "not paired"):
        super().__init__(f"File channel {channel_id!r} is not ready: {reason}")
        self.channel_id = channel_id
        self.reason = reason


class ClassifiedError(ShellpairError):
    """
    Transport failure mapped to a user-facing category.

    ``str(error)`` is the templated multi-line remediation message.
    """

    def __init__(
        self,
        formatted: "FormattedMessage",
        raw: str,
        path: Optional[str] = None,
    ):
        super().__init__(formatted.text)
        self.formatted = formatted
        self.raw = raw
        self.path = path

    @property
    def category(self) -> "ErrorCategory":
        return self.formatted.category

    @property
    def target(self) -> "TargetDescriptor":
        return self.formatted.target

    @property
    def message(self) -> str:
        return self.formatted.text


class TransportRefusedError(ClassifiedError):
    """Connection refused by the remote host"""
    pass


class TransportTimeoutError(ClassifiedError):
    """Connection or operation timed out"""
    pass


class AuthFailedError(ClassifiedError):
    """Authentication rejected"""
    pass


class HostKeyRejectedError(ClassifiedError):
    """Host key verification failed"""
    pass


class NetworkError(ClassifiedError):
    """Generic network failure"""
    pass


class PermissionDeniedError(ClassifiedError):
    """Remote permission denied"""
    pass


class UnknownTransportError(ClassifiedError):
    """Failure matching no known category"""
    pass
