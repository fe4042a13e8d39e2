"""
Core infrastructure layer
"""
from .client import RemoteClient, describe_error
from .exceptions import (
    ShellpairError,
    ConfigError,
    ProfileError,
    SessionNotFoundError,
    TransportError,
    ChannelNotFoundError,
    ChannelNotReadyError,
    ClassifiedError,
    TransportRefusedError,
    TransportTimeoutError,
    AuthFailedError,
    HostKeyRejectedError,
    NetworkError,
    PermissionDeniedError,
    UnknownTransportError,
)
from .logging import setup_logging, get_logger, get_stdout_console, get_stderr_console
from .interfaces import ChannelTransport, SecretStore, ProfileStore
from .telemetry import Telemetry
from .utils import load_ssh_config, format_size, format_permissions, join_remote_path

__all__ = [
    "RemoteClient",
    "describe_error",
    "ShellpairError",
    "ConfigError",
    "ProfileError",
    "SessionNotFoundError",
    "TransportError",
    "ChannelNotFoundError",
    "ChannelNotReadyError",
    "ClassifiedError",
    "TransportRefusedError",
    "TransportTimeoutError",
    "AuthFailedError",
    "HostKeyRejectedError",
    "NetworkError",
    "PermissionDeniedError",
    "UnknownTransportError",
    "setup_logging",
    "get_logger",
    "get_stdout_console",
    "get_stderr_console",
    "ChannelTransport",
    "SecretStore",
    "ProfileStore",
    "Telemetry",
    "load_ssh_config",
    "format_size",
    "format_permissions",
    "join_remote_path",
]
