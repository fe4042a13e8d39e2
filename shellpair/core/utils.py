"""
Core utility functions
"""
import stat
import posixpath
from pathlib import Path
from typing import Dict, Any, Optional

import paramiko

from .constants import DEFAULT_SSH_PORT


# ============================================================
# SSH Config
# ============================================================

SSH_CONFIG_PATH = "~/.ssh/config"


def load_ssh_config(hostname: str, config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Resolve a Host alias from ~/.ssh/config.

    Args:
        hostname: Host name or alias
        config_path: Alternative config file (defaults to ~/.ssh/config)

    Returns:
        Dictionary containing host, user, port, key_file. Unknown aliases
        and a missing config file resolve to the hostname itself.
    """
    path = Path(config_path or SSH_CONFIG_PATH).expanduser()
    if not path.exists():
        return {"host": hostname, "user": None, "port": DEFAULT_SSH_PORT, "key_file": None}

    ssh_config = paramiko.SSHConfig.from_path(str(path))
    entry = ssh_config.lookup(hostname)

    return {
        "host": entry.get("hostname", hostname),
        "user": entry.get("user", None),
        "port": int(entry.get("port", DEFAULT_SSH_PORT)),
        "key_file": entry.get("identityfile", [None])[0],
    }


# ============================================================
# Formatting
# ============================================================

def format_size(size_bytes: int) -> str:
    """
    Format bytes to human-readable size string.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted string like "100 MB", "1.5 GB", etc.
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    else:
        return f"{size_bytes / (1024 * 1024 * 1024):.1f} GB"


def format_permissions(mode: Optional[int]) -> str:
    """Render st_mode as an ``ls -l`` style string, e.g. ``drwxr-xr-x``"""
    if mode is None:
        return "?---------"
    return stat.filemode(mode)


def join_remote_path(directory: str, name: str) -> str:
    """Join a remote directory and entry name with POSIX semantics"""
    if name == "..":
        return posixpath.dirname(directory.rstrip("/")) or "/"
    return posixpath.join(directory, name)
