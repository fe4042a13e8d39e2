from __future__ import annotations

import errno
import socket
from pathlib import Path
from typing import Optional

import paramiko

from .constants import DEFAULT_SSH_PORT, DEFAULT_SSH_TIMEOUT, DEFAULT_TERM_TYPE


class RemoteClient:
    """
    Thin wrapper around paramiko.SSHClient:
    - password or private key login (Ed25519 / RSA / ECDSA)
    - interactive shell channel and SFTP helpers
    - context manager support
    """
    def __init__(
        self,
        host: str,
        user: str,
        port: int = DEFAULT_SSH_PORT,
        password: Optional[str] = None,
        key_path: Optional[str] = None,
        timeout: float = DEFAULT_SSH_TIMEOUT,
    ) -> None:
        self.host = host
        self.user = user
        self.port = port
        self.password = password
        self.key_path = key_path
        self.timeout = timeout

        self.client = paramiko.SSHClient()
        self.client.load_system_host_keys()
        self.client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

    # --------------------
    # Connection management
    # --------------------
    def connect(self) -> None:
        kwargs = dict(
            hostname=self.host,
            port=self.port,
            username=self.user,
            timeout=self.timeout,
            banner_timeout=self.timeout,
            auth_timeout=self.timeout,
        )
        if self.key_path:
            # A password given alongside a key is the key passphrase
            kwargs["pkey"] = self._load_private_key(self.key_path, self.password)
            kwargs["look_for_keys"] = False
        elif self.password:
            kwargs["password"] = self.password
            kwargs["look_for_keys"] = False
            kwargs["allow_agent"] = False

        self.client.connect(**kwargs)

    def _load_private_key(self, path: str, passphrase: Optional[str]) -> paramiko.PKey:
        """Try each supported key type in turn"""
        p = Path(path).expanduser()
        last_error: Optional[Exception] = None
        for key_class in (paramiko.Ed25519Key, paramiko.RSAKey, paramiko.ECDSAKey):
            try:
                return key_class.from_private_key_file(str(p), password=passphrase)
            except paramiko.PasswordRequiredException:
                raise paramiko.AuthenticationException(
                    f"Private key {p} is encrypted and needs a passphrase (password)"
                )
            except (paramiko.SSHException, ValueError) as e:
                last_error = e
        raise paramiko.AuthenticationException(f"Failed to load private key at {p}: {last_error}")

    # --------------------
    # Channels
    # --------------------
    def open_shell(self, cols: int, rows: int, term: str = DEFAULT_TERM_TYPE) -> paramiko.Channel:
        """Open an interactive pty shell"""
        return self.client.invoke_shell(term=term, width=cols, height=rows)

    def open_sftp(self) -> paramiko.SFTPClient:
        return self.client.open_sftp()

    def close(self) -> None:
        self.client.close()

    # --------------------
    # Context manager
    # --------------------
    def __enter__(self) -> RemoteClient:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()


def describe_error(exc: BaseException) -> str:
    """
    Render a paramiko/socket failure as text that names its condition.

    The wording feeds the error classifier's keyword scan.
    """
    if isinstance(exc, paramiko.BadHostKeyException):
        return f"host key mismatch: {exc}"
    if isinstance(exc, paramiko.AuthenticationException):
        return f"authentication failed: {exc}"
    if isinstance(exc, paramiko.ssh_exception.NoValidConnectionsError):
        codes = {getattr(e, "errno", None) for e in exc.errors.values()}
        if errno.ECONNREFUSED in codes:
            return f"connection refused: {exc}"
        return f"network error: {exc}"
    if isinstance(exc, (socket.timeout, TimeoutError)):
        return f"timeout: {exc}"
    if isinstance(exc, ConnectionRefusedError):
        return f"connection refused: {exc}"
    if isinstance(exc, PermissionError) or getattr(exc, "errno", None) == errno.EACCES:
        return f"permission denied: {exc}"
    if isinstance(exc, FileNotFoundError) or getattr(exc, "errno", None) == errno.ENOENT:
        return f"no such file: {exc}"
    if isinstance(exc, socket.gaierror):
        return f"network error: cannot resolve host ({exc})"
    if isinstance(exc, (ConnectionError, EOFError)):
        return f"network error: {exc}"
    return str(exc) or exc.__class__.__name__
