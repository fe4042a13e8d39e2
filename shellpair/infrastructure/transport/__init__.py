"""
SSH/SFTP channel transport
"""
from .paramiko_transport import ParamikoTransport

__all__ = ["ParamikoTransport"]
