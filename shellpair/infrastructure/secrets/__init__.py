"""
Secret stores
"""
from .keyring_store import KeyringSecretStore
from .memory_store import MemorySecretStore

__all__ = ["KeyringSecretStore", "MemorySecretStore"]
