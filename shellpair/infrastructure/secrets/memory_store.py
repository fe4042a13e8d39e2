"""
In-memory secret storage (tests and keyring-less environments)
"""
from typing import Dict, Optional

from ...core.interfaces import SecretStore


class MemorySecretStore(SecretStore):
    """Process-local secrets; nothing survives a restart"""

    def __init__(self, secrets: Optional[Dict[str, str]] = None):
        self._secrets: Dict[str, str] = dict(secrets or {})
        self.lookups = 0

    async def lookup(self, profile_id: str) -> Optional[str]:
        self.lookups += 1
        return self._secrets.get(profile_id)

    async def store(self, profile_id: str, secret: str) -> None:
        self._secrets[profile_id] = secret

    async def delete(self, profile_id: str) -> None:
        self._secrets.pop(profile_id, None)
