"""
System keyring secret storage
"""
import asyncio
from typing import Optional

import keyring
from keyring.errors import PasswordDeleteError

from ...core.constants import KEYRING_SERVICE
from ...core.interfaces import SecretStore
from ...core.logging import get_logger

logger = get_logger(__name__)


class KeyringSecretStore(SecretStore):
    """
    Secrets kept in the OS keyring (Secret Service, Keychain, Credential
    Locker), one entry per profile id under a single service name.

    keyring calls block, so they run in a worker thread.
    """

    def __init__(self, service: str = KEYRING_SERVICE):
        self.service = service

    async def lookup(self, profile_id: str) -> Optional[str]:
        return await asyncio.to_thread(keyring.get_password, self.service, profile_id)

    async def store(self, profile_id: str, secret: str) -> None:
        await asyncio.to_thread(keyring.set_password, self.service, profile_id, secret)
        logger.debug(f"Stored secret for profile '{profile_id}'")

    async def delete(self, profile_id: str) -> None:
        try:
            await asyncio.to_thread(keyring.delete_password, self.service, profile_id)
        except PasswordDeleteError:
            logger.debug(f"No stored secret to delete for profile '{profile_id}'")
