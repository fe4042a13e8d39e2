"""
Credential resolution for saved profiles
"""
from typing import Optional

from ...core.interfaces import SecretStore
from ...core.logging import get_logger
from .models import SessionProfile

logger = get_logger(__name__)


class CredentialResolver:
    """
    Looks up stored secrets for profiles.

    A missing or unreachable secret never aborts a connection: it resolves
    to None and the transport decides whether to fail authentication.
    """

    def __init__(self, secret_store: SecretStore):
        self.secret_store = secret_store

    async def resolve(self, profile: SessionProfile) -> Optional[str]:
        if not profile.save_password:
            return None

        try:
            secret = await self.secret_store.lookup(profile.id)
        except Exception as e:
            logger.warning(f"Secret lookup failed for profile '{profile.id}': {e}")
            return None

        if secret is None:
            logger.debug(f"No stored secret for profile '{profile.id}'")
        return secret

    async def store(self, profile: SessionProfile, secret: Optional[str]) -> None:
        """Persist the secret when the profile asks for it"""
        if not profile.save_password or not secret:
            return
        await self.secret_store.store(profile.id, secret)

    async def forget(self, profile_id: str) -> None:
        """Remove a stored secret; a missing entry is not an error"""
        try:
            await self.secret_store.delete(profile_id)
        except Exception as e:
            logger.warning(f"Failed to delete secret for profile '{profile_id}': {e}")
