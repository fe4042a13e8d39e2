"""
Saved profile management
"""
from typing import List, Optional

from ...core.exceptions import ProfileError
from ...core.interfaces import ProfileStore
from ...core.logging import get_logger
from .credentials import CredentialResolver
from .models import SessionProfile

logger = get_logger(__name__)


class ProfileService:
    """Saves, updates and deletes profiles together with their secrets"""

    def __init__(self, store: ProfileStore, credentials: CredentialResolver):
        self.store = store
        self.credentials = credentials

    def list(self) -> List[SessionProfile]:
        return sorted(self.store.list(), key=lambda p: ((p.group or ""), p.title.lower()))

    def get(self, profile_id: str) -> SessionProfile:
        """
        Raises:
            ProfileError: If no profile has this id
        """
        profile = self.store.get(profile_id)
        if profile is None:
            raise ProfileError(f"Profile not found: {profile_id}")
        return profile

    def find(self, name: str) -> Optional[SessionProfile]:
        """Look a profile up by id, display name or ``user@host``"""
        profile = self.store.get(name)
        if profile is not None:
            return profile
        for candidate in self.store.list():
            if name in (candidate.display_name, candidate.title, f"{candidate.username}@{candidate.host}"):
                return candidate
        return None

    async def save(self, profile: SessionProfile, secret: Optional[str] = None) -> None:
        """
        Create or update a profile.

        The secret is only stored when ``profile.save_password`` is set;
        turning it off removes a previously stored secret.
        """
        profile.validate()
        self.store.save(profile)
        if profile.save_password:
            await self.credentials.store(profile, secret)
        else:
            await self.credentials.forget(profile.id)
        logger.info(f"Saved profile '{profile.id}' ({profile.target})")

    async def delete(self, profile_id: str) -> None:
        self.store.delete(profile_id)
        await self.credentials.forget(profile_id)
        logger.info(f"Deleted profile '{profile_id}'")
