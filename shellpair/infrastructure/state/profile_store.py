"""
File-based profile storage implementation
"""
import json
from pathlib import Path
from typing import List, Optional

from ...core.interfaces import ProfileStore
from ...core.exceptions import ProfileError
from ...core.constants import DEFAULT_PROFILES_DIR
from ...core.logging import get_logger
from ...domain.session.models import SessionProfile

logger = get_logger(__name__)


class FileProfileStore(ProfileStore):
    """
    File-based profile storage.

    One JSON document per profile: ``{profiles_dir}/{id}.json``.
    Secrets are never written here.
    """

    def __init__(self, profiles_dir: Optional[Path] = None):
        """
        Initialize file profile store.

        Args:
            profiles_dir: Directory for profile files
        """
        if profiles_dir is None:
            profiles_dir = Path(DEFAULT_PROFILES_DIR)

        self.profiles_dir = Path(profiles_dir).expanduser()
        self.profiles_dir.mkdir(parents=True, exist_ok=True)

    def _get_profile_file(self, profile_id: str) -> Path:
        """Get file path for a profile id"""
        if not profile_id or "/" in profile_id or profile_id in (".", ".."):
            raise ProfileError(f"Invalid profile id: {profile_id!r}")
        return self.profiles_dir / f"{profile_id}.json"

    def save(self, profile: SessionProfile) -> None:
        """Save (create or replace) a profile"""
        profile_file = self._get_profile_file(profile.id)
        profile_file.write_text(json.dumps(profile.to_dict(), indent=2), encoding='utf-8')

    def get(self, profile_id: str) -> Optional[SessionProfile]:
        """Load one profile"""
        profile_file = self._get_profile_file(profile_id)
        if not profile_file.exists():
            return None
        return self._load(profile_file)

    def _load(self, profile_file: Path) -> Optional[SessionProfile]:
        try:
            return SessionProfile.from_dict(json.loads(profile_file.read_text(encoding='utf-8')))
        except (OSError, ValueError, ProfileError) as e:
            logger.warning(f"Skipping unreadable profile {profile_file.name}: {e}")
            return None

    def delete(self, profile_id: str) -> None:
        """Delete a profile; deleting an unknown id is a no-op"""
        profile_file = self._get_profile_file(profile_id)
        if profile_file.exists():
            profile_file.unlink()

    def list(self) -> List[SessionProfile]:
        """List all readable profiles"""
        profiles = []
        for profile_file in sorted(self.profiles_dir.glob("*.json")):
            profile = self._load(profile_file)
            if profile is not None:
                profiles.append(profile)
        return profiles
