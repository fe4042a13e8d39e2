"""
Remote file domain models
"""
from dataclasses import dataclass
from typing import Optional, Dict, Any

from ...core.constants import HIDDEN_FILE_MARKER, PARENT_DIRECTORY_ENTRY


@dataclass(frozen=True)
class FileEntry:
    """One entry of a remote directory listing"""
    name: str
    path: str
    is_directory: bool
    size: int = 0
    modified_at: Optional[float] = None
    permissions: str = ""

    @property
    def is_parent(self) -> bool:
        return self.name == PARENT_DIRECTORY_ENTRY

    @property
    def is_hidden(self) -> bool:
        return self.name.startswith(HIDDEN_FILE_MARKER) and not self.is_parent

    @property
    def extension(self) -> str:
        """Lowercased text after the last dot, or '' when there is none"""
        if "." not in self.name.lstrip("."):
            return ""
        return self.name.rsplit(".", 1)[-1].lower()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "name": self.name,
            "path": self.path,
            "is_directory": self.is_directory,
            "size": self.size,
            "modified_at": self.modified_at,
            "permissions": self.permissions,
        }


@dataclass(frozen=True)
class FilePreview:
    """File content prepared for display"""
    content: str
    language: str
    path: str
    name: str
