"""
Profile persistence
"""
from .profile_store import FileProfileStore

__all__ = ["FileProfileStore"]
