"""
Remote file domain module
"""
from .models import FileEntry, FilePreview
from .languages import LANGUAGE_BY_EXTENSION, language_for_extension
from .service import FileService

__all__ = [
    "FileEntry",
    "FilePreview",
    "LANGUAGE_BY_EXTENSION",
    "language_for_extension",
    "FileService",
]
