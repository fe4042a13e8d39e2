"""
Extension to language label lookup for file previews
"""
from typing import Dict

from ...core.constants import DEFAULT_LANGUAGE

LANGUAGE_BY_EXTENSION: Dict[str, str] = {
    "js": "javascript",
    "jsx": "javascript",
    "ts": "typescript",
    "tsx": "typescript",
    "html": "html",
    "css": "css",
    "scss": "scss",
    "less": "less",
    "json": "json",
    "md": "markdown",
    "py": "python",
    "java": "java",
    "c": "c",
    "h": "c",
    "cpp": "cpp",
    "hpp": "cpp",
    "cs": "csharp",
    "go": "go",
    "rs": "rust",
    "php": "php",
    "rb": "ruby",
    "sh": "shell",
    "bat": "bat",
    "ps1": "powershell",
    "sql": "sql",
    "vue": "vue",
    "xml": "xml",
    "yaml": "yaml",
    "yml": "yaml",
    "toml": "toml",
    "ini": "ini",
    "conf": "plaintext",
    "log": "plaintext",
    "txt": "plaintext",
}


def language_for_extension(extension: str) -> str:
    """Return the language label for a file extension (without the dot)"""
    return LANGUAGE_BY_EXTENSION.get(extension.lower(), DEFAULT_LANGUAGE)
