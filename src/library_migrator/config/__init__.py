"""Configuration management for library-migrator.

Settings are loaded from environment variables (``LMG_`` prefix) and an
optional ``.env`` file, validated with Pydantic BaseSettings.

Usage:
    >>> from library_migrator.config import get_settings
    >>> settings = get_settings()
    >>> settings.chunk_size
    5
"""

from library_migrator.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
