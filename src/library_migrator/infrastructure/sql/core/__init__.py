"""Core SQL utilities package."""

from .identifier import quote_identifier

__all__ = [
    "quote_identifier",
]
