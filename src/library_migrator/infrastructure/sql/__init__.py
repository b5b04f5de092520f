"""
SQL module for centralized SQL generation.

Provides identifier quoting plus the dialect-specific statements the migration
needs (staging tables, sequences, truncation).
"""

from .core.identifier import quote_identifier
from .dialects import Dialect, PostgreSQLDialect, SQLiteDialect, get_dialect

__all__ = [
    "quote_identifier",
    "Dialect",
    "PostgreSQLDialect",
    "SQLiteDialect",
    "get_dialect",
]
