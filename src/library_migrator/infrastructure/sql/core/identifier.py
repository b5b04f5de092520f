"""
SQL identifier handling utilities.

Provides proper quoting of SQL identifiers (table, sequence and column
names) to prevent SQL injection.
"""

# PostgreSQL truncates identifiers longer than this
MAX_IDENTIFIER_LENGTH = 63


def quote_identifier(name: str) -> str:
    """
    Quote a SQL identifier with double quotes.

    Double quotes are understood by both PostgreSQL and SQLite.

    Raises:
        ValueError: If name is empty or too long

    Examples:
        >>> quote_identifier("temp_table_author")
        '"temp_table_author"'
        >>> quote_identifier('odd"name')
        '"odd""name"'
    """
    if not name or not isinstance(name, str):
        raise ValueError("Identifier name must be non-empty string")
    if len(name) > MAX_IDENTIFIER_LENGTH:
        raise ValueError(
            f"Identifier too long (max {MAX_IDENTIFIER_LENGTH} characters): {name}"
        )

    escaped = name.replace('"', '""')
    return f'"{escaped}"'

