"""
PostgreSQL-specific SQL dialect implementation.

Staging objects are plain tables plus native sequences; truncation cascades
because PostgreSQL refuses to truncate a table that is still referenced by a
foreign key, even when the referencing table is already empty.
"""

from typing import List

from sqlalchemy import text
from sqlalchemy.engine import Connection

from ..core.identifier import quote_identifier


class PostgreSQLDialect:
    """PostgreSQL SQL dialect implementation."""

    name = "postgresql"

    def quote(self, identifier: str) -> str:
        """Quote an identifier using PostgreSQL syntax (double quotes)."""
        return quote_identifier(identifier)

    def create_staging_table(self, table: str) -> List[str]:
        return [
            f"CREATE TABLE IF NOT EXISTS {self.quote(table)} "
            "(id_src VARCHAR(255) NOT NULL UNIQUE, id_trg BIGINT NOT NULL UNIQUE)"
        ]

    def drop_staging_table(self, table: str) -> List[str]:
        return [f"DROP TABLE {self.quote(table)}"]

    def clear_staging_table(self, table: str) -> List[str]:
        return [f"DELETE FROM {self.quote(table)}"]

    def create_sequence(self, sequence: str) -> List[str]:
        return [f"CREATE SEQUENCE IF NOT EXISTS {self.quote(sequence)}"]

    def drop_sequence(self, sequence: str) -> List[str]:
        return [f"DROP SEQUENCE IF EXISTS {self.quote(sequence)}"]

    def next_value(self, connection: Connection, sequence: str) -> int:
        """Draw the next value of a sequence inside the caller's transaction."""
        result = connection.execute(
            text("SELECT nextval(CAST(:sequence AS regclass))"),
            {"sequence": self.quote(sequence)},
        )
        return int(result.scalar_one())

    def truncate_table(self, table: str) -> str:
        return f"TRUNCATE TABLE {self.quote(table)} CASCADE"
