"""
SQLite SQL dialect implementation.

SQLite has no sequences, so a sequence is emulated by a single-row counter
table. Unlike a PostgreSQL sequence the counter is transactional: values
drawn by a rolled-back chunk are handed out again.
"""

from typing import List

from sqlalchemy import text
from sqlalchemy.engine import Connection

from ..core.identifier import quote_identifier


class SQLiteDialect:
    """SQLite SQL dialect implementation."""

    name = "sqlite"

    def quote(self, identifier: str) -> str:
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
        quoted = self.quote(sequence)
        return [
            f"CREATE TABLE IF NOT EXISTS {quoted} (value BIGINT NOT NULL)",
            f"INSERT INTO {quoted} (value) "
            f"SELECT 0 WHERE NOT EXISTS (SELECT 1 FROM {quoted})",
        ]

    def drop_sequence(self, sequence: str) -> List[str]:
        return [f"DROP TABLE IF EXISTS {self.quote(sequence)}"]

    def next_value(self, connection: Connection, sequence: str) -> int:
        quoted = self.quote(sequence)
        connection.execute(text(f"UPDATE {quoted} SET value = value + 1"))
        result = connection.execute(text(f"SELECT value FROM {quoted}"))
        return int(result.scalar_one())

    def truncate_table(self, table: str) -> str:
        return f"DELETE FROM {self.quote(table)}"
