"""SQL dialects supported as migration targets."""

from typing import List, Protocol

from sqlalchemy.engine import Connection, Engine

from .postgresql import PostgreSQLDialect
from .sqlite import SQLiteDialect


class Dialect(Protocol):
    """Protocol for target SQL dialects."""

    name: str

    def quote(self, identifier: str) -> str: ...
    def create_staging_table(self, table: str) -> List[str]: ...
    def drop_staging_table(self, table: str) -> List[str]: ...
    def clear_staging_table(self, table: str) -> List[str]: ...
    def create_sequence(self, sequence: str) -> List[str]: ...
    def drop_sequence(self, sequence: str) -> List[str]: ...
    def next_value(self, connection: Connection, sequence: str) -> int: ...
    def truncate_table(self, table: str) -> str: ...


_DIALECTS = {
    PostgreSQLDialect.name: PostgreSQLDialect,
    SQLiteDialect.name: SQLiteDialect,
}


def get_dialect(engine: Engine) -> Dialect:
    """
    Pick the dialect implementation matching a SQLAlchemy engine.

    Raises:
        ValueError: If the engine's database is not a supported target
    """
    dialect_cls = _DIALECTS.get(engine.dialect.name)
    if dialect_cls is None:
        raise ValueError(
            f"Unsupported target database '{engine.dialect.name}'. "
            f"Supported: {', '.join(sorted(_DIALECTS))}"
        )
    return dialect_cls()


__all__ = ["Dialect", "PostgreSQLDialect", "SQLiteDialect", "get_dialect"]
