"""
SQLAlchemy-backed target store.

Chunk writes run inside ``transaction()`` (one ``engine.begin()`` per chunk);
DDL runs on a separate AUTOCOMMIT connection so that it never shares a
transaction with chunk data.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Connection, Engine

from library_migrator.domain.migration.entities import (
    ENTITY_SPECS,
    TARGET_TABLE_DDL,
    EntitySpec,
)
from library_migrator.domain.migration.models import EntityKind, TargetEntity
from library_migrator.infrastructure.sql import Dialect, get_dialect
from library_migrator.utils.logging import get_logger

logger = get_logger(__name__)


def create_target_engine(url: str, **engine_kwargs: Any) -> Engine:
    """
    Create the engine for the target store.

    SQLite connections get ``PRAGMA foreign_keys=ON`` so that the target
    enforces the same referential constraints as PostgreSQL.
    """
    engine = create_engine(url, **engine_kwargs)
    if engine.dialect.name == "sqlite":

        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):  # noqa: ARG001
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


class SqlTargetStore:
    """
    Target store over a SQLAlchemy engine.

    Usage:
        store = SqlTargetStore(create_target_engine(url))
        with store.transaction() as conn:
            ids = store.insert_batch(conn, EntityKind.AUTHOR, chunk)
    """

    def __init__(
        self,
        engine: Engine,
        dialect: Optional[Dialect] = None,
        specs: Optional[Dict[EntityKind, EntitySpec]] = None,
    ):
        self.engine = engine
        self.dialect = dialect or get_dialect(engine)
        self.specs = specs or ENTITY_SPECS

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """Scoped transaction: commit on normal exit, rollback on any exception."""
        with self.engine.begin() as connection:
            yield connection

    def insert_batch(
        self,
        connection: Connection,
        kind: EntityKind,
        entities: Sequence[TargetEntity],
    ) -> List[int]:
        """
        Insert resolved entities, drawing ids from the kind's staging sequence.

        Returns:
            Assigned target ids in the order of ``entities``
        """
        if not entities:
            return []

        spec = self.specs[kind]
        target_ids: List[int] = []
        rows: List[Dict[str, Any]] = []
        for entity in entities:
            target_id = self.dialect.next_value(connection, spec.sequence)
            target_ids.append(target_id)
            rows.append(
                spec.row_for(target_id, entity.fields, entity.parent_target_ids)
            )

        columns = spec.columns
        columns_sql = ", ".join(self.dialect.quote(c) for c in columns)
        placeholders = ", ".join(f":{c}" for c in columns)
        connection.execute(
            text(
                f"INSERT INTO {self.dialect.quote(spec.table)} ({columns_sql}) "
                f"VALUES ({placeholders})"
            ),
            rows,
        )
        return target_ids

    def execute_ddl(self, statement: str) -> None:
        with self.engine.connect().execution_options(
            isolation_level="AUTOCOMMIT"
        ) as connection:
            connection.execute(text(statement))
        logger.debug("target_store.ddl.executed", statement=statement)

    def truncate_table(self, connection: Connection, kind: EntityKind) -> None:
        connection.execute(text(self.dialect.truncate_table(self.specs[kind].table)))

    def count(self, kind: EntityKind) -> int:
        table = self.dialect.quote(self.specs[kind].table)
        with self.engine.connect() as connection:
            return int(
                connection.execute(text(f"SELECT COUNT(*) FROM {table}")).scalar_one()
            )

    def create_target_tables(self) -> None:
        """Create the four target tables if they do not exist yet."""
        for statement in TARGET_TABLE_DDL:
            self.execute_ddl(statement)
        logger.info("target_store.tables.created", tables=len(TARGET_TABLE_DDL))

    def dispose(self) -> None:
        self.engine.dispose()
