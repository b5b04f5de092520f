"""
Schema preparer / cleaner for the staging objects of a run.

Every statement is executed through ``TargetStore.execute_ddl`` and so
outside the chunk transactions. Object names derive from the entity kind
alone: one concurrent run per target schema.
"""

from __future__ import annotations

from typing import List

from sqlalchemy.exc import SQLAlchemyError

from library_migrator.domain.migration.entities import get_spec
from library_migrator.domain.migration.exceptions import SchemaPreparationError
from library_migrator.domain.migration.models import EntityKind
from library_migrator.io.loader.target_store import SqlTargetStore
from library_migrator.utils.logging import get_logger

logger = get_logger(__name__)


class SchemaManager:
    """Create and drop staging tables and sequences."""

    def __init__(self, target: SqlTargetStore):
        self.target = target
        self.dialect = target.dialect

    def create_staging(self, kind: EntityKind) -> None:
        """
        Create the kind's staging table.

        A table left behind by a failed run is reused and emptied, since ID
        mappings never outlive their run.
        """
        table = get_spec(kind).staging_table
        self._run(
            "create_staging",
            kind,
            self.dialect.create_staging_table(table)
            + self.dialect.clear_staging_table(table),
        )

    def drop_staging(self, kind: EntityKind) -> None:
        self._run(
            "drop_staging",
            kind,
            self.dialect.drop_staging_table(get_spec(kind).staging_table),
        )

    def create_sequence(self, kind: EntityKind) -> None:
        self._run(
            "create_sequence",
            kind,
            self.dialect.create_sequence(get_spec(kind).sequence),
        )

    def drop_sequence(self, kind: EntityKind) -> None:
        self._run(
            "drop_sequence",
            kind,
            self.dialect.drop_sequence(get_spec(kind).sequence),
        )

    def _run(self, operation: str, kind: EntityKind, statements: List[str]) -> None:
        for statement in statements:
            try:
                self.target.execute_ddl(statement)
            except SQLAlchemyError as e:
                logger.error(
                    "schema.ddl.failed",
                    operation=operation,
                    kind=kind.value,
                    statement=statement,
                    error=str(e),
                )
                raise SchemaPreparationError(
                    f"{operation} failed for {kind.value}: {e}", kind=kind
                ) from e
        logger.info("schema.ddl.completed", operation=operation, kind=kind.value)
