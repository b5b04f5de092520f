"""Chunk writer: one chunk, one target transaction."""

from __future__ import annotations

from typing import List, Sequence

from sqlalchemy.exc import SQLAlchemyError

from library_migrator.utils.logging import get_logger

from .exceptions import MigrationError, WriteError
from .id_mapper import IdMapper
from .models import EntityKind, IdMapping, TargetEntity
from .protocols import TargetStore

logger = get_logger(__name__)


class ChunkWriter:
    """
    Commit resolved entities to the target together with their ID mappings.

    Within one transaction the chunk is inserted (receiving surrogate keys)
    and the mappings are staged; only after commit are the mappings
    published to the mapper. Any failure rolls back the whole chunk.
    """

    def __init__(self, target: TargetStore, id_mapper: IdMapper, kind: EntityKind):
        self.target = target
        self.id_mapper = id_mapper
        self.kind = kind
        self.chunks_written = 0

    def write(self, chunk: Sequence[TargetEntity]) -> List[IdMapping]:
        """
        Raises:
            WriteError: If insertion or commit fails; nothing of the chunk
                is visible afterwards
        """
        if not chunk:
            return []

        try:
            with self.target.transaction() as connection:
                target_ids = self.target.insert_batch(connection, self.kind, chunk)
                if len(target_ids) != len(chunk):
                    raise WriteError(
                        f"Target assigned {len(target_ids)} ids for "
                        f"{len(chunk)} {self.kind.value} rows",
                        kind=self.kind,
                    )
                mappings = [
                    IdMapping(self.kind, entity.source_id, target_id)
                    for entity, target_id in zip(chunk, target_ids)
                ]
                self.id_mapper.stage(connection, mappings)
        except MigrationError:
            logger.error(
                "migration.chunk.rolled_back",
                kind=self.kind.value,
                chunk=self.chunks_written + 1,
                size=len(chunk),
            )
            raise
        except SQLAlchemyError as e:
            logger.error(
                "migration.chunk.rolled_back",
                kind=self.kind.value,
                chunk=self.chunks_written + 1,
                size=len(chunk),
                error=str(e),
            )
            raise WriteError(
                f"Failed to commit {self.kind.value} chunk "
                f"#{self.chunks_written + 1}: {e}",
                kind=self.kind,
            ) from e

        self.id_mapper.publish(mappings)
        self.chunks_written += 1
        logger.info(
            "migration.chunk.committed",
            kind=self.kind.value,
            chunk=self.chunks_written,
            size=len(chunk),
        )
        return mappings
