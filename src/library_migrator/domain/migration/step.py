"""Generic migration step: Reader -> FK Resolver -> Chunk Writer."""

from __future__ import annotations

from typing import List

from library_migrator.utils.logging import bind_context

from .exceptions import MigrationError
from .id_mapper import IdMapper
from .models import EntityKind, StepResult, TargetEntity
from .protocols import SourceStore, TargetStore
from .reader import EntityReader
from .resolver import ForeignKeyResolver
from .writer import ChunkWriter


class MigrationStep:
    """
    Migrate every entity of one kind.

    Entities are resolved one by one and buffered; every ``chunk_size``
    entities the buffer is committed as one transaction. Chunks commit in
    read order. Chunk size affects commit granularity and memory only, never
    the migrated content.
    """

    def __init__(
        self,
        source: SourceStore,
        target: TargetStore,
        id_mapper: IdMapper,
        page_size: int = 10,
    ):
        self.source = source
        self.target = target
        self.id_mapper = id_mapper
        self.page_size = page_size

    def execute(self, kind: EntityKind, chunk_size: int) -> StepResult:
        """
        Raises:
            ReadError, MappingError, WriteError: Fatal to the step; chunks
                committed before the failure stay committed
        """
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")

        step_name = f"migrate_{kind.value}"
        log = bind_context(__name__, step=step_name, kind=kind.value)
        result = StepResult(step_name=step_name, kind=kind)

        reader = EntityReader(self.source, kind, self.page_size)
        resolver = ForeignKeyResolver(self.id_mapper)
        writer = ChunkWriter(self.target, self.id_mapper, kind)
        buffer: List[TargetEntity] = []

        log.info(
            "migration.step.started", chunk_size=chunk_size, page_size=self.page_size
        )
        try:
            for entity in reader:
                result.read_count += 1
                buffer.append(resolver.resolve(entity))
                if len(buffer) >= chunk_size:
                    result.migrated_count += len(writer.write(buffer))
                    result.chunk_count += 1
                    buffer = []

            if buffer:
                result.migrated_count += len(writer.write(buffer))
                result.chunk_count += 1
        except MigrationError as e:
            e.phase = e.phase or step_name
            log.error(
                "migration.step.failed",
                read=result.read_count,
                migrated=result.migrated_count,
                **{k: v for k, v in e.to_dict().items() if k not in ("kind", "phase")},
            )
            raise

        log.info(
            "migration.step.completed",
            read=result.read_count,
            migrated=result.migrated_count,
            chunks=result.chunk_count,
        )
        return result
