"""
Composition root for a migration run.

Every component is constructed here and handed to the orchestrator
explicitly; nothing is looked up from an ambient container.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, List, Optional, Union

from sqlalchemy import create_engine

from library_migrator.config.settings import Settings, get_settings
from library_migrator.domain.migration.id_mapper import IdMapper
from library_migrator.domain.migration.step import MigrationStep
from library_migrator.io.connectors import InMemorySourceStore, MongoSourceStore
from library_migrator.io.loader import SqlTargetStore, create_target_engine
from library_migrator.io.repositories import SqlJobRepository
from library_migrator.io.schema.staging import SchemaManager
from library_migrator.utils.logging import get_logger

from .orchestrator import JobOrchestrator

logger = get_logger(__name__)


@dataclass
class OrchestratorContext:
    """The orchestrator plus the resources it holds open."""

    orchestrator: JobOrchestrator
    source: Any
    target: SqlTargetStore
    job_repository: SqlJobRepository
    _closers: List[Callable[[], None]] = field(default_factory=list, repr=False)

    def close(self) -> None:
        _close_all(self._closers)

    def __enter__(self) -> "OrchestratorContext":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()


def build_orchestrator(
    settings: Optional[Settings] = None,
    source_file: Optional[Union[str, Path]] = None,
    chunk_size: Optional[int] = None,
) -> OrchestratorContext:
    """
    Build a ready-to-run orchestrator from settings.

    Args:
        settings: Application settings; defaults to ``get_settings()``
        source_file: YAML seed file to read instead of MongoDB
        chunk_size: Overrides ``settings.chunk_size``
    """
    settings = settings or get_settings()
    closers: List[Callable[[], None]] = []

    try:
        if source_file is not None:
            source: Any = InMemorySourceStore.from_yaml(source_file)
        else:
            source = MongoSourceStore.from_uri(
                settings.source_mongo_uri, settings.source_mongo_database
            )
            closers.append(source.close)

        target = SqlTargetStore(
            create_target_engine(settings.get_target_connection_string())
        )
        closers.append(target.dispose)

        job_repository = SqlJobRepository(
            create_engine(settings.get_job_repository_connection_string())
        )
        closers.append(job_repository.dispose)
        job_repository.initialize()

        id_mapper = IdMapper()
        orchestrator = JobOrchestrator(
            target=target,
            schema=SchemaManager(target),
            migration_step=MigrationStep(
                source, target, id_mapper, page_size=settings.page_size
            ),
            id_mapper=id_mapper,
            job_repository=job_repository,
            chunk_size=chunk_size or settings.chunk_size,
            job_name=settings.job_name,
        )
    except Exception:
        _close_all(closers)
        raise

    logger.info(
        "orchestrator.built",
        source="yaml" if source_file is not None else "mongodb",
        target_dialect=target.dialect.name,
        chunk_size=orchestrator.chunk_size,
    )
    return OrchestratorContext(
        orchestrator=orchestrator,
        source=source,
        target=target,
        job_repository=job_repository,
        _closers=closers,
    )


def _close_all(closers: List[Callable[[], None]]) -> None:
    """Release resources in reverse order of acquisition."""
    while closers:
        closers.pop()()
