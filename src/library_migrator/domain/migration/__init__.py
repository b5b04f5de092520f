"""Chunk-oriented migration of the library graph.

Reader -> FK Resolver -> Chunk Writer, driven per entity kind, with the
ID Mapper carrying source-to-target identifier translations between steps.
"""

from .entities import ENTITY_SPECS, TARGET_TABLE_DDL, EntitySpec, ParentRef, get_spec
from .exceptions import (
    InvalidPlanError,
    InvalidTransitionError,
    MappingError,
    MigrationError,
    ReadError,
    RunMetadataError,
    SchemaPreparationError,
    WriteError,
)
from .id_mapper import IdMapper
from .models import (
    MIGRATION_ORDER,
    TRUNCATE_ORDER,
    EntityKind,
    IdMapping,
    JobRun,
    RunResult,
    RunStatus,
    SourceEntity,
    StepResult,
    TargetEntity,
)
from .protocols import JobRepository, SourceStore, TargetStore
from .reader import EntityReader
from .resolver import ForeignKeyResolver
from .step import MigrationStep
from .writer import ChunkWriter

__all__ = [
    "ENTITY_SPECS",
    "MIGRATION_ORDER",
    "TARGET_TABLE_DDL",
    "TRUNCATE_ORDER",
    "ChunkWriter",
    "EntityKind",
    "EntityReader",
    "EntitySpec",
    "ForeignKeyResolver",
    "IdMapper",
    "IdMapping",
    "InvalidPlanError",
    "InvalidTransitionError",
    "JobRepository",
    "JobRun",
    "MappingError",
    "MigrationError",
    "MigrationStep",
    "ParentRef",
    "ReadError",
    "RunMetadataError",
    "RunResult",
    "RunStatus",
    "SchemaPreparationError",
    "SourceEntity",
    "SourceStore",
    "StepResult",
    "TargetEntity",
    "TargetStore",
    "WriteError",
    "get_spec",
]
