"""Error taxonomy of the migration engine.

Every error here is fatal at its point of origin: it propagates to the
orchestrator, which marks the run FAILED and stops.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from .models import EntityKind


class MigrationError(Exception):
    """Base class for failures of a migration run, with kind/phase context."""

    def __init__(
        self,
        message: str,
        *,
        kind: Optional["EntityKind"] = None,
        phase: Optional[str] = None,
    ):
        self.kind = kind
        self.phase = phase
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to structured dict for logging."""
        cause = self.__cause__
        return {
            "error_type": type(self).__name__,
            "kind": self.kind.value if self.kind is not None else None,
            "phase": self.phase,
            "message": str(self),
            "original_error_type": type(cause).__name__ if cause else None,
            "original_error_message": str(cause) if cause else None,
        }


class SchemaPreparationError(MigrationError):
    """DDL failure while creating or dropping staging tables/sequences."""


class ReadError(MigrationError):
    """Source cursor or connectivity failure."""


class MappingError(MigrationError):
    """A parent identifier is absent from the ID mapper.

    Signals either missing source data or a step-ordering bug; never
    degraded to a null foreign key.
    """

    def __init__(
        self,
        kind: "EntityKind",
        source_id: str,
        parent_kind: "EntityKind",
        parent_source_id: Optional[str],
        *,
        phase: Optional[str] = None,
    ):
        self.source_id = source_id
        self.parent_kind = parent_kind
        self.parent_source_id = parent_source_id
        if parent_source_id is None:
            message = (
                f"{kind.label} '{source_id}' has no {parent_kind.value} reference"
            )
        else:
            message = (
                f"{kind.label} '{source_id}' references unmapped "
                f"{parent_kind.value} '{parent_source_id}'"
            )
        super().__init__(message, kind=kind, phase=phase)


class WriteError(MigrationError):
    """Constraint violation or connectivity failure while committing a chunk."""


class RunMetadataError(MigrationError):
    """The run metadata store rejected a run or step record."""


class InvalidTransitionError(Exception):
    """Illegal JobRun state transition."""

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Invalid run transition {current} -> {requested}")


class InvalidPlanError(ValueError):
    """A step plan that would violate the entity dependency order."""
