"""
Data model of the migration engine.

All entity types are plain data carriers: source entities as read from the
document store, target entities after foreign-key resolution, the identifier
mappings produced by the writer and the run bookkeeping of the orchestrator.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .exceptions import InvalidTransitionError


class EntityKind(str, Enum):
    """Entity types of the library graph.

    Partial order: Author, Genre ≺ Book ≺ Comment. A kind may only be migrated
    once all of its parent kinds are fully migrated.
    """

    AUTHOR = "author"
    GENRE = "genre"
    BOOK = "book"
    COMMENT = "comment"

    @property
    def parents(self) -> Tuple["EntityKind", ...]:
        return _PARENTS[self]

    @property
    def label(self) -> str:
        return self.value.capitalize()

    def depends_on(self, other: "EntityKind") -> bool:
        """True when ``other`` must be migrated before this kind (transitively)."""
        return any(
            parent is other or parent.depends_on(other) for parent in self.parents
        )


_PARENTS: Dict[EntityKind, Tuple[EntityKind, ...]] = {
    EntityKind.AUTHOR: (),
    EntityKind.GENRE: (),
    EntityKind.BOOK: (EntityKind.AUTHOR, EntityKind.GENRE),
    EntityKind.COMMENT: (EntityKind.BOOK,),
}

# Parents first; reversed for deletes
MIGRATION_ORDER: Tuple[EntityKind, ...] = (
    EntityKind.AUTHOR,
    EntityKind.GENRE,
    EntityKind.BOOK,
    EntityKind.COMMENT,
)
TRUNCATE_ORDER: Tuple[EntityKind, ...] = tuple(reversed(MIGRATION_ORDER))


@dataclass(frozen=True)
class SourceEntity:
    """An entity as read from the source store; immutable once read."""

    kind: EntityKind
    source_id: str
    fields: Mapping[str, Any] = field(default_factory=dict)
    parent_source_ids: Mapping[EntityKind, str] = field(default_factory=dict)


@dataclass(frozen=True)
class TargetEntity:
    """An entity with parent references translated to target surrogate keys."""

    kind: EntityKind
    source_id: str
    fields: Mapping[str, Any] = field(default_factory=dict)
    parent_target_ids: Mapping[EntityKind, int] = field(default_factory=dict)


@dataclass(frozen=True)
class IdMapping:
    """One translated identifier: (kind, source_id) -> target_id."""

    kind: EntityKind
    source_id: str
    target_id: int


class RunStatus(str, Enum):
    """Lifecycle states of a job run."""

    STARTING = "STARTING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (RunStatus.COMPLETED, RunStatus.FAILED)


_ALLOWED_TRANSITIONS: Dict[RunStatus, Tuple[RunStatus, ...]] = {
    RunStatus.STARTING: (RunStatus.RUNNING,),
    RunStatus.RUNNING: (RunStatus.RUNNING, RunStatus.COMPLETED, RunStatus.FAILED),
    RunStatus.COMPLETED: (),
    RunStatus.FAILED: (),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class JobRun:
    """Bookkeeping for one orchestrator invocation.

    Only the orchestrator mutates a run, and only through ``advance``,
    ``complete`` and ``fail``; COMPLETED and FAILED are terminal.
    """

    job_name: str
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    status: RunStatus = RunStatus.STARTING
    current_phase: Optional[str] = None
    started_at: datetime = field(default_factory=_utcnow)
    ended_at: Optional[datetime] = None
    exit_message: Optional[str] = None

    def _transition(self, status: RunStatus) -> None:
        if status not in _ALLOWED_TRANSITIONS[self.status]:
            raise InvalidTransitionError(self.status.value, status.value)
        self.status = status

    def advance(self, phase: str) -> None:
        """Enter RUNNING(phase)."""
        self._transition(RunStatus.RUNNING)
        self.current_phase = phase

    def complete(self) -> None:
        self._transition(RunStatus.COMPLETED)
        self.ended_at = _utcnow()

    def fail(self, phase: Optional[str], message: str) -> None:
        self._transition(RunStatus.FAILED)
        if phase is not None:
            self.current_phase = phase
        self.exit_message = message
        self.ended_at = _utcnow()


@dataclass
class StepResult:
    """Outcome of a single orchestrator step."""

    step_name: str
    kind: Optional[EntityKind] = None
    read_count: int = 0
    migrated_count: int = 0
    chunk_count: int = 0
    error: Optional[BaseException] = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass
class RunResult:
    """What the orchestrator hands back to the trigger surface."""

    run_id: str
    status: RunStatus
    failed_phase: Optional[str] = None
    error: Optional[BaseException] = None
    steps: List[StepResult] = field(default_factory=list)
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None

    @property
    def success(self) -> bool:
        return self.status is RunStatus.COMPLETED

    @property
    def error_message(self) -> Optional[str]:
        return str(self.error) if self.error is not None else None

    def migrated_counts(self) -> Dict[EntityKind, int]:
        return {
            step.kind: step.migrated_count
            for step in self.steps
            if step.kind is not None and step.migrated_count
        }

    def __str__(self) -> str:
        parts = [f"RunResult: run_id={self.run_id}", f"status={self.status.value}"]
        if self.failed_phase:
            parts.append(f"failed_phase={self.failed_phase}")
        if self.error is not None:
            parts.append(f"error={type(self.error).__name__}: {self.error}")
        counts = self.migrated_counts()
        if counts:
            summary = ", ".join(f"{k.value}={n}" for k, n in counts.items())
            parts.append(f"migrated=[{summary}]")
        return ", ".join(parts)
