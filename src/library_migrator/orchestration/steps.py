"""
Tagged step variants of a migration job.

A plan is a plain ordered list of ``Step`` values; the orchestrator
interprets it with a sequential loop.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Set

from library_migrator.domain.migration.exceptions import InvalidPlanError
from library_migrator.domain.migration.models import MIGRATION_ORDER, EntityKind


class StepAction(str, Enum):
    TRUNCATE = "truncate"
    CREATE_STAGING = "create_staging"
    CREATE_SEQUENCE = "create_sequence"
    MIGRATE = "migrate"
    DROP_STAGING = "drop_staging"
    DROP_SEQUENCE = "drop_sequence"


@dataclass(frozen=True)
class Step:
    action: StepAction
    kind: Optional[EntityKind] = None

    def __post_init__(self) -> None:
        if (self.action is StepAction.TRUNCATE) != (self.kind is None):
            raise InvalidPlanError(
                f"Step {self.action.value} "
                + ("takes no kind" if self.kind else "requires a kind")
            )

    @property
    def name(self) -> str:
        """Phase name recorded for the step, e.g. ``create_staging_author``."""
        if self.kind is None:
            return self.action.value
        return f"{self.action.value}_{self.kind.value}"

    def __str__(self) -> str:
        return self.name


def build_default_plan(
    kinds: Sequence[EntityKind] = MIGRATION_ORDER,
) -> List[Step]:
    """
    The migration job's fixed step list.

    Examples:
        >>> [s.name for s in build_default_plan()][:3]
        ['truncate', 'create_staging_author', 'create_staging_genre']
    """
    plan = [Step(StepAction.TRUNCATE)]
    plan += [Step(StepAction.CREATE_STAGING, kind) for kind in kinds]
    plan += [Step(StepAction.CREATE_SEQUENCE, kind) for kind in kinds]
    plan += [Step(StepAction.MIGRATE, kind) for kind in kinds]
    plan += [Step(StepAction.DROP_STAGING, kind) for kind in kinds]
    plan += [Step(StepAction.DROP_SEQUENCE, kind) for kind in kinds]
    return plan


def validate_plan(plan: Sequence[Step]) -> None:
    """
    Check that a plan honours the EntityKind order and staging lifetimes.

    Raises:
        InvalidPlanError: If a kind is migrated before its parents, twice,
            before truncation, or without its staging table and sequence
    """
    if not plan:
        raise InvalidPlanError("Plan is empty")

    truncated = False
    migrated: Set[EntityKind] = set()
    staging: Set[EntityKind] = set()
    sequences: Set[EntityKind] = set()

    for position, step in enumerate(plan):
        kind = step.kind
        where = f"step {position} ({step.name})"

        if step.action is StepAction.TRUNCATE:
            if migrated:
                raise InvalidPlanError(f"{where}: truncate after migration started")
            truncated = True
        elif step.action is StepAction.CREATE_STAGING:
            staging.add(kind)
        elif step.action is StepAction.CREATE_SEQUENCE:
            sequences.add(kind)
        elif step.action is StepAction.DROP_STAGING:
            if kind not in staging:
                raise InvalidPlanError(f"{where}: staging table was never created")
            staging.discard(kind)
        elif step.action is StepAction.DROP_SEQUENCE:
            if kind not in sequences:
                raise InvalidPlanError(f"{where}: sequence was never created")
            sequences.discard(kind)
        elif step.action is StepAction.MIGRATE:
            if not truncated:
                raise InvalidPlanError(f"{where}: migration before truncate")
            if kind in migrated:
                raise InvalidPlanError(f"{where}: {kind.value} migrated twice")
            missing = [p.value for p in kind.parents if p not in migrated]
            if missing:
                raise InvalidPlanError(
                    f"{where}: parents not migrated yet: {', '.join(missing)}"
                )
            if kind not in staging or kind not in sequences:
                raise InvalidPlanError(
                    f"{where}: staging table and sequence must exist"
                )
            migrated.add(kind)
