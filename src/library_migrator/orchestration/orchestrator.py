"""
Job orchestrator: the single entry point of a migration run.

Steps run strictly one after another. The first failing step stops the run,
which is then recorded as FAILED with that step as its phase; already
committed work is left in place for inspection.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError

from library_migrator.domain.migration.exceptions import (
    MigrationError,
    RunMetadataError,
    WriteError,
)
from library_migrator.domain.migration.id_mapper import IdMapper
from library_migrator.domain.migration.models import (
    TRUNCATE_ORDER,
    JobRun,
    RunResult,
    RunStatus,
    StepResult,
)
from library_migrator.domain.migration.protocols import JobRepository
from library_migrator.domain.migration.step import MigrationStep
from library_migrator.io.loader.target_store import SqlTargetStore
from library_migrator.io.schema.staging import SchemaManager
from library_migrator.utils.logging import bind_context, get_logger

from .steps import Step, StepAction, build_default_plan, validate_plan

logger = get_logger(__name__)


class JobOrchestrator:
    """
    Runs the migration plan against explicitly provided collaborators.

    Usage:
        orchestrator = JobOrchestrator(
            target=target,
            schema=SchemaManager(target),
            migration_step=MigrationStep(source, target, mapper),
            id_mapper=mapper,
            job_repository=repo,
        )
        result = orchestrator.run()
    """

    def __init__(
        self,
        target: SqlTargetStore,
        schema: SchemaManager,
        migration_step: MigrationStep,
        id_mapper: IdMapper,
        job_repository: JobRepository,
        chunk_size: int = 5,
        job_name: str = "migrate_job",
        plan: Optional[Sequence[Step]] = None,
    ):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.plan: List[Step] = (
            list(plan) if plan is not None else build_default_plan()
        )
        validate_plan(self.plan)

        self.target = target
        self.schema = schema
        self.migration_step = migration_step
        self.id_mapper = id_mapper
        self.job_repository = job_repository
        self.chunk_size = chunk_size
        self.job_name = job_name

    def run(self, parameters: Optional[Mapping[str, Any]] = None) -> RunResult:
        """
        Execute every step of the plan in order as a new run.

        Caller parameters are recorded with the run; ``chunk_size`` always
        reflects the chunk size this orchestrator actually uses.

        Returns:
            RunResult with COMPLETED, or FAILED plus the failing phase and error

        Raises:
            RunMetadataError: The run could not be recorded; no step was started
        """
        run = JobRun(job_name=self.job_name)
        log = bind_context(__name__, run_id=run.run_id, job=self.job_name)
        recorded: Dict[str, Any] = dict(parameters or {})
        recorded["chunk_size"] = self.chunk_size

        self._record(self.job_repository.record_run_start, run, recorded)
        log.info("migration.run.started", steps=len(self.plan), parameters=recorded)

        results: List[StepResult] = []
        for step in self.plan:
            run.advance(step.name)
            try:
                self._record(
                    self.job_repository.record_step_start, run.run_id, step.name
                )
                result = self._execute(step)
                self._record(
                    self.job_repository.record_step_end,
                    run.run_id,
                    step.name,
                    RunStatus.COMPLETED.value,
                    result,
                )
            except Exception as e:
                if isinstance(e, MigrationError):
                    e.phase = step.name
                    log.error("migration.run.step_failed", **e.to_dict())
                else:
                    log.exception("migration.run.step_crashed", phase=step.name)
                result = StepResult(step_name=step.name, kind=step.kind, error=e)
                results.append(result)
                run.fail(step.name, f"{type(e).__name__}: {e}")
                self._record_outcome(
                    log,
                    (
                        self.job_repository.record_step_end,
                        run.run_id,
                        step.name,
                        RunStatus.FAILED.value,
                        result,
                    ),
                    (self.job_repository.record_run_end, run),
                )
                log.error("migration.run.failed", phase=step.name)
                return RunResult(
                    run_id=run.run_id,
                    status=run.status,
                    failed_phase=step.name,
                    error=e,
                    steps=results,
                    started_at=run.started_at,
                    ended_at=run.ended_at,
                )

            results.append(result)

        run.complete()
        self._record_outcome(log, (self.job_repository.record_run_end, run))
        outcome = RunResult(
            run_id=run.run_id,
            status=run.status,
            steps=results,
            started_at=run.started_at,
            ended_at=run.ended_at,
        )
        log.info(
            "migration.run.completed",
            migrated={k.value: n for k, n in outcome.migrated_counts().items()},
        )
        return outcome

    @staticmethod
    def _record(method: Callable[..., Any], *args: Any) -> None:
        try:
            method(*args)
        except SQLAlchemyError as e:
            raise RunMetadataError(f"Failed to record run metadata: {e}") from e

    def _record_outcome(self, log: Any, *calls: Tuple[Any, ...]) -> None:
        """Persist terminal records; failures are logged and the outcome stands."""
        for method, *args in calls:
            try:
                self._record(method, *args)
            except RunMetadataError as e:
                log.error("migration.run.metadata_failed", **e.to_dict())

    def _execute(self, step: Step) -> StepResult:
        action, kind = step.action, step.kind

        if action is StepAction.TRUNCATE:
            self._truncate()
        elif action is StepAction.CREATE_STAGING:
            self.schema.create_staging(kind)
        elif action is StepAction.CREATE_SEQUENCE:
            self.schema.create_sequence(kind)
        elif action is StepAction.MIGRATE:
            return self.migration_step.execute(kind, self.chunk_size)
        elif action is StepAction.DROP_STAGING:
            self.schema.drop_staging(kind)
        elif action is StepAction.DROP_SEQUENCE:
            self.schema.drop_sequence(kind)
        else:
            raise ValueError(f"Unknown step action: {action}")
        return StepResult(step_name=step.name, kind=kind)

    def _truncate(self) -> None:
        """Empty all target tables, children first, and forget old mappings."""
        self.id_mapper.reset()
        try:
            with self.target.transaction() as conn:
                for kind in TRUNCATE_ORDER:
                    self.target.truncate_table(conn, kind)
        except SQLAlchemyError as e:
            raise WriteError(f"Failed to truncate target tables: {e}") from e
        logger.info(
            "migration.truncate.completed", tables=[k.value for k in TRUNCATE_ORDER]
        )
