"""Unit tests for JobOrchestrator with mocked collaborators."""

from unittest.mock import MagicMock, call

import pytest
from sqlalchemy.exc import OperationalError

from library_migrator.domain.migration.exceptions import (
    InvalidPlanError,
    MappingError,
    RunMetadataError,
    SchemaPreparationError,
    WriteError,
)
from library_migrator.domain.migration.models import (
    EntityKind,
    RunStatus,
    StepResult,
)
from library_migrator.orchestration.orchestrator import JobOrchestrator
from library_migrator.orchestration.steps import Step, StepAction


@pytest.fixture
def collaborators():
    target = MagicMock()
    schema = MagicMock()
    migration_step = MagicMock()
    migration_step.execute.side_effect = lambda kind, chunk_size: StepResult(
        step_name=f"migrate_{kind.value}",
        kind=kind,
        read_count=2,
        migrated_count=2,
        chunk_count=1,
    )
    id_mapper = MagicMock()
    job_repository = MagicMock()
    return target, schema, migration_step, id_mapper, job_repository


def _orchestrator(collaborators, **kwargs):
    target, schema, migration_step, id_mapper, job_repository = collaborators
    return JobOrchestrator(
        target=target,
        schema=schema,
        migration_step=migration_step,
        id_mapper=id_mapper,
        job_repository=job_repository,
        **kwargs,
    )


@pytest.mark.unit
class TestJobOrchestrator:
    def test_successful_run(self, collaborators):
        target, schema, migration_step, id_mapper, job_repository = collaborators

        result = _orchestrator(collaborators, chunk_size=3).run()

        assert result.status is RunStatus.COMPLETED
        assert result.failed_phase is None
        assert len(result.steps) == 21
        assert result.migrated_counts() == {kind: 2 for kind in EntityKind}
        assert migration_step.execute.call_args_list == [
            call(EntityKind.AUTHOR, 3),
            call(EntityKind.GENRE, 3),
            call(EntityKind.BOOK, 3),
            call(EntityKind.COMMENT, 3),
        ]
        assert schema.create_staging.call_count == 4
        assert schema.drop_sequence.call_count == 4

    def test_truncate_resets_mapper_and_truncates_children_first(self, collaborators):
        target, _, _, id_mapper, _ = collaborators
        conn = target.transaction.return_value.__enter__.return_value

        _orchestrator(collaborators).run()

        id_mapper.reset.assert_called_once()
        assert [c.args[1] for c in target.truncate_table.call_args_list] == [
            EntityKind.COMMENT,
            EntityKind.BOOK,
            EntityKind.GENRE,
            EntityKind.AUTHOR,
        ]
        assert all(c.args[0] is conn for c in target.truncate_table.call_args_list)

    def test_records_run_and_steps(self, collaborators):
        *_, job_repository = collaborators

        result = _orchestrator(collaborators).run({"source": "yaml", "chunk_size": 1})

        run, params = job_repository.record_run_start.call_args[0]
        assert run.run_id == result.run_id
        assert params == {"chunk_size": 5, "source": "yaml"}
        assert job_repository.record_step_start.call_count == 21
        statuses = {c.args[2] for c in job_repository.record_step_end.call_args_list}
        assert statuses == {"COMPLETED"}
        ended = job_repository.record_run_end.call_args[0][0]
        assert ended.status is RunStatus.COMPLETED

    def test_stops_at_first_failure(self, collaborators):
        """A failing step ends the run; later steps never start."""
        _, schema, migration_step, _, job_repository = collaborators
        error = MappingError(EntityKind.BOOK, "b9", EntityKind.AUTHOR, "a404")
        migration_step.execute.side_effect = [
            StepResult("migrate_author", EntityKind.AUTHOR),
            StepResult("migrate_genre", EntityKind.GENRE),
            error,
        ]

        result = _orchestrator(collaborators).run()

        assert result.status is RunStatus.FAILED
        assert result.failed_phase == "migrate_book"
        assert result.error is error
        assert error.phase == "migrate_book"
        assert migration_step.execute.call_count == 3
        schema.drop_staging.assert_not_called()

        failed_run = job_repository.record_run_end.call_args[0][0]
        assert failed_run.status is RunStatus.FAILED
        assert failed_run.current_phase == "migrate_book"
        last_step = job_repository.record_step_end.call_args
        assert last_step.args[1:3] == ("migrate_book", "FAILED")

    def test_schema_failure_fails_run(self, collaborators):
        _, schema, migration_step, _, _ = collaborators
        schema.create_sequence.side_effect = SchemaPreparationError("no privilege")

        result = _orchestrator(collaborators).run()

        assert result.failed_phase == "create_sequence_author"
        assert isinstance(result.error, SchemaPreparationError)
        migration_step.execute.assert_not_called()

    def test_truncate_failure_is_write_error(self, collaborators):
        target, schema, _, _, _ = collaborators
        target.truncate_table.side_effect = OperationalError(
            "TRUNCATE", {}, Exception("locked")
        )

        result = _orchestrator(collaborators).run()

        assert result.failed_phase == "truncate"
        assert isinstance(result.error, WriteError)
        schema.create_staging.assert_not_called()

    def test_unexpected_exception_fails_run(self, collaborators):
        _, schema, _, _, _ = collaborators
        schema.drop_staging.side_effect = RuntimeError("bug")

        result = _orchestrator(collaborators).run()

        assert result.status is RunStatus.FAILED
        assert result.failed_phase == "drop_staging_author"

    def test_each_run_is_new(self, collaborators):
        orchestrator = _orchestrator(collaborators)

        assert orchestrator.run().run_id != orchestrator.run().run_id

    def test_invalid_plan_rejected_at_construction(self, collaborators):
        plan = [Step(StepAction.MIGRATE, EntityKind.BOOK)]

        with pytest.raises(InvalidPlanError):
            _orchestrator(collaborators, plan=plan)

    def test_rejects_non_positive_chunk_size(self, collaborators):
        with pytest.raises(ValueError):
            _orchestrator(collaborators, chunk_size=0)

    def test_parameters_named_like_log_fields(self, collaborators):
        *_, job_repository = collaborators

        result = _orchestrator(collaborators).run({"steps": "all", "event": "x"})

        assert result.status is RunStatus.COMPLETED
        _, params = job_repository.record_run_start.call_args[0]
        assert params == {"steps": "all", "event": "x", "chunk_size": 5}

    def test_unrecorded_run_never_starts(self, collaborators):
        target, schema, _, _, job_repository = collaborators
        job_repository.record_run_start.side_effect = OperationalError(
            "INSERT", {}, Exception("disk I/O error")
        )

        with pytest.raises(RunMetadataError):
            _orchestrator(collaborators).run()

        target.truncate_table.assert_not_called()
        job_repository.record_step_start.assert_not_called()

    def test_step_metadata_failure_fails_run(self, collaborators):
        _, schema, _, _, job_repository = collaborators
        job_repository.record_step_start.side_effect = [
            None,
            OperationalError("INSERT", {}, Exception("locked")),
        ]

        result = _orchestrator(collaborators).run()

        assert result.status is RunStatus.FAILED
        assert result.failed_phase == "create_staging_author"
        assert isinstance(result.error, RunMetadataError)
        schema.create_staging.assert_not_called()
        ended = job_repository.record_run_end.call_args[0][0]
        assert ended.status is RunStatus.FAILED

    def test_failure_bookkeeping_errors_keep_outcome(self, collaborators):
        *_, job_repository = collaborators
        job_repository.record_step_end.side_effect = OperationalError(
            "UPDATE", {}, Exception("locked")
        )
        job_repository.record_run_end.side_effect = OperationalError(
            "UPDATE", {}, Exception("locked")
        )

        result = _orchestrator(collaborators).run()

        assert result.status is RunStatus.FAILED
        assert result.failed_phase == "truncate"
        assert isinstance(result.error, RunMetadataError)
        assert job_repository.record_step_end.call_count == 2
        job_repository.record_run_end.assert_called_once()

    def test_run_end_failure_keeps_completed_outcome(self, collaborators):
        *_, job_repository = collaborators
        job_repository.record_run_end.side_effect = OperationalError(
            "UPDATE", {}, Exception("locked")
        )

        result = _orchestrator(collaborators).run()

        assert result.status is RunStatus.COMPLETED
