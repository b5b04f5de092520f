"""
Job repository for run and step status persistence.

Three tables record every run of the orchestrator:

- ``migration_job_execution``: one row per run (status, current phase)
- ``migration_job_params``: the parameters a run was started with
- ``migration_step_execution``: one row per executed step

Each record call runs in its own short transaction, independent of the
target store's chunk transactions.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

import sqlalchemy as sa
from sqlalchemy.engine import Engine

from library_migrator.domain.migration.models import JobRun, StepResult
from library_migrator.utils.logging import get_logger

logger = get_logger(__name__)

JOB_TABLE = "migration_job_execution"
PARAMS_TABLE = "migration_job_params"
STEP_TABLE = "migration_step_execution"

_DDL = (
    f"""
    CREATE TABLE IF NOT EXISTS {JOB_TABLE} (
        run_id VARCHAR(64) PRIMARY KEY,
        job_name VARCHAR(100) NOT NULL,
        status VARCHAR(20) NOT NULL,
        current_phase VARCHAR(100),
        exit_message TEXT,
        started_at VARCHAR(40) NOT NULL,
        ended_at VARCHAR(40)
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {PARAMS_TABLE} (
        run_id VARCHAR(64) NOT NULL,
        param_key VARCHAR(100) NOT NULL,
        param_value VARCHAR(1024),
        PRIMARY KEY (run_id, param_key)
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {STEP_TABLE} (
        run_id VARCHAR(64) NOT NULL,
        step_name VARCHAR(100) NOT NULL,
        step_order INTEGER NOT NULL,
        status VARCHAR(20) NOT NULL,
        read_count INTEGER NOT NULL DEFAULT 0,
        write_count INTEGER NOT NULL DEFAULT 0,
        commit_count INTEGER NOT NULL DEFAULT 0,
        exit_message TEXT,
        started_at VARCHAR(40) NOT NULL,
        ended_at VARCHAR(40),
        PRIMARY KEY (run_id, step_name)
    )
    """,
)


def _timestamp(value: Optional[datetime] = None) -> str:
    return (value or datetime.now().astimezone()).isoformat()


class SqlJobRepository:
    """
    Repository for migration run metadata.

    Usage:
        repo = SqlJobRepository(create_engine("sqlite:///migration_jobs.db"))
        repo.initialize()
        repo.record_run_start(run, {"chunk_size": 5})
        repo.record_step_start(run.run_id, "truncate")
        repo.record_step_end(run.run_id, "truncate", "COMPLETED", result)
        repo.record_run_end(run)
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    def initialize(self) -> None:
        """Create the metadata tables if they do not exist."""
        with self.engine.begin() as conn:
            for statement in _DDL:
                conn.execute(sa.text(statement))
        logger.debug("job_repository.initialized")

    def record_run_start(
        self, run: JobRun, parameters: Optional[Mapping[str, Any]] = None
    ) -> None:
        with self.engine.begin() as conn:
            conn.execute(
                sa.text(
                    f"""
                    INSERT INTO {JOB_TABLE}
                        (run_id, job_name, status, current_phase, started_at)
                    VALUES (:run_id, :job_name, :status, :current_phase, :started_at)
                    """
                ),
                {
                    "run_id": run.run_id,
                    "job_name": run.job_name,
                    "status": run.status.value,
                    "current_phase": run.current_phase,
                    "started_at": _timestamp(run.started_at),
                },
            )
            if parameters:
                conn.execute(
                    sa.text(
                        f"""
                        INSERT INTO {PARAMS_TABLE} (run_id, param_key, param_value)
                        VALUES (:run_id, :param_key, :param_value)
                        """
                    ),
                    [
                        {
                            "run_id": run.run_id,
                            "param_key": str(key),
                            "param_value": None if value is None else str(value),
                        }
                        for key, value in parameters.items()
                    ],
                )

    def record_run_end(self, run: JobRun) -> None:
        with self.engine.begin() as conn:
            conn.execute(
                sa.text(
                    f"""
                    UPDATE {JOB_TABLE}
                    SET status = :status,
                        current_phase = :current_phase,
                        exit_message = :exit_message,
                        ended_at = :ended_at
                    WHERE run_id = :run_id
                    """
                ),
                {
                    "run_id": run.run_id,
                    "status": run.status.value,
                    "current_phase": run.current_phase,
                    "exit_message": run.exit_message,
                    "ended_at": _timestamp(run.ended_at),
                },
            )

    def record_step_start(self, run_id: str, step_name: str) -> None:
        with self.engine.begin() as conn:
            conn.execute(
                sa.text(
                    f"""
                    INSERT INTO {STEP_TABLE}
                        (run_id, step_name, step_order, status, started_at)
                    VALUES (
                        :run_id,
                        :step_name,
                        (SELECT COUNT(*) FROM {STEP_TABLE} WHERE run_id = :run_id),
                        'STARTED',
                        :started_at
                    )
                    """
                ),
                {"run_id": run_id, "step_name": step_name, "started_at": _timestamp()},
            )
            conn.execute(
                sa.text(
                    f"UPDATE {JOB_TABLE} SET status = 'RUNNING', "
                    "current_phase = :step_name WHERE run_id = :run_id"
                ),
                {"run_id": run_id, "step_name": step_name},
            )

    def record_step_end(
        self, run_id: str, step_name: str, status: str, result: StepResult
    ) -> None:
        with self.engine.begin() as conn:
            conn.execute(
                sa.text(
                    f"""
                    UPDATE {STEP_TABLE}
                    SET status = :status,
                        read_count = :read_count,
                        write_count = :write_count,
                        commit_count = :commit_count,
                        exit_message = :exit_message,
                        ended_at = :ended_at
                    WHERE run_id = :run_id AND step_name = :step_name
                    """
                ),
                {
                    "run_id": run_id,
                    "step_name": step_name,
                    "status": status,
                    "read_count": result.read_count,
                    "write_count": result.migrated_count,
                    "commit_count": result.chunk_count,
                    "exit_message": str(result.error) if result.error else None,
                    "ended_at": _timestamp(),
                },
            )

    def get_run(self, run_id: str) -> Optional[Dict[str, Any]]:
        """
        Returns:
            Run row as a dict (with a ``parameters`` dict), or None if unknown
        """
        with self.engine.connect() as conn:
            row = conn.execute(
                sa.text(
                    f"""
                    SELECT run_id, job_name, status, current_phase, exit_message,
                           started_at, ended_at
                    FROM {JOB_TABLE}
                    WHERE run_id = :run_id
                    """
                ),
                {"run_id": run_id},
            ).mappings().fetchone()
            if row is None:
                return None

            params = conn.execute(
                sa.text(
                    f"SELECT param_key, param_value FROM {PARAMS_TABLE} "
                    "WHERE run_id = :run_id"
                ),
                {"run_id": run_id},
            ).fetchall()

        run = dict(row)
        run["parameters"] = {key: value for key, value in params}
        return run

    def list_steps(self, run_id: str) -> List[Dict[str, Any]]:
        """Step rows of a run in execution order."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                sa.text(
                    f"""
                    SELECT step_name, step_order, status, read_count, write_count,
                           commit_count, exit_message, started_at, ended_at
                    FROM {STEP_TABLE}
                    WHERE run_id = :run_id
                    ORDER BY step_order
                    """
                ),
                {"run_id": run_id},
            ).mappings().fetchall()
        return [dict(row) for row in rows]

    def dispose(self) -> None:
        self.engine.dispose()
