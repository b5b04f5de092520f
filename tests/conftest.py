"""Pytest configuration for the opt-in E2E suite and shared store fixtures.

.lmg_env (if present) is loaded FIRST with override=True so that live-store
tests only ever see the connection settings written there.
"""

from __future__ import annotations

from pathlib import Path
from dotenv import load_dotenv

_LMG_ENV_FILE = Path(__file__).parent.parent / ".lmg_env"
if _LMG_ENV_FILE.exists():
    load_dotenv(_LMG_ENV_FILE, override=True)

import os
from typing import Callable, Generator, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from library_migrator.domain.migration.id_mapper import IdMapper
from library_migrator.domain.migration.step import MigrationStep
from library_migrator.io.connectors import InMemorySourceStore, load_seed_file
from library_migrator.io.loader import SqlTargetStore, create_target_engine
from library_migrator.io.repositories import SqlJobRepository
from library_migrator.io.schema import SchemaManager
from library_migrator.orchestration import JobOrchestrator

E2E_OPTION = "run_e2e_tests"
E2E_MARK = "e2e_suite"
E2E_ENV = "RUN_E2E_TESTS"

FIXTURES_DIR = Path(__file__).parent / "fixtures"
SEED_FILE = FIXTURES_DIR / "library_seed.yml"


def _env_enabled(name: str) -> bool:
    """Return True when the opt-in environment flag is set to '1'."""
    return os.getenv(name) == "1"


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register the CLI flag that mirrors RUN_E2E_TESTS."""
    parser.addoption(
        "--run-e2e-tests",
        action="store_true",
        dest=E2E_OPTION,
        default=_env_enabled(E2E_ENV),
        help="Run the live MongoDB/PostgreSQL suite "
        "(set RUN_E2E_TESTS=1 or pass --run-e2e-tests).",
    )


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Skip the opt-in suite unless its flag is enabled."""
    if config.getoption(E2E_OPTION):
        return

    skip_e2e = pytest.mark.skip(
        reason="Set RUN_E2E_TESTS=1 or pass --run-e2e-tests to run the E2E suite."
    )
    for item in items:
        if E2E_MARK in item.keywords:
            item.add_marker(skip_e2e)


@pytest.fixture
def seed_file() -> Path:
    return SEED_FILE


@pytest.fixture
def seed_documents():
    return load_seed_file(SEED_FILE)


@pytest.fixture
def target_engine(tmp_path) -> Generator[Engine, None, None]:
    """SQLite target database file with the four target tables."""
    engine = create_target_engine(f"sqlite:///{tmp_path / 'target.db'}")
    SqlTargetStore(engine).create_target_tables()
    yield engine
    engine.dispose()


@pytest.fixture
def target_store(target_engine) -> SqlTargetStore:
    return SqlTargetStore(target_engine)


@pytest.fixture
def job_repository(tmp_path) -> Generator[SqlJobRepository, None, None]:
    repo = SqlJobRepository(create_engine(f"sqlite:///{tmp_path / 'jobs.db'}"))
    repo.initialize()
    yield repo
    repo.dispose()


@pytest.fixture
def make_orchestrator(
    target_store, job_repository, seed_documents
) -> Callable[..., JobOrchestrator]:
    """Factory wiring an orchestrator over the SQLite stores.

    Defaults to the library seed as source; pass ``documents`` to override.
    """

    def _make(
        chunk_size: int = 5,
        documents: Optional[dict] = None,
        page_size: int = 10,
        plan: Optional[list] = None,
    ) -> JobOrchestrator:
        source = InMemorySourceStore(
            documents if documents is not None else seed_documents
        )
        id_mapper = IdMapper()
        return JobOrchestrator(
            target=target_store,
            schema=SchemaManager(target_store),
            migration_step=MigrationStep(
                source, target_store, id_mapper, page_size=page_size
            ),
            id_mapper=id_mapper,
            job_repository=job_repository,
            chunk_size=chunk_size,
            plan=plan,
        )

    return _make
