"""Store interfaces the migration engine consumes.

The engine only needs paged reads from the source, transactional batch
inserts plus DDL from the target, and status recording from the run metadata
store. Concrete implementations live in ``library_migrator.io``.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Any, List, Mapping, Optional, Protocol, Sequence, Tuple

from sqlalchemy.engine import Connection

from .models import EntityKind, JobRun, SourceEntity, StepResult, TargetEntity

PageToken = Any


class SourceStore(Protocol):
    """Read-only, paged access to the source collections."""

    def find_all(
        self, kind: EntityKind, page_token: Optional[PageToken], limit: int
    ) -> Tuple[List[SourceEntity], Optional[PageToken]]:
        """Return one page in stable order and the token of the next page.

        A ``None`` next token means the collection is exhausted.
        """
        ...


class TargetStore(Protocol):
    """Transactional writes and DDL against the relational target."""

    def transaction(self) -> AbstractContextManager[Connection]: ...

    def insert_batch(
        self, connection: Connection, kind: EntityKind, entities: Sequence[TargetEntity]
    ) -> List[int]: ...

    def execute_ddl(self, statement: str) -> None: ...

    def truncate_table(self, connection: Connection, kind: EntityKind) -> None: ...


class JobRepository(Protocol):
    """Run metadata store written by the orchestrator."""

    def record_run_start(
        self, run: JobRun, parameters: Optional[Mapping[str, Any]] = None
    ) -> None: ...

    def record_run_end(self, run: JobRun) -> None: ...

    def record_step_start(self, run_id: str, step_name: str) -> None: ...

    def record_step_end(
        self, run_id: str, step_name: str, status: str, result: StepResult
    ) -> None: ...
