"""
Per-run translation table (kind, source_id) -> target_id.

The mapper keeps two copies of every mapping: a durable row in the kind's
staging table, written inside the chunk transaction, and an in-memory entry
that is only published once that transaction has committed. A rolled-back
chunk therefore leaves neither copy behind.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy import text
from sqlalchemy.engine import Connection

from library_migrator.infrastructure.sql import quote_identifier
from library_migrator.utils.logging import get_logger

from .entities import get_spec
from .exceptions import WriteError
from .models import EntityKind, IdMapping

logger = get_logger(__name__)


class IdMapper:
    """
    Identifier mapper owned by the currently executing step.

    Usage inside a chunk:
        with target.transaction() as conn:
            ids = target.insert_batch(conn, EntityKind.AUTHOR, chunk)
            mappings = [
                IdMapping(EntityKind.AUTHOR, e.source_id, i)
                for e, i in zip(chunk, ids)
            ]
            mapper.stage(conn, mappings)
        mapper.publish(mappings)
    """

    def __init__(self, durable: bool = True) -> None:
        """
        Args:
            durable: Write mappings to the kind's staging table. Disable only
                for targets without staging objects.
        """
        self.durable = durable
        self._mappings: Dict[EntityKind, Dict[str, int]] = {
            kind: {} for kind in EntityKind
        }

    def reset(self) -> None:
        """Discard every mapping; called at the start of each run."""
        for table in self._mappings.values():
            table.clear()
        logger.debug("id_mapper.reset")

    def get(self, kind: EntityKind, source_id: str) -> Optional[int]:
        return self._mappings[kind].get(source_id)

    def contains(self, kind: EntityKind, source_id: str) -> bool:
        return source_id in self._mappings[kind]

    def count(self, kind: EntityKind) -> int:
        return len(self._mappings[kind])

    def snapshot(self, kind: EntityKind) -> Dict[str, int]:
        """Copy of the committed mappings of one kind."""
        return dict(self._mappings[kind])

    def stage(self, connection: Connection, mappings: Sequence[IdMapping]) -> None:
        """
        Write mappings to the staging tables within the caller's transaction.

        Raises:
            WriteError: If a source id is already mapped (mappings are
                write-once per run)
        """
        self._check_write_once(mappings)
        if not self.durable or not mappings:
            return

        by_kind: Dict[EntityKind, List[Dict[str, object]]] = {}
        for mapping in mappings:
            by_kind.setdefault(mapping.kind, []).append(
                {"id_src": mapping.source_id, "id_trg": mapping.target_id}
            )

        for kind, params in by_kind.items():
            staging_table = quote_identifier(get_spec(kind).staging_table)
            connection.execute(
                text(
                    f"INSERT INTO {staging_table} (id_src, id_trg) "
                    "VALUES (:id_src, :id_trg)"
                ),
                params,
            )

    def publish(self, mappings: Iterable[IdMapping]) -> None:
        """Make committed mappings visible to lookups."""
        published = 0
        for mapping in mappings:
            self._mappings[mapping.kind][mapping.source_id] = mapping.target_id
            published += 1
        logger.debug("id_mapper.published", count=published)

    def _check_write_once(self, mappings: Sequence[IdMapping]) -> None:
        seen = set()
        for mapping in mappings:
            key = (mapping.kind, mapping.source_id)
            if key in seen or self.contains(mapping.kind, mapping.source_id):
                raise WriteError(
                    f"{mapping.kind.label} '{mapping.source_id}' is already mapped",
                    kind=mapping.kind,
                )
            seen.add(key)
