"""Read-only queries against the migrated target tables."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine

from library_migrator.domain.migration.entities import ENTITY_SPECS, EntitySpec
from library_migrator.domain.migration.models import EntityKind
from library_migrator.infrastructure.sql import quote_identifier


class TargetInspector:
    """Operator diagnostics over the target store; never writes."""

    def __init__(
        self, engine: Engine, specs: Optional[Dict[EntityKind, EntitySpec]] = None
    ):
        self.engine = engine
        self.specs = specs or ENTITY_SPECS

    def fetch(self, kind: EntityKind) -> List[Dict[str, Any]]:
        """All rows of a kind's target table ordered by id."""
        spec = self.specs[kind]
        columns = ", ".join(quote_identifier(c) for c in spec.columns)
        with self.engine.connect() as conn:
            result = conn.execute(
                text(
                    f"SELECT {columns} FROM {quote_identifier(spec.table)} "
                    'ORDER BY "id"'
                )
            )
            return [dict(row) for row in result.mappings()]

    def show(self, kind: EntityKind) -> str:
        """
        Format a kind's rows for display.

        Examples:
            "No Author found in database"
            "Author in database:\\nAuthor(id=1, full_name=Author_1)\\n"
        """
        rows = self.fetch(kind)
        if not rows:
            return f"No {kind.label} found in database"

        lines = [f"{kind.label} in database:"]
        for row in rows:
            values = ", ".join(f"{key}={value}" for key, value in row.items())
            lines.append(f"{kind.label}({values})")
        return "\n".join(lines) + "\n"
