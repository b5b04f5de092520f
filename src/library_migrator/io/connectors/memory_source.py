"""In-memory source store fed from plain documents or a YAML seed file."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from library_migrator.domain.migration.entities import ENTITY_SPECS, EntitySpec
from library_migrator.domain.migration.exceptions import ReadError
from library_migrator.domain.migration.models import EntityKind, SourceEntity

from .seed import load_seed_file


class InMemorySourceStore:
    """
    Source store over documents held in memory, keyed by collection name.

    Documents keep their insertion order; the page token is the offset of
    the next page.
    """

    def __init__(
        self,
        documents: Mapping[str, Iterable[Mapping[str, Any]]],
        specs: Optional[Dict[EntityKind, EntitySpec]] = None,
    ):
        self.specs = specs or ENTITY_SPECS
        self._documents: Dict[str, List[Mapping[str, Any]]] = {
            collection: list(docs) for collection, docs in documents.items()
        }

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "InMemorySourceStore":
        return cls(load_seed_file(path))

    def find_all(
        self, kind: EntityKind, page_token: Optional[int], limit: int
    ) -> Tuple[List[SourceEntity], Optional[int]]:
        spec = self.specs[kind]
        offset = page_token or 0
        page = self._documents.get(spec.collection, [])[offset : offset + limit]
        try:
            entities = [spec.from_document(document) for document in page]
        except ValueError as e:
            raise ReadError(str(e), kind=kind) from e

        next_offset = offset + len(page)
        has_more = next_offset < len(self._documents.get(spec.collection, []))
        return entities, next_offset if has_more else None

    def count(self, kind: EntityKind) -> int:
        return len(self._documents.get(self.specs[kind].collection, []))
