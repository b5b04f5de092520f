"""
Per-kind wiring of the library graph.

Each EntitySpec names where a kind lives in the source store and in the
target store, how document fields map to columns, and which document fields
reference parent entities. Staging object names derive from the kind only,
so one target schema supports one concurrent run.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

from bson import DBRef

from .models import EntityKind, SourceEntity


@dataclass(frozen=True)
class ParentRef:
    """A document field referencing a parent entity, and its target FK column."""

    kind: EntityKind
    document_field: str
    column: str


@dataclass(frozen=True)
class EntitySpec:
    kind: EntityKind
    collection: str
    table: str
    field_columns: Tuple[Tuple[str, str], ...]
    parent_refs: Tuple[ParentRef, ...] = ()

    @property
    def staging_table(self) -> str:
        return f"temp_table_{self.kind.value}"

    @property
    def sequence(self) -> str:
        return f"seq_{self.kind.value}_tmp"

    @property
    def columns(self) -> Tuple[str, ...]:
        """Target columns in insert order: id, data columns, FK columns."""
        return (
            ("id",)
            + tuple(column for _, column in self.field_columns)
            + tuple(ref.column for ref in self.parent_refs)
        )

    def from_document(self, document: Mapping[str, Any]) -> SourceEntity:
        """Build a SourceEntity from a raw source document.

        Missing parent references are left out; resolution reports them.
        """
        if "_id" not in document:
            raise ValueError(f"{self.kind.label} document without _id: {document!r}")

        fields = {
            column: document.get(document_field)
            for document_field, column in self.field_columns
        }
        parents: Dict[EntityKind, str] = {}
        for ref in self.parent_refs:
            parent_id = extract_reference(document.get(ref.document_field))
            if parent_id is not None:
                parents[ref.kind] = parent_id

        return SourceEntity(
            kind=self.kind,
            source_id=str(document["_id"]),
            fields=fields,
            parent_source_ids=parents,
        )

    def row_for(
        self,
        target_id: int,
        fields: Mapping[str, Any],
        parent_target_ids: Mapping[EntityKind, int],
    ) -> Dict[str, Any]:
        """Bind parameters for one target row."""
        row: Dict[str, Any] = {"id": target_id}
        for _, column in self.field_columns:
            row[column] = fields.get(column)
        for ref in self.parent_refs:
            row[ref.column] = parent_target_ids[ref.kind]
        return row


def extract_reference(value: Any) -> Optional[str]:
    """Normalise a parent reference to its source id string.

    Accepts a scalar id (string or ObjectId), an embedded parent document
    (``_id`` or ``id``) or a ``DBRef``.

    Examples:
        >>> extract_reference("a1")
        'a1'
        >>> extract_reference({"_id": "a1", "fullName": "Author_1"})
        'a1'
        >>> extract_reference(None) is None
        True
    """
    if value is None:
        return None
    if isinstance(value, DBRef):
        return str(value.id)
    if isinstance(value, Mapping):
        for key in ("_id", "id", "$id"):
            if value.get(key) is not None:
                return str(value[key])
        return None
    return str(value)


ENTITY_SPECS: Dict[EntityKind, EntitySpec] = {
    EntityKind.AUTHOR: EntitySpec(
        kind=EntityKind.AUTHOR,
        collection="authors",
        table="authors",
        field_columns=(("fullName", "full_name"),),
    ),
    EntityKind.GENRE: EntitySpec(
        kind=EntityKind.GENRE,
        collection="genres",
        table="genres",
        field_columns=(("name", "name"),),
    ),
    EntityKind.BOOK: EntitySpec(
        kind=EntityKind.BOOK,
        collection="books",
        table="books",
        field_columns=(("title", "title"),),
        parent_refs=(
            ParentRef(EntityKind.AUTHOR, "author", "author_id"),
            ParentRef(EntityKind.GENRE, "genre", "genre_id"),
        ),
    ),
    EntityKind.COMMENT: EntitySpec(
        kind=EntityKind.COMMENT,
        collection="comments",
        table="comments",
        field_columns=(("text", "comment_text"),),
        parent_refs=(ParentRef(EntityKind.BOOK, "book", "book_id"),),
    ),
}


def get_spec(kind: EntityKind) -> EntitySpec:
    return ENTITY_SPECS[kind]


# Target schema; created by operators or `init-target`, never by a run.
TARGET_TABLE_DDL: Tuple[str, ...] = (
    'CREATE TABLE IF NOT EXISTS "authors" ('
    '"id" BIGINT PRIMARY KEY, "full_name" VARCHAR(255))',
    'CREATE TABLE IF NOT EXISTS "genres" ('
    '"id" BIGINT PRIMARY KEY, "name" VARCHAR(255))',
    'CREATE TABLE IF NOT EXISTS "books" ('
    '"id" BIGINT PRIMARY KEY, "title" VARCHAR(255), '
    '"author_id" BIGINT NOT NULL REFERENCES "authors" ("id"), '
    '"genre_id" BIGINT NOT NULL REFERENCES "genres" ("id"))',
    'CREATE TABLE IF NOT EXISTS "comments" ('
    '"id" BIGINT PRIMARY KEY, "comment_text" VARCHAR(1024), '
    '"book_id" BIGINT NOT NULL REFERENCES "books" ("id"))',
)
