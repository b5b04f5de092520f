"""Foreign-key resolution: source parent ids -> target surrogate keys."""

from __future__ import annotations

from typing import Dict

from .entities import get_spec
from .exceptions import MappingError
from .id_mapper import IdMapper
from .models import EntityKind, SourceEntity, TargetEntity


class ForeignKeyResolver:
    """Rewrite an entity's parent references through the ID mapper."""

    def __init__(self, id_mapper: IdMapper):
        self.id_mapper = id_mapper

    def resolve(self, entity: SourceEntity) -> TargetEntity:
        """
        Raises:
            MappingError: If a parent reference is missing or unmapped
        """
        parent_target_ids: Dict[EntityKind, int] = {}
        for ref in get_spec(entity.kind).parent_refs:
            parent_source_id = entity.parent_source_ids.get(ref.kind)
            target_id = (
                self.id_mapper.get(ref.kind, parent_source_id)
                if parent_source_id is not None
                else None
            )
            if target_id is None:
                raise MappingError(
                    entity.kind, entity.source_id, ref.kind, parent_source_id
                )
            parent_target_ids[ref.kind] = target_id

        return TargetEntity(
            kind=entity.kind,
            source_id=entity.source_id,
            fields=dict(entity.fields),
            parent_target_ids=parent_target_ids,
        )
