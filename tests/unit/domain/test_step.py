"""Unit tests for MigrationStep chunking."""

from unittest.mock import MagicMock

import pytest

from library_migrator.domain.migration.exceptions import MappingError
from library_migrator.domain.migration.id_mapper import IdMapper
from library_migrator.domain.migration.models import EntityKind, IdMapping
from library_migrator.domain.migration.step import MigrationStep
from library_migrator.io.connectors import InMemorySourceStore


def _genres(count):
    return {"genres": [{"_id": f"g{i}", "name": f"Genre_{i}"} for i in range(count)]}


@pytest.mark.unit
class TestMigrationStep:
    @pytest.mark.parametrize(
        "count, chunk_size, expected_chunks",
        [(0, 5, 0), (3, 5, 1), (5, 5, 1), (6, 5, 2), (7, 1, 7), (11, 4, 3)],
    )
    def test_chunking(self, fake_target, count, chunk_size, expected_chunks):
        target = fake_target()
        mapper = IdMapper(durable=False)
        step = MigrationStep(InMemorySourceStore(_genres(count)), target, mapper, 3)

        result = step.execute(EntityKind.GENRE, chunk_size)

        assert result.step_name == "migrate_genre"
        assert result.read_count == count
        assert result.migrated_count == count
        assert result.chunk_count == expected_chunks
        assert mapper.count(EntityKind.GENRE) == count

    def test_chunks_commit_in_read_order(self, fake_target):
        target = fake_target()
        step = MigrationStep(
            InMemorySourceStore(_genres(4)), target, IdMapper(durable=False)
        )

        step.execute(EntityKind.GENRE, 3)

        assert [sid for _, sid, _ in target.committed] == ["g0", "g1", "g2", "g3"]

    def test_mapping_error_keeps_earlier_chunks(self, fake_target):
        """Chunks before the failing entity stay committed; its own chunk is not."""
        documents = {
            "books": [
                {"_id": "b1", "title": "ok", "author": "a1", "genre": "g1"},
                {"_id": "b2", "title": "ok", "author": "a1", "genre": "g1"},
                {"_id": "b3", "title": "bad", "author": "a404", "genre": "g1"},
            ]
        }
        mapper = IdMapper(durable=False)
        mapper.publish(
            [
                IdMapping(EntityKind.AUTHOR, "a1", 1),
                IdMapping(EntityKind.GENRE, "g1", 1),
            ]
        )
        target = fake_target()
        step = MigrationStep(InMemorySourceStore(documents), target, mapper)

        with pytest.raises(MappingError) as exc_info:
            step.execute(EntityKind.BOOK, 2)

        assert exc_info.value.phase == "migrate_book"
        assert [sid for _, sid, _ in target.committed] == ["b1", "b2"]
        assert mapper.count(EntityKind.BOOK) == 2

    def test_rejects_non_positive_chunk_size(self, fake_target):
        step = MigrationStep(MagicMock(), fake_target(), IdMapper())

        with pytest.raises(ValueError):
            step.execute(EntityKind.AUTHOR, 0)
