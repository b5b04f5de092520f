"""Unit tests for EntityReader paging."""

from unittest.mock import MagicMock

import pytest

from library_migrator.domain.migration.exceptions import ReadError
from library_migrator.domain.migration.models import EntityKind, SourceEntity
from library_migrator.domain.migration.reader import EntityReader
from library_migrator.io.connectors import InMemorySourceStore


def _authors(count):
    return {
        "authors": [
            {"_id": f"a{i}", "fullName": f"Author_{i}"} for i in range(1, count + 1)
        ]
    }


@pytest.mark.unit
class TestEntityReader:
    @pytest.mark.parametrize("page_size", [1, 2, 3, 7, 10])
    def test_yields_every_entity_once_in_order(self, page_size):
        source = InMemorySourceStore(_authors(7))
        reader = EntityReader(source, EntityKind.AUTHOR, page_size)

        ids = [entity.source_id for entity in reader]

        assert ids == [f"a{i}" for i in range(1, 8)]

    def test_page_count(self):
        reader = EntityReader(InMemorySourceStore(_authors(5)), EntityKind.AUTHOR, 2)
        list(reader)

        assert reader.pages_read == 3

    def test_empty_collection(self):
        reader = EntityReader(InMemorySourceStore({}), EntityKind.GENRE, 10)

        assert list(reader) == []
        assert reader.pages_read == 1

    def test_rejects_non_positive_page_size(self):
        with pytest.raises(ValueError):
            EntityReader(InMemorySourceStore({}), EntityKind.GENRE, 0)

    def test_driver_failure_becomes_read_error(self):
        source = MagicMock()
        source.find_all.side_effect = ConnectionError("socket closed")
        reader = EntityReader(source, EntityKind.BOOK, 10)

        with pytest.raises(ReadError) as exc_info:
            list(reader)

        assert exc_info.value.kind is EntityKind.BOOK
        assert isinstance(exc_info.value.__cause__, ConnectionError)

    def test_repeated_token_is_rejected(self):
        """A source that never advances would otherwise loop forever."""
        entity = SourceEntity(EntityKind.AUTHOR, "a1")
        source = MagicMock()
        source.find_all.return_value = ([entity], "same")
        reader = EntityReader(source, EntityKind.AUTHOR, 1)

        with pytest.raises(ReadError, match="same page token"):
            list(reader)
