"""Forward-only entity reader over one source collection."""

from __future__ import annotations

from typing import Iterator

from library_migrator.utils.logging import get_logger

from .exceptions import MigrationError, ReadError
from .models import EntityKind, SourceEntity
from .protocols import SourceStore

logger = get_logger(__name__)


class EntityReader:
    """
    Iterate a source collection page by page.

    Entities come out in the store's stable order and each one exactly once;
    only one page is held in memory at a time.
    """

    def __init__(self, source: SourceStore, kind: EntityKind, page_size: int):
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self.source = source
        self.kind = kind
        self.page_size = page_size
        self.pages_read = 0

    def __iter__(self) -> Iterator[SourceEntity]:
        token = None
        while True:
            entities, next_token = self._fetch(token)
            if next_token is not None and next_token == token:
                raise ReadError(
                    f"Source returned the same page token twice for {self.kind.value}",
                    kind=self.kind,
                )
            self.pages_read += 1
            logger.debug(
                "migration.reader.page_fetched",
                kind=self.kind.value,
                page=self.pages_read,
                size=len(entities),
            )
            yield from entities

            if next_token is None or not entities:
                return
            token = next_token

    def _fetch(self, token):
        try:
            return self.source.find_all(self.kind, token, self.page_size)
        except MigrationError:
            raise
        except Exception as e:
            raise ReadError(
                f"Failed to read {self.kind.value} page: {e}", kind=self.kind
            ) from e
