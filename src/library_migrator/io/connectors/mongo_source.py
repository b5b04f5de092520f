"""
MongoDB source store.

Collections are read with keyset pagination on ``_id``: each page asks for
documents whose ``_id`` is strictly greater than the last one returned, so
pages never overlap and a document is yielded at most once.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from pymongo import ASCENDING, MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from library_migrator.domain.migration.entities import ENTITY_SPECS, EntitySpec
from library_migrator.domain.migration.exceptions import ReadError
from library_migrator.domain.migration.models import EntityKind, SourceEntity
from library_migrator.utils.logging import get_logger

logger = get_logger(__name__)


class MongoSourceStore:
    """
    Read-only access to the library collections of one MongoDB database.

    Usage:
        store = MongoSourceStore.from_uri("mongodb://localhost:27017", "library")
        entities, token = store.find_all(EntityKind.AUTHOR, None, 10)
        store.close()
    """

    def __init__(
        self,
        database: Database,
        specs: Optional[Dict[EntityKind, EntitySpec]] = None,
        client: Optional[MongoClient] = None,
    ):
        """
        Args:
            database: pymongo database holding the source collections
            specs: Entity wiring; defaults to the library collections
            client: Owning client, closed by ``close()`` when given
        """
        self.database = database
        self.specs = specs or ENTITY_SPECS
        self._client = client

    @classmethod
    def from_uri(
        cls, uri: str, database_name: str, **client_kwargs: Any
    ) -> "MongoSourceStore":
        try:
            client: MongoClient = MongoClient(uri, **client_kwargs)
        except PyMongoError as e:
            raise ReadError(f"Failed to connect to MongoDB: {e}") from e
        return cls(client[database_name], client=client)

    def find_all(
        self, kind: EntityKind, page_token: Optional[Any], limit: int
    ) -> Tuple[List[SourceEntity], Optional[Any]]:
        """
        Fetch one page of a collection ordered by ``_id``.

        Args:
            kind: Entity kind to read
            page_token: ``_id`` of the last document of the previous page,
                or None for the first page
            limit: Maximum documents per page

        Returns:
            Entities of the page and the next token (None once exhausted)

        Raises:
            ReadError: On any driver failure
        """
        spec = self.specs[kind]
        query: Dict[str, Any] = {}
        if page_token is not None:
            query["_id"] = {"$gt": page_token}

        try:
            cursor = (
                self.database[spec.collection]
                .find(query)
                .sort("_id", ASCENDING)
                .limit(limit)
            )
            documents = list(cursor)
        except PyMongoError as e:
            raise ReadError(
                f"Failed to read collection '{spec.collection}': {e}", kind=kind
            ) from e

        try:
            entities = [spec.from_document(document) for document in documents]
        except ValueError as e:
            raise ReadError(str(e), kind=kind) from e

        next_token = documents[-1]["_id"] if len(documents) == limit else None
        logger.debug(
            "mongo_source.page.fetched",
            collection=spec.collection,
            count=len(entities),
            has_more=next_token is not None,
        )
        return entities, next_token

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
