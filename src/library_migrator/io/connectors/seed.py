"""
Seed data for the source store.

A seed file is YAML mapping collection names to lists of documents:

    authors:
      - {_id: a1, fullName: Author_1}
    books:
      - {_id: b1, title: BookTitle_1, author: a3, genre: g2}
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Mapping, Union

import yaml
from pymongo.database import Database

from library_migrator.domain.migration.entities import ENTITY_SPECS
from library_migrator.utils.logging import get_logger

logger = get_logger(__name__)

SeedDocuments = Dict[str, List[Dict[str, Any]]]


def load_seed_file(path: Union[str, Path]) -> SeedDocuments:
    """
    Load and validate a YAML seed file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not a mapping of collection -> list of documents
    """
    seed_path = Path(path)
    if not seed_path.exists():
        raise FileNotFoundError(f"Seed file not found: {seed_path}")

    with open(seed_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Seed file {seed_path} must contain a mapping of collections")

    known = {spec.collection for spec in ENTITY_SPECS.values()}
    documents: SeedDocuments = {}
    for collection, docs in data.items():
        if collection not in known:
            logger.warning("seed.collection.unknown", collection=collection)
        if not isinstance(docs, list) or not all(isinstance(d, dict) for d in docs):
            raise ValueError(
                f"Collection '{collection}' in {seed_path} must be a list of documents"
            )
        documents[str(collection)] = docs

    logger.info(
        "seed.file.loaded",
        path=str(seed_path),
        counts={name: len(docs) for name, docs in documents.items()},
    )
    return documents


def seed_mongo(
    database: Database, documents: Mapping[str, List[Dict[str, Any]]]
) -> Dict[str, int]:
    """
    Replace the given collections in MongoDB with the seed documents.

    Existing collections named in ``documents`` are dropped first.

    Returns:
        Inserted document count per collection
    """
    counts: Dict[str, int] = {}
    for collection, docs in documents.items():
        database.drop_collection(collection)
        if docs:
            result = database[collection].insert_many([dict(d) for d in docs])
            counts[collection] = len(result.inserted_ids)
        else:
            counts[collection] = 0
        logger.info(
            "seed.collection.loaded", collection=collection, count=counts[collection]
        )
    return counts
