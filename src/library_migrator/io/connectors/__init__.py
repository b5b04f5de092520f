"""Source store connectors."""

from .memory_source import InMemorySourceStore
from .mongo_source import MongoSourceStore
from .seed import load_seed_file, seed_mongo

__all__ = [
    "InMemorySourceStore",
    "MongoSourceStore",
    "load_seed_file",
    "seed_mongo",
]
