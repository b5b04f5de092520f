"""
Handlers for the CLI subcommands.

Each handler takes the parsed arguments and returns a process exit code.
"""

from __future__ import annotations

import argparse
from typing import Optional

from pymongo.errors import PyMongoError
from sqlalchemy.exc import SQLAlchemyError

from library_migrator.config import Settings, get_settings
from library_migrator.domain.migration.models import EntityKind
from library_migrator.io.connectors import load_seed_file, seed_mongo
from library_migrator.io.connectors.mongo_source import MongoSourceStore
from library_migrator.io.loader import SqlTargetStore, create_target_engine
from library_migrator.io.repositories import TargetInspector
from library_migrator.orchestration import build_orchestrator
from library_migrator.utils.logging import get_logger

logger = get_logger(__name__)

SHOW_TARGETS = {
    "authors": EntityKind.AUTHOR,
    "genres": EntityKind.GENRE,
    "books": EntityKind.BOOK,
    "comments": EntityKind.COMMENT,
}

# Short operator aliases for `show <table>`
SHOW_ALIASES = {
    "sma": "authors",
    "smg": "genres",
    "smb": "books",
    "smc": "comments",
}


def start_migration(
    args: argparse.Namespace, settings: Optional[Settings] = None
) -> int:
    """Run the migration job once and print its RunResult."""
    settings = settings or get_settings()
    with build_orchestrator(
        settings, source_file=args.source_file, chunk_size=args.chunk_size
    ) as context:
        parameters = {"source": args.source_file or "mongodb"}
        result = context.orchestrator.run(parameters)

    print(result)
    return 0 if result.success else 1


def show(args: argparse.Namespace, settings: Optional[Settings] = None) -> int:
    """Print the migrated rows of one target table."""
    settings = settings or get_settings()
    engine = create_target_engine(settings.get_target_connection_string())
    try:
        print(TargetInspector(engine).show(SHOW_TARGETS[args.table]))
    except SQLAlchemyError as e:
        print(f"Error retrieving {args.table}: {e}")
        return 1
    finally:
        engine.dispose()
    return 0


def init_target(args: argparse.Namespace, settings: Optional[Settings] = None) -> int:
    """Create the target tables if they are missing."""
    settings = settings or get_settings()
    target = SqlTargetStore(
        create_target_engine(settings.get_target_connection_string())
    )
    try:
        target.create_target_tables()
    except SQLAlchemyError as e:
        print(f"Failed to create target tables: {e}")
        return 1
    finally:
        target.dispose()
    print("Target tables ready")
    return 0


def seed(args: argparse.Namespace, settings: Optional[Settings] = None) -> int:
    """Load a YAML seed file into the source MongoDB database."""
    documents = load_seed_file(args.file)
    settings = settings or get_settings()
    source = MongoSourceStore.from_uri(
        settings.source_mongo_uri, settings.source_mongo_database
    )
    try:
        counts = seed_mongo(source.database, documents)
    except PyMongoError as e:
        print(f"Failed to seed MongoDB: {e}")
        return 1
    finally:
        source.close()

    for collection, count in counts.items():
        print(f"{collection}: {count} documents")
    return 0
