"""
Unified CLI entry point for library-migrator.

Usage:
    python -m library_migrator.cli <command> [options]

Available commands:
    start-migration (sm)  - Run the MongoDB -> relational migration job
    show <table>          - Show migrated rows (aliases: sma, smg, smb, smc)
    init-target           - Create the target tables
    seed <file>           - Load a YAML seed file into MongoDB

Examples:
    python -m library_migrator.cli init-target
    python -m library_migrator.cli sm --chunk-size 5
    python -m library_migrator.cli sm --source-file tests/fixtures/library_seed.yml
    python -m library_migrator.cli smb
"""

import argparse
import sys
from typing import List, Optional

from library_migrator.domain.migration.exceptions import MigrationError

from . import commands


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="library_migrator.cli",
        description="library-migrator - migrate the library catalogue from "
        "MongoDB into a relational database",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(
        title="commands",
        dest="command",
        required=True,
        help="Command to execute",
    )

    migrate_parser = subparsers.add_parser(
        "start-migration",
        aliases=["sm"],
        help="Run the migration job",
    )
    migrate_parser.add_argument(
        "--chunk-size",
        type=_positive_int,
        default=None,
        help="Entities committed per transaction (default: from settings)",
    )
    migrate_parser.add_argument(
        "--source-file",
        default=None,
        help="Read source documents from a YAML seed file instead of MongoDB",
    )
    migrate_parser.set_defaults(handler=commands.start_migration)

    show_parser = subparsers.add_parser("show", help="Show migrated rows")
    show_parser.add_argument("table", choices=sorted(commands.SHOW_TARGETS))
    show_parser.set_defaults(handler=commands.show)

    for alias, table in commands.SHOW_ALIASES.items():
        alias_parser = subparsers.add_parser(alias, help=f"Show migrated {table}")
        alias_parser.set_defaults(handler=commands.show, table=table)

    init_parser = subparsers.add_parser("init-target", help="Create target tables")
    init_parser.set_defaults(handler=commands.init_target)

    seed_parser = subparsers.add_parser("seed", help="Load a YAML seed into MongoDB")
    seed_parser.add_argument("file", help="Path to the YAML seed file")
    seed_parser.set_defaults(handler=commands.seed)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point with subcommand routing.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    args = build_parser().parse_args(argv)
    try:
        return args.handler(args)
    except (MigrationError, FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
