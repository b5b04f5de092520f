"""Command-line interface for library-migrator."""
