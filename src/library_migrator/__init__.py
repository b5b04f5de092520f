"""
library-migrator - chunked document-store to relational-store migration.

Moves the author/genre/book/comment graph out of MongoDB into a relational
target, remapping document identifiers to relational surrogate keys while
keeping foreign keys consistent.
"""

__version__ = "0.1.0"
