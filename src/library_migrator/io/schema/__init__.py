"""Run-scoped staging objects in the target store."""

from .staging import SchemaManager

__all__ = ["SchemaManager"]
