"""Relational target store."""

from .target_store import SqlTargetStore, create_target_engine

__all__ = ["SqlTargetStore", "create_target_engine"]
