"""Run-metadata repository and read-only target inspection."""

from .inspection import TargetInspector
from .job_repository import SqlJobRepository

__all__ = ["SqlJobRepository", "TargetInspector"]
