"""Doubles shared by the domain unit tests."""

from contextlib import contextmanager
from unittest.mock import MagicMock

import pytest


class FakeTarget:
    """Target store double that records commits and rollbacks."""

    def __init__(self, fail_with=None):
        self.fail_with = fail_with
        self.connection = MagicMock()
        self.next_id = 0
        self.committed = []
        self.rollbacks = 0

    @contextmanager
    def transaction(self):
        pending = []
        self.connection.pending = pending
        try:
            yield self.connection
        except Exception:
            self.rollbacks += 1
            raise
        self.committed.extend(pending)

    def insert_batch(self, connection, kind, entities):
        if self.fail_with is not None:
            raise self.fail_with
        ids = []
        for entity in entities:
            self.next_id += 1
            ids.append(self.next_id)
            connection.pending.append((kind, entity.source_id, self.next_id))
        return ids


@pytest.fixture
def fake_target():
    return FakeTarget
