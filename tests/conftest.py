"""Shared test fixtures for the Kanban board tests."""

import copy
import sys
from pathlib import Path

import pytest

# Ensure the repository root is importable
sys.path.insert(0, str(Path(__file__).parent.parent))

from pkg.kanban.client import BoardDB, HybridStore, RemoteError
from pkg.kanban.schema import Column, Task
from pkg.kanban.store import KVStore


class FakeRemote:
    """In-memory stand-in for the key-value service. Set .down to simulate an outage."""

    def __init__(self):
        self.data = {}
        self.down = False
        self.deleted = []

    def _check(self):
        if self.down:
            raise RemoteError("connection refused")

    def get(self, key):
        self._check()
        return copy.deepcopy(self.data.get(key))

    def save(self, key, value):
        self._check()
        self.data[key] = copy.deepcopy(value)

    def delete(self, key):
        self._check()
        self.deleted.append(key)
        self.data.pop(key, None)


def make_task(task_id, status="ToDo", **fields):
    fields.setdefault("created_at", 1_700_000_000_000)
    return Task(id=task_id, title=fields.pop("title", task_id), status=status, **fields)


def make_columns(*ids):
    return [Column(id=i, title=i.upper()) for i in ids]


@pytest.fixture
def remote():
    return FakeRemote()


@pytest.fixture
def local(tmp_path):
    return KVStore(str(tmp_path / "cache.db"))


@pytest.fixture
def db(remote, local):
    return BoardDB(HybridStore(remote, local))
