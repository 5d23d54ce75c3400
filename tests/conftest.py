"""Shared fixtures for the Air Companion test suite."""

import itertools
from datetime import datetime, timezone

import pytest

from aircompanion.clock import FixedClock
from aircompanion.settings import Settings
from aircompanion.storage.db import Database
from aircompanion.storage.kv import MemoryStorage, SqlKeyValueStorage, StorageError
from aircompanion.user.store import UserStateStore


class FailingStorage(MemoryStorage):
    """Memory storage whose writes can be switched off."""

    def __init__(self):
        super().__init__()
        self.fail_writes = False

    def set_many(self, values):
        if self.fail_writes:
            raise StorageError("disk full")
        super().set_many(values)

    def delete_many(self, keys):
        if self.fail_writes:
            raise StorageError("disk full")
        super().delete_many(keys)


@pytest.fixture
def config():
    """Settings isolated from the environment and .env files."""
    return Settings(_env_file=None, daily_credit_allowance=24, route_search_cost=12)


@pytest.fixture
def clock():
    """Clock frozen at 2024-03-14 09:30 UTC."""
    return FixedClock(datetime(2024, 3, 14, 9, 30, tzinfo=timezone.utc))


@pytest.fixture
def id_factory():
    counter = itertools.count(1)
    return lambda: f"id-{next(counter)}"


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def failing_storage():
    return FailingStorage()


@pytest.fixture
def make_store(storage, clock, config, id_factory):
    """Build and load a store; keyword arguments override the defaults."""

    def _make(**kwargs):
        backend = kwargs.pop("storage", storage)
        options = {"clock": clock, "config": config, "id_factory": id_factory, **kwargs}
        return UserStateStore.open(backend, **options)

    return _make


@pytest.fixture
def store(make_store):
    return make_store()


@pytest.fixture
def sql_url(tmp_path):
    return f"sqlite:///{tmp_path / 'state.db'}"


@pytest.fixture
def make_sql_storage(sql_url, config):
    """Fresh SQL storage handles on the same database file."""

    def _make():
        return SqlKeyValueStorage(Database(sql_url, config=config))

    return _make
