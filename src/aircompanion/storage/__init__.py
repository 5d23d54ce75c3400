"""Durable local storage for client state."""

from aircompanion.storage.db import Database
from aircompanion.storage.kv import KeyValueStorage, MemoryStorage, SqlKeyValueStorage, StorageError

__all__ = ["Database", "KeyValueStorage", "MemoryStorage", "SqlKeyValueStorage", "StorageError"]
