"""Key-value persistence backends for client state."""

from abc import ABC, abstractmethod
from typing import Iterable, Mapping

from sqlalchemy.exc import SQLAlchemyError

from aircompanion.logging_config import get_logger
from aircompanion.settings import Settings
from aircompanion.storage.db import Database
from aircompanion.storage.models import StoredRecord

logger = get_logger(__name__)


class StorageError(Exception):
    """Raised when the storage backend cannot read or write."""
    pass


class KeyValueStorage(ABC):
    """Durable string-to-string store.

    Writes of several keys go through ``set_many`` so a backend can apply
    them all-or-nothing.
    """

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key is absent."""

    @abstractmethod
    def set_many(self, values: Mapping[str, str]) -> None:
        """Write several records at once."""

    @abstractmethod
    def delete_many(self, keys: Iterable[str]) -> None:
        """Remove records; missing keys are ignored."""

    def close(self) -> None:
        """Release backend resources."""


class MemoryStorage(KeyValueStorage):
    """Process-local storage, lost on exit."""

    def __init__(self, initial: Mapping[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set_many(self, values: Mapping[str, str]) -> None:
        self.data.update(values)

    def delete_many(self, keys: Iterable[str]) -> None:
        for key in keys:
            self.data.pop(key, None)


class SqlKeyValueStorage(KeyValueStorage):
    """Storage backed by the ``kv_records`` table."""

    def __init__(self, database: Database | None = None, config: Settings | None = None):
        """Initialize storage.

        Args:
            database: Database to use (defaults to one built from settings)
            config: Settings used when building the database
        """
        self.db = database or Database(config=config)
        self.db.create_tables()

    def get(self, key: str) -> str | None:
        try:
            with self.db.session() as session:
                record = session.get(StoredRecord, key)
                return record.value if record else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read '{key}': {e}") from e

    def set_many(self, values: Mapping[str, str]) -> None:
        try:
            with self.db.session() as session:
                for key, value in values.items():
                    session.merge(StoredRecord(key=key, value=value))
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to write {sorted(values)}: {e}") from e

    def delete_many(self, keys: Iterable[str]) -> None:
        keys = list(keys)
        try:
            with self.db.session() as session:
                session.query(StoredRecord).filter(
                    StoredRecord.key.in_(keys)
                ).delete(synchronize_session=False)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to delete {keys}: {e}") from e

        logger.debug("records_deleted", keys=keys)

    def close(self) -> None:
        self.db.dispose()
