"""Local device storage for the donor and request collections."""

import abc
import json
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import create_engine, delete, insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

import config
from bloodconnect.adapters import orm

logger = logging.getLogger(__name__)


class StorageReadError(Exception):
    """Raised when the storage backend cannot be read."""
    pass


class StorageWriteError(Exception):
    """Raised when a collection cannot be written to the storage backend."""
    pass


class AbstractStorage(abc.ABC):
    """
    Key/value store holding one JSON array per key.

    load() never raises: missing, unreadable or corrupt data all come back
    as an empty list. save() overwrites the whole value.
    """

    def load(self, key: str) -> List[Any]:
        try:
            raw = self._read(key)
        except StorageReadError as e:
            logger.error(f"Failed to read {key} from storage: {e}")
            return []

        if raw is None:
            return []

        try:
            records = json.loads(raw)
        except (ValueError, RecursionError) as e:
            logger.error(f"Stored value under {key} is not valid JSON: {e}")
            return []

        if not isinstance(records, list):
            logger.error(f"Stored value under {key} is not a list, ignoring it")
            return []

        return records

    def save(self, key: str, records: List[Dict[str, Any]]) -> None:
        raw = json.dumps(list(records))
        self._write(key, raw)
        logger.debug(f"Saved {len(records)} records under {key}")

    @abc.abstractmethod
    def _read(self, key: str) -> Optional[str]:
        """Return the raw stored text, or None if nothing is stored under key."""
        raise NotImplementedError

    @abc.abstractmethod
    def _write(self, key: str, raw: str) -> None:
        raise NotImplementedError


class SqlAlchemyStorage(AbstractStorage):
    """SQLite-backed implementation of the local key/value store."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def _read(self, key: str) -> Optional[str]:
        try:
            with self.session_factory() as session:
                return session.execute(
                    select(orm.local_storage.c.value).where(orm.local_storage.c.key == key)
                ).scalar()
        except SQLAlchemyError as e:
            raise StorageReadError(str(e)) from e

    def _write(self, key: str, raw: str) -> None:
        try:
            with self.session_factory() as session:
                with session.begin():
                    session.execute(
                        delete(orm.local_storage).where(orm.local_storage.c.key == key)
                    )
                    session.execute(insert(orm.local_storage).values(key=key, value=raw))
        except SQLAlchemyError as e:
            logger.exception(f"Failed to write {key} to storage")
            raise StorageWriteError(str(e)) from e


def default_session_factory():
    """Session factory for the SQLite file configured for this device."""
    engine = create_engine(config.get_sqlite_uri())
    orm.create_tables(engine)
    return sessionmaker(bind=engine)
