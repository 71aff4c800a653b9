"""
Unit tests for the local key/value storage.
Reads never raise; writes overwrite the whole collection.
"""
import json

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from bloodconnect.adapters.storage import SqlAlchemyStorage, StorageWriteError
from bloodconnect.service_layer.unit_of_work import RegistryUnitOfWork

from conftest import DONORS_KEY, FakeStorage


class TestSqlAlchemyStorage:
    """Round trips through an in-memory SQLite database."""

    def test_missing_key_loads_empty(self, sqlite_session_factory):
        storage = SqlAlchemyStorage(sqlite_session_factory)

        assert storage.load(DONORS_KEY) == []

    def test_save_then_load(self, sqlite_session_factory):
        storage = SqlAlchemyStorage(sqlite_session_factory)
        records = [{"id": "2", "name": "B"}, {"id": "1", "name": "A"}]

        storage.save(DONORS_KEY, records)

        assert storage.load(DONORS_KEY) == records

    def test_save_overwrites_prior_value(self, sqlite_session_factory):
        storage = SqlAlchemyStorage(sqlite_session_factory)
        storage.save(DONORS_KEY, [{"id": "1"}])

        storage.save(DONORS_KEY, [])

        assert storage.load(DONORS_KEY) == []
        with sqlite_session_factory() as session:
            count = session.execute(text("SELECT COUNT(*) FROM local_storage")).scalar()
        assert count == 1

    def test_corrupt_value_loads_empty(self, sqlite_session_factory):
        with sqlite_session_factory() as session:
            session.execute(
                text("INSERT INTO local_storage (key, value) VALUES (:key, :value)"),
                dict(key=DONORS_KEY, value="{not json"),
            )
            session.commit()

        storage = SqlAlchemyStorage(sqlite_session_factory)

        assert storage.load(DONORS_KEY) == []

    def test_unreadable_database_loads_empty_and_write_fault_is_wrapped(self):
        """Without the table both directions fail; only the write raises."""
        engine = create_engine(
            "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
        )
        storage = SqlAlchemyStorage(sessionmaker(bind=engine))

        assert storage.load(DONORS_KEY) == []
        with pytest.raises(StorageWriteError):
            storage.save(DONORS_KEY, [{"id": "1"}])


def test_value_that_is_not_a_list_loads_empty():
    storage = FakeStorage({DONORS_KEY: json.dumps({"donors": []})})

    assert storage.load(DONORS_KEY) == []


def test_corrupt_donor_record_is_recovered_at_startup():
    """A registry started over corrupt storage comes up empty instead of failing."""
    storage = FakeStorage({DONORS_KEY: "[{\"id\": "})

    uow = RegistryUnitOfWork(storage=storage)

    with uow:
        assert uow.donors.get().donors == []


def test_non_object_items_are_skipped_at_startup():
    storage = FakeStorage({DONORS_KEY: json.dumps([
        "garbage",
        {"id": "1", "name": "Rahim", "phone": "0171", "blood": "O+"},
    ])})

    uow = RegistryUnitOfWork(storage=storage)

    with uow:
        assert [d.id for d in uow.donors.get().donors] == ["1"]


def test_deeply_nested_value_loads_empty_and_registry_still_starts():
    nested = "[" * 100000 + "]" * 100000
    storage = FakeStorage({DONORS_KEY: nested})

    assert storage.load(DONORS_KEY) == []
    with RegistryUnitOfWork(storage=storage) as uow:
        assert uow.donors.get().donors == []
