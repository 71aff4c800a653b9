# pylint: disable=redefined-outer-name
from typing import Dict, List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from bloodconnect.adapters import orm
from bloodconnect.adapters.storage import AbstractStorage, StorageWriteError
from bloodconnect.bootstrap import bootstrap
from bloodconnect.service_layer.notifications import NotificationChannel
from bloodconnect.service_layer.unit_of_work import RegistryUnitOfWork

DONORS_KEY = "bd_donors_v1"
REQUESTS_KEY = "bd_requests_v1"


class FakeStorage(AbstractStorage):
    """In-memory key/value store that records every write."""

    def __init__(self, values: Dict[str, str] = None):
        self.values = dict(values or {})
        self.writes = []  # type: List[str]
        self.fail_writes = False

    def _read(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def _write(self, key: str, raw: str) -> None:
        if self.fail_writes:
            raise StorageWriteError("quota exceeded")
        self.writes.append(key)
        self.values[key] = raw


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_storage():
    return FakeStorage()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def channel(clock):
    return NotificationChannel(ttl=3.5, clock=clock)


@pytest.fixture
def uow(fake_storage):
    return RegistryUnitOfWork(storage=fake_storage)


@pytest.fixture
def registry(uow, channel):
    return bootstrap(uow=uow, channel=channel)


@pytest.fixture
def sqlite_session_factory():
    """Create SQLite in-memory database for fast testing."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    orm.create_tables(engine)

    yield sessionmaker(bind=engine)

    engine.dispose()
