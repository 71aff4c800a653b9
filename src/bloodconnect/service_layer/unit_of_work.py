# pylint: disable=attribute-defined-outside-init
from __future__ import annotations
import abc
import logging
import threading
from typing import List

import config
from bloodconnect.adapters import repository
from bloodconnect.adapters.storage import (
    AbstractStorage,
    SqlAlchemyStorage,
    StorageWriteError,
    default_session_factory,
)
from bloodconnect.domain import events

logger = logging.getLogger(__name__)


class AbstractUnitOfWork(abc.ABC):
    donors: repository.AbstractRepository
    requests: repository.AbstractRepository
    events: List[events.Event]

    def __enter__(self) -> AbstractUnitOfWork:
        return self

    def __exit__(self, *args):
        self.rollback()

    def commit(self):
        self._commit()

    def collect_new_events(self):
        for repo in (self.donors, self.requests):
            for aggregate in repo.seen:
                while aggregate.events:
                    yield aggregate.events.pop(0)
        while self.events:
            yield self.events.pop(0)

    @abc.abstractmethod
    def _commit(self):
        raise NotImplementedError

    @abc.abstractmethod
    def rollback(self):
        raise NotImplementedError


class RegistryUnitOfWork(AbstractUnitOfWork):
    """
    Unit of work over the in-memory donor and request collections.

    Both collections are loaded from storage once, when the unit of work is
    created. commit() writes every changed collection back in full; leaving
    the block without committing restores the collections to what they were
    on entry. Entering the block takes a re-entrant lock, so only one thread
    touches the collections at a time.
    """

    def __init__(self, storage: AbstractStorage = None):
        self.storage = storage or SqlAlchemyStorage(default_session_factory())
        keys = config.get_storage_keys()
        self.donors = repository.DonorRepository(self.storage, keys["donors"])
        self.requests = repository.RequestRepository(self.storage, keys["requests"])
        self.events = []
        self._lock = threading.RLock()
        self._snapshot = None

    def __enter__(self):
        self._lock.acquire()
        directory, board = self.donors.get(), self.requests.get()
        self._snapshot = (
            (directory.snapshot(), directory.version_number),
            (board.snapshot(), board.version_number),
        )
        return super().__enter__()

    def __exit__(self, *args):
        try:
            super().__exit__(*args)
        finally:
            self._lock.release()

    def _commit(self):
        for repo in (self.donors, self.requests):
            try:
                if repo.flush():
                    logger.info(f"Wrote {repo.key} to storage")
            except StorageWriteError as e:
                logger.error(f"Changes to {repo.key} were not saved: {e}")
                self.events.append(events.StorageWriteFailed(key=repo.key, reason=str(e)))
        self._snapshot = None

    def rollback(self):
        if self._snapshot is None:
            return
        for repo, (records, version_number) in zip((self.donors, self.requests), self._snapshot):
            aggregate = repo.get()
            if aggregate.version_number != version_number:
                logger.info(f"Rolling back uncommitted changes to {repo.key}")
                aggregate.restore(records, version_number)
        self._snapshot = None
