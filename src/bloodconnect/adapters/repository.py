import abc
import logging
from typing import Any, List, Set

from bloodconnect.adapters.storage import AbstractStorage
from bloodconnect.domain import model

logger = logging.getLogger(__name__)


class AbstractRepository(abc.ABC):
    def __init__(self):
        self.seen = set()  # type: Set[Any]

    def get(self):
        aggregate = self._get()
        self.seen.add(aggregate)
        return aggregate

    def flush(self) -> bool:
        """Write the collection back if it changed. Returns True if a write happened."""
        return self._flush()

    @abc.abstractmethod
    def _get(self):
        raise NotImplementedError

    @abc.abstractmethod
    def _flush(self) -> bool:
        raise NotImplementedError


class StorageRepository(AbstractRepository):
    """
    One collection, loaded from storage once and kept in memory.

    The whole collection is written back under its key whenever the
    aggregate's version_number moved since the last write.
    """

    def __init__(self, storage: AbstractStorage, key: str):
        super().__init__()
        self.storage = storage
        self.key = key
        self._aggregate = self._build(self._parse(storage.load(key)))
        self._flushed_version = self._aggregate.version_number
        logger.info(f"Loaded {len(self._records())} records from {key}")

    def _get(self):
        return self._aggregate

    def _flush(self) -> bool:
        if self._aggregate.version_number == self._flushed_version:
            return False
        # Marked as flushed before writing: a failed write is reported, not retried.
        self._flushed_version = self._aggregate.version_number
        self.storage.save(self.key, [record.to_dict() for record in self._records()])
        return True

    def _parse(self, raw_records: List[Any]) -> List[Any]:
        records = []
        for raw in raw_records:
            try:
                records.append(self._from_dict(raw))
            except model.InvalidRecord as e:
                logger.error(f"Skipping unreadable record in {self.key}: {e}")
        return records

    @abc.abstractmethod
    def _from_dict(self, raw: Any):
        raise NotImplementedError

    @abc.abstractmethod
    def _build(self, records: List[Any]):
        raise NotImplementedError

    @abc.abstractmethod
    def _records(self) -> List[Any]:
        raise NotImplementedError


class DonorRepository(StorageRepository):
    def _from_dict(self, raw: Any) -> model.Donor:
        return model.Donor.from_dict(raw)

    def _build(self, records: List[model.Donor]) -> model.DonorDirectory:
        return model.DonorDirectory(records)

    def _records(self) -> List[model.Donor]:
        return self._aggregate.donors


class RequestRepository(StorageRepository):
    def _from_dict(self, raw: Any) -> model.BloodRequest:
        return model.BloodRequest.from_dict(raw)

    def _build(self, records: List[model.BloodRequest]) -> model.RequestBoard:
        return model.RequestBoard(records)

    def _records(self) -> List[model.BloodRequest]:
        return self._aggregate.requests
