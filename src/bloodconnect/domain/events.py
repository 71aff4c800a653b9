"""Domain events for the blood donor registry."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Event:
    """Base class for all domain events."""
    pass


@dataclass
class DonorRegistered(Event):
    """Event raised when a donor has been added to the directory."""
    donor_id: str
    blood: str


@dataclass
class DonorRemoved(Event):
    donor_id: str
    found: bool


@dataclass
class RequestPosted(Event):
    """Event raised when a blood request has been added to the board."""
    request_id: str
    blood: str


@dataclass
class RequestFulfillmentToggled(Event):
    request_id: str
    fulfilled: bool


@dataclass
class RequestRemoved(Event):
    request_id: str
    found: bool


@dataclass
class RequestsCleared(Event):
    count: int


@dataclass
class DataImported(Event):
    """Event raised after an import replaced one or both collections.

    A count of None means the document carried no list for that collection
    and it was left untouched.
    """
    donors: Optional[int] = None
    requests: Optional[int] = None


@dataclass
class StorageWriteFailed(Event):
    """Event raised when a collection could not be written to the device."""
    key: str
    reason: str
