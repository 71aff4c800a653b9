"""Domain model for donors, blood requests and the collections that own them."""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from bloodconnect.domain import events

BLOOD_GROUPS = ("A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-")


class InvalidSubmission(Exception):
    """A donor registration or blood request is missing required data."""


class InvalidRecord(Exception):
    """A stored or imported record does not have the shape of an object."""


def _text(data: Dict[str, Any], *keys: str) -> str:
    for key in keys:
        value = data.get(key)
        if value is not None:
            return str(value)
    return ""


def next_record_id(now: datetime, taken: Iterable[str]) -> str:
    """
    Derive a record id from the creation instant (epoch milliseconds).

    Two records created within the same millisecond would collide, so the
    candidate is bumped until it is free in the collection.
    """
    taken = set(taken)
    candidate = int(now.timestamp() * 1000)
    while str(candidate) in taken:
        candidate += 1
    return str(candidate)


def _require(name: str, phone: str, blood: str) -> None:
    if not name or not phone or not blood:
        raise InvalidSubmission("Please provide name, phone and blood group")
    if blood not in BLOOD_GROUPS:
        raise InvalidSubmission(f"Unknown blood group: {blood}")


@dataclass
class Donor:
    id: str
    name: str
    phone: str
    blood: str
    city: str = ""
    last_donated: str = ""
    note: str = ""
    created_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "blood": self.blood,
            "city": self.city,
            "lastDonated": self.last_donated,
            "note": self.note,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Donor":
        """Build a donor from its persisted form (camelCase or snake_case keys)."""
        if not isinstance(data, dict):
            raise InvalidRecord(f"Donor record must be an object, got {type(data).__name__}")
        return cls(
            id=_text(data, "id"),
            name=_text(data, "name"),
            phone=_text(data, "phone"),
            blood=_text(data, "blood"),
            city=_text(data, "city"),
            last_donated=_text(data, "lastDonated", "last_donated"),
            note=_text(data, "note"),
            created_at=_text(data, "createdAt", "created_at"),
        )


@dataclass
class BloodRequest:
    id: str
    name: str
    phone: str
    blood: str
    city: str = ""
    hospital: str = ""
    note: str = ""
    created_at: str = ""
    fulfilled: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "blood": self.blood,
            "city": self.city,
            "hospital": self.hospital,
            "note": self.note,
            "createdAt": self.created_at,
            "fulfilled": self.fulfilled,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "BloodRequest":
        """Build a request from its persisted form (camelCase or snake_case keys)."""
        if not isinstance(data, dict):
            raise InvalidRecord(f"Request record must be an object, got {type(data).__name__}")
        return cls(
            id=_text(data, "id"),
            name=_text(data, "name"),
            phone=_text(data, "phone"),
            blood=_text(data, "blood"),
            city=_text(data, "city"),
            hospital=_text(data, "hospital"),
            note=_text(data, "note"),
            created_at=_text(data, "createdAt", "created_at"),
            fulfilled=data.get("fulfilled") is True,
        )


def new_donor(
    name: str,
    phone: str,
    blood: str,
    now: datetime,
    taken: Iterable[str] = (),
    city: str = "",
    last_donated: str = "",
    note: str = "",
) -> Donor:
    """
    Validate a registration form and build the donor it describes.

    Every field is trimmed first; name, phone and blood group are required.

    Raises:
        InvalidSubmission: If a required field is empty or the blood group is unknown
    """
    name, phone, blood = (name or "").strip(), (phone or "").strip(), (blood or "").strip()
    _require(name, phone, blood)
    return Donor(
        id=next_record_id(now, taken),
        name=name,
        phone=phone,
        blood=blood,
        city=(city or "").strip(),
        last_donated=(last_donated or "").strip(),
        note=(note or "").strip(),
        created_at=now.isoformat(),
    )


def new_request(
    name: str,
    phone: str,
    blood: str,
    now: datetime,
    taken: Iterable[str] = (),
    city: str = "",
    hospital: str = "",
    note: str = "",
) -> BloodRequest:
    """Validate a request form and build the blood request it describes."""
    name, phone, blood = (name or "").strip(), (phone or "").strip(), (blood or "").strip()
    _require(name, phone, blood)
    return BloodRequest(
        id=next_record_id(now, taken),
        name=name,
        phone=phone,
        blood=blood,
        city=(city or "").strip(),
        hospital=(hospital or "").strip(),
        note=(note or "").strip(),
        created_at=now.isoformat(),
    )


class DonorDirectory:
    """
    Aggregate owning the donor collection, newest first.

    Every change bumps version_number so the repository knows the collection
    has to be written back to storage.
    """

    def __init__(self, donors: Optional[List[Donor]] = None, version_number: int = 0):
        self.donors = list(donors or [])
        self.version_number = version_number
        self.events = []  # type: List[events.Event]

    def taken_ids(self) -> List[str]:
        return [donor.id for donor in self.donors]

    def get(self, donor_id: str) -> Optional[Donor]:
        return next((d for d in self.donors if d.id == donor_id), None)

    def register(self, donor: Donor) -> None:
        self.donors.insert(0, donor)
        self.version_number += 1
        self.events.append(events.DonorRegistered(donor_id=donor.id, blood=donor.blood))

    def remove(self, donor_id: str) -> bool:
        remaining = [d for d in self.donors if d.id != donor_id]
        found = len(remaining) != len(self.donors)
        if found:
            self.donors = remaining
            self.version_number += 1
        self.events.append(events.DonorRemoved(donor_id=donor_id, found=found))
        return found

    def replace_all(self, donors: List[Donor]) -> None:
        self.donors = list(donors)
        self.version_number += 1

    def snapshot(self) -> List[Donor]:
        return [replace(d) for d in self.donors]

    def restore(self, donors: List[Donor], version_number: int) -> None:
        self.donors = donors
        self.version_number = version_number
        self.events.clear()


class RequestBoard:
    """Aggregate owning the blood request collection, newest first."""

    def __init__(self, requests: Optional[List[BloodRequest]] = None, version_number: int = 0):
        self.requests = list(requests or [])
        self.version_number = version_number
        self.events = []  # type: List[events.Event]

    def taken_ids(self) -> List[str]:
        return [request.id for request in self.requests]

    def get(self, request_id: str) -> Optional[BloodRequest]:
        return next((r for r in self.requests if r.id == request_id), None)

    def post(self, request: BloodRequest) -> None:
        self.requests.insert(0, request)
        self.version_number += 1
        self.events.append(events.RequestPosted(request_id=request.id, blood=request.blood))

    def toggle_fulfilled(self, request_id: str) -> Optional[BloodRequest]:
        request = self.get(request_id)
        if request is None:
            return None
        request.fulfilled = not request.fulfilled
        self.version_number += 1
        self.events.append(
            events.RequestFulfillmentToggled(request_id=request_id, fulfilled=request.fulfilled)
        )
        return request

    def remove(self, request_id: str) -> bool:
        remaining = [r for r in self.requests if r.id != request_id]
        found = len(remaining) != len(self.requests)
        if found:
            self.requests = remaining
            self.version_number += 1
        self.events.append(events.RequestRemoved(request_id=request_id, found=found))
        return found

    def clear(self) -> int:
        count = len(self.requests)
        self.requests = []
        self.version_number += 1
        self.events.append(events.RequestsCleared(count=count))
        return count

    def replace_all(self, requests: List[BloodRequest]) -> None:
        self.requests = list(requests)
        self.version_number += 1

    def snapshot(self) -> List[BloodRequest]:
        return [replace(r) for r in self.requests]

    def restore(self, requests: List[BloodRequest], version_number: int) -> None:
        self.requests = requests
        self.version_number = version_number
        self.events.clear()
