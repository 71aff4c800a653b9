"""Commands for the blood donor registry."""

from dataclasses import dataclass
from typing import Union


@dataclass
class Command:
    """Base class for all commands."""
    pass


@dataclass
class RegisterDonor(Command):
    """Command to register a person as a blood donor."""
    name: str
    phone: str
    blood: str
    city: str = ""
    last_donated: str = ""  # free text, usually 'YYYY-MM-DD'
    note: str = ""


@dataclass
class PostRequest(Command):
    """Command to post a request for blood."""
    name: str
    phone: str
    blood: str
    city: str = ""
    hospital: str = ""
    note: str = ""


@dataclass
class ToggleFulfilled(Command):
    request_id: str


@dataclass
class RemoveDonor(Command):
    donor_id: str


@dataclass
class RemoveRequest(Command):
    request_id: str


@dataclass
class ClearRequests(Command):
    """Command to drop every request stored on this device."""
    pass


@dataclass
class ImportData(Command):
    """Command to replace the local collections with an exported document."""
    payload: Union[str, bytes]
