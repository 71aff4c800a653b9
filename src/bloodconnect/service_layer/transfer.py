"""
Export and import of the whole registry as a single JSON document.

The document has the shape {"donors": [...], "requests": [...]} and is used
to move data between devices. Importing replaces collections; it never
merges.
"""
import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

from fastapi.concurrency import run_in_threadpool

from bloodconnect.domain import model
from bloodconnect.service_layer.unit_of_work import AbstractUnitOfWork

logger = logging.getLogger(__name__)


class ImportFailed(Exception):
    """Raised when an uploaded document cannot be read as an export."""
    pass


class ImportInProgress(Exception):
    """Raised when an import is started while another one is still running."""
    pass


def export_document(uow: AbstractUnitOfWork) -> Dict[str, List[Dict[str, Any]]]:
    with uow:
        return {
            "donors": [donor.to_dict() for donor in uow.donors.get().donors],
            "requests": [request.to_dict() for request in uow.requests.get().requests],
        }


def export_json(uow: AbstractUnitOfWork) -> str:
    """Pretty-printed export document, ready to be offered as a download."""
    return json.dumps(export_document(uow), indent=2, ensure_ascii=False)


def parse_document(
    payload: Union[str, bytes],
) -> Tuple[Optional[List[model.Donor]], Optional[List[model.BloodRequest]]]:
    """
    Read an export document.

    Returns the donors and requests it carries; either is None when the
    document has no list under that key.

    Raises:
        ImportFailed: If the payload is not JSON, is not an object, or a
            collection holds something other than objects
    """
    if isinstance(payload, bytes):
        try:
            payload = payload.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ImportFailed(f"Document is not UTF-8 text: {e}") from e

    try:
        document = json.loads(payload)
    except (ValueError, RecursionError) as e:
        raise ImportFailed(f"Document is not valid JSON: {e}") from e

    if not isinstance(document, dict):
        raise ImportFailed(f"Document must be an object, got {type(document).__name__}")

    try:
        donors = None
        if isinstance(document.get("donors"), list):
            donors = [model.Donor.from_dict(item) for item in document["donors"]]
        requests = None
        if isinstance(document.get("requests"), list):
            requests = [model.BloodRequest.from_dict(item) for item in document["requests"]]
    except model.InvalidRecord as e:
        raise ImportFailed(str(e)) from e

    return donors, requests


class Importer:
    """
    Runs one import at a time.

    The document is read asynchronously; once it is in hand it is committed
    through the message bus on a worker thread, so the unit of work lock and
    the storage write never block the event loop.
    """

    def __init__(self, uow: AbstractUnitOfWork, channel):
        self.uow = uow
        self.channel = channel
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    async def import_from(self, read: Callable[[], Awaitable[Union[str, bytes]]]) -> Dict[str, Any]:
        if self._in_flight:
            raise ImportInProgress("Another import is still running")

        # Import here to avoid circular dependency
        from bloodconnect.domain.commands import ImportData
        from bloodconnect.service_layer import messagebus

        self._in_flight = True
        try:
            try:
                payload = await read()
            except OSError as e:
                logger.error(f"Failed to read uploaded document: {e}")
                self.channel.notify("Could not read the file", kind="error")
                raise ImportFailed(str(e)) from e

            results = await run_in_threadpool(
                messagebus.handle, ImportData(payload=payload), self.uow, self.channel
            )
            return results[0]
        finally:
            self._in_flight = False
