import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from bloodconnect.domain import commands, events, model
from bloodconnect.service_layer import transfer
from bloodconnect.service_layer.notifications import NotificationChannel
from bloodconnect.service_layer.unit_of_work import AbstractUnitOfWork

logger = logging.getLogger(__name__)


def register_donor(
    command: commands.RegisterDonor,
    uow: AbstractUnitOfWork,
    channel: NotificationChannel,
) -> model.Donor:
    """
    Register a new donor at the top of the directory.

    Flow:
    1. Validate and build the donor (id and created_at from the current instant)
    2. Prepend it to the directory
    3. Commit, which writes the whole donor collection to storage

    Raises:
        InvalidSubmission: If name, phone or blood group is missing. The user
            is notified and nothing is changed or written.
    """
    logger.info(f"Processing RegisterDonor command for blood group {command.blood!r}")

    with uow:
        directory = uow.donors.get()
        try:
            donor = model.new_donor(
                name=command.name,
                phone=command.phone,
                blood=command.blood,
                city=command.city,
                last_donated=command.last_donated,
                note=command.note,
                now=datetime.now(timezone.utc),
                taken=directory.taken_ids(),
            )
        except model.InvalidSubmission as e:
            logger.warning(f"Rejected donor registration: {e}")
            channel.notify(str(e))
            raise

        directory.register(donor)
        uow.commit()

    logger.info(f"Registered donor {donor.id}")
    return donor


def post_request(
    command: commands.PostRequest,
    uow: AbstractUnitOfWork,
    channel: NotificationChannel,
) -> model.BloodRequest:
    """Post a blood request at the top of the board. Same validation as register_donor."""
    logger.info(f"Processing PostRequest command for blood group {command.blood!r}")

    with uow:
        board = uow.requests.get()
        try:
            request = model.new_request(
                name=command.name,
                phone=command.phone,
                blood=command.blood,
                city=command.city,
                hospital=command.hospital,
                note=command.note,
                now=datetime.now(timezone.utc),
                taken=board.taken_ids(),
            )
        except model.InvalidSubmission as e:
            logger.warning(f"Rejected blood request: {e}")
            channel.notify(str(e))
            raise

        board.post(request)
        uow.commit()

    logger.info(f"Posted request {request.id}")
    return request


def toggle_fulfilled(
    command: commands.ToggleFulfilled,
    uow: AbstractUnitOfWork,
    channel: NotificationChannel,
) -> Optional[model.BloodRequest]:
    with uow:
        request = uow.requests.get().toggle_fulfilled(command.request_id)
        if request is None:
            logger.info(f"Request {command.request_id} not found, nothing to toggle")
            return None
        uow.commit()
    return request


def remove_donor(
    command: commands.RemoveDonor,
    uow: AbstractUnitOfWork,
    channel: NotificationChannel,
) -> bool:
    with uow:
        found = uow.donors.get().remove(command.donor_id)
        uow.commit()
    return found


def remove_request(
    command: commands.RemoveRequest,
    uow: AbstractUnitOfWork,
    channel: NotificationChannel,
) -> bool:
    with uow:
        found = uow.requests.get().remove(command.request_id)
        uow.commit()
    return found


def clear_requests(
    command: commands.ClearRequests,
    uow: AbstractUnitOfWork,
    channel: NotificationChannel,
) -> int:
    """Drop every request. No confirmation step; only this device is affected."""
    with uow:
        count = uow.requests.get().clear()
        uow.commit()
    logger.info(f"Cleared {count} requests")
    return count


def import_data(
    command: commands.ImportData,
    uow: AbstractUnitOfWork,
    channel: NotificationChannel,
) -> Dict[str, Any]:
    """
    Replace the local collections with the ones in an exported document.

    Each collection is replaced only when the document carries a list for
    it. A malformed document changes nothing.

    Raises:
        ImportFailed: If the payload cannot be read as an export document
    """
    try:
        donors, requests = transfer.parse_document(command.payload)
    except transfer.ImportFailed as e:
        logger.error(f"Import rejected: {e}")
        channel.notify("Could not read the file", kind="error")
        raise

    counts = {
        "donors": len(donors) if donors is not None else None,
        "requests": len(requests) if requests is not None else None,
    }
    with uow:
        if donors is not None:
            uow.donors.get().replace_all(donors)
        if requests is not None:
            uow.requests.get().replace_all(requests)
        # Must precede any StorageWriteFailed raised by the commit.
        uow.events.append(events.DataImported(**counts))
        uow.commit()

    return counts


def notify_donor_registered(event: events.DonorRegistered, uow, channel: NotificationChannel):
    channel.notify("Thank you! You are registered as a donor.")


def show_donor_directory(event: events.DonorRegistered, uow, channel: NotificationChannel):
    channel.navigate("find")


def notify_request_posted(event: events.RequestPosted, uow, channel: NotificationChannel):
    channel.notify("Your request has been submitted. We will keep you updated.")


def show_home(event: events.RequestPosted, uow, channel: NotificationChannel):
    channel.navigate("home")


def log_fulfillment_change(event: events.RequestFulfillmentToggled, uow, channel):
    logger.info(f"Request {event.request_id} fulfilled={event.fulfilled}")


def notify_donor_removed(event: events.DonorRemoved, uow, channel: NotificationChannel):
    channel.notify("Donor removed")


def notify_request_removed(event: events.RequestRemoved, uow, channel: NotificationChannel):
    channel.notify("Request removed")


def notify_requests_cleared(event: events.RequestsCleared, uow, channel: NotificationChannel):
    channel.notify("All requests cleared (local only)")


def notify_data_imported(event: events.DataImported, uow, channel: NotificationChannel):
    channel.notify("Data import complete")


def notify_storage_write_failed(event: events.StorageWriteFailed, uow, channel: NotificationChannel):
    """The change stays in memory; the user is told it was not saved on the device."""
    channel.notify("Could not save changes on this device", kind="error")
