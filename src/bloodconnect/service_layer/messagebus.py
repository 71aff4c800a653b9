# pylint: disable=broad-except
"""Message bus for the blood donor registry following Cosmic Python pattern."""

from __future__ import annotations
import logging
from typing import List, Dict, Callable, Type, Union, TYPE_CHECKING

from bloodconnect.domain import commands, events
from bloodconnect.domain.commands import Command
from bloodconnect.domain.events import Event
from bloodconnect.service_layer import handlers

if TYPE_CHECKING:
    from bloodconnect.service_layer.notifications import NotificationChannel
    from bloodconnect.service_layer.unit_of_work import AbstractUnitOfWork

logger = logging.getLogger(__name__)

Message = Union[Command, Event]


def handle(
    message: Message,
    uow: AbstractUnitOfWork,
    channel: NotificationChannel,
):
    """
    Handle message (command or event) with the appropriate handler.

    The channel is the user-facing side of the registry: handlers post the
    status message and the next view on it. Events are drained in the order
    they were raised, so the last notification posted is the one the user sees.

    Returns:
        One result per command handled
    """
    results = []
    queue = [message]

    while queue:
        message = queue.pop(0)

        if isinstance(message, Event):
            handle_event(message, queue, uow, channel)
        elif isinstance(message, Command):
            cmd_result = handle_command(message, queue, uow, channel)
            results.append(cmd_result)
        else:
            raise Exception(f"{message} was not an Event or Command")

    return results


def handle_event(
    event: Event,
    queue: List[Message],
    uow: AbstractUnitOfWork,
    channel: NotificationChannel,
):
    """Handle event by calling all registered event handlers."""
    for handler in EVENT_HANDLERS[type(event)]:
        try:
            logger.debug(f"handling event {event} with handler {handler.__name__}")
            handler(event, uow=uow, channel=channel)
            queue.extend(uow.collect_new_events())
        except Exception:
            logger.exception("Exception handling event %s", event)
            continue


def handle_command(
    command: Command,
    queue: List[Message],
    uow: AbstractUnitOfWork,
    channel: NotificationChannel,
):
    """Handle command by calling the registered command handler."""
    logger.debug(f"handling command {command}")
    try:
        handler = COMMAND_HANDLERS[type(command)]
        result = handler(command, uow=uow, channel=channel)
        queue.extend(uow.collect_new_events())
        return result
    except Exception:
        logger.exception("Exception handling command %s", command)
        raise


# Event handlers - multiple handlers can respond to same event
EVENT_HANDLERS = {
    events.DonorRegistered: [
        handlers.notify_donor_registered,
        handlers.show_donor_directory,
    ],
    events.RequestPosted: [
        handlers.notify_request_posted,
        handlers.show_home,
    ],
    events.RequestFulfillmentToggled: [handlers.log_fulfillment_change],
    events.DonorRemoved: [handlers.notify_donor_removed],
    events.RequestRemoved: [handlers.notify_request_removed],
    events.RequestsCleared: [handlers.notify_requests_cleared],
    events.DataImported: [handlers.notify_data_imported],
    events.StorageWriteFailed: [handlers.notify_storage_write_failed],
}  # type: Dict[Type[Event], List[Callable]]

# Command handlers - single handler per command type
COMMAND_HANDLERS = {
    commands.RegisterDonor: handlers.register_donor,
    commands.PostRequest: handlers.post_request,
    commands.ToggleFulfilled: handlers.toggle_fulfilled,
    commands.RemoveDonor: handlers.remove_donor,
    commands.RemoveRequest: handlers.remove_request,
    commands.ClearRequests: handlers.clear_requests,
    commands.ImportData: handlers.import_data,
}  # type: Dict[Type[Command], Callable]
