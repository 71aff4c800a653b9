"""Wires the record store, notification channel and importer together."""

from dataclasses import dataclass
from typing import List

from bloodconnect.domain.commands import Command
from bloodconnect.service_layer import messagebus
from bloodconnect.service_layer.notifications import NotificationChannel
from bloodconnect.service_layer.transfer import Importer
from bloodconnect.service_layer.unit_of_work import AbstractUnitOfWork, RegistryUnitOfWork


@dataclass
class Registry:
    """The single owner of the registry state, handed to the presentation layer."""
    uow: AbstractUnitOfWork
    channel: NotificationChannel
    importer: Importer

    def handle(self, command: Command) -> List:
        return messagebus.handle(command, self.uow, self.channel)


def bootstrap(uow: AbstractUnitOfWork = None, channel: NotificationChannel = None) -> Registry:
    uow = uow or RegistryUnitOfWork()
    channel = channel or NotificationChannel()
    return Registry(uow=uow, channel=channel, importer=Importer(uow, channel))
