"""Actions are outputs of the activation transition table.

The machine executes actions by calling concrete collaborators
(platform push, registrars, the device store, user callbacks).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Action:
    """Base class for all activation actions."""


# === Platform / network ===


@dataclass(frozen=True)
class RequestDeviceDetails(Action):
    """Ask the platform to obtain recipient details asynchronously."""


@dataclass(frozen=True)
class RegisterDevice(Action):
    """Register the device (custom registerer or REST) to get an update token."""


@dataclass(frozen=True)
class UpdateRegistration(Action):
    """Push the refreshed recipient to the service."""


@dataclass(frozen=True)
class Deregister(Action):
    """Remove the device registration (custom deregisterer or REST)."""


# === Device store ===


@dataclass(frozen=True)
class StoreUpdateToken(Action):
    update_token: str


@dataclass(frozen=True)
class ClearUpdateToken(Action):
    pass


# === Callbacks ===


@dataclass(frozen=True)
class NotifyActivated(Action):
    reason: Any = None


@dataclass(frozen=True)
class NotifyDeactivated(Action):
    reason: Any = None


@dataclass(frozen=True)
class NotifyUpdateFailed(Action):
    reason: Any


# === Queue ===


@dataclass(frozen=True)
class Enqueue(Action):
    """Append an event to the tail of the pending queue."""

    event: Any
