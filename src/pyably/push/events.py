"""Events fed into the push activation state machine.

Events are the machine's only inputs: caller intents (``Called*``) and
outcomes of platform or network operations. Each variant carries only the
data its transition needs. ``reason`` payloads are opaque to the machine
and handed unexamined to the relevant callback.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class EventKind(StrEnum):
    CALLED_ACTIVATE = "CalledActivate"
    CALLED_DEACTIVATE = "CalledDeactivate"
    GOT_PUSH_DEVICE_DETAILS = "GotPushDeviceDetails"
    GETTING_PUSH_DEVICE_DETAILS_FAILED = "GettingPushDeviceDetailsFailed"
    GOT_UPDATE_TOKEN = "GotUpdateToken"
    GETTING_UPDATE_TOKEN_FAILED = "GettingUpdateTokenFailed"
    REGISTRATION_UPDATED = "RegistrationUpdated"
    UPDATING_REGISTRATION_FAILED = "UpdatingRegistrationFailed"
    DEREGISTERED = "Deregistered"
    DEREGISTRATION_FAILED = "DeregistrationFailed"


class _Event(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    def __str__(self) -> str:
        return str(getattr(self, "kind", type(self).__name__))


class CalledActivate(_Event):
    kind: Literal[EventKind.CALLED_ACTIVATE] = EventKind.CALLED_ACTIVATE
    use_custom_registerer: bool = False


class CalledDeactivate(_Event):
    kind: Literal[EventKind.CALLED_DEACTIVATE] = EventKind.CALLED_DEACTIVATE
    use_custom_deregisterer: bool = False


class GotPushDeviceDetails(_Event):
    kind: Literal[EventKind.GOT_PUSH_DEVICE_DETAILS] = EventKind.GOT_PUSH_DEVICE_DETAILS


class GettingPushDeviceDetailsFailed(_Event):
    kind: Literal[EventKind.GETTING_PUSH_DEVICE_DETAILS_FAILED] = EventKind.GETTING_PUSH_DEVICE_DETAILS_FAILED
    reason: Any = None


class GotUpdateToken(_Event):
    kind: Literal[EventKind.GOT_UPDATE_TOKEN] = EventKind.GOT_UPDATE_TOKEN
    update_token: str


class GettingUpdateTokenFailed(_Event):
    kind: Literal[EventKind.GETTING_UPDATE_TOKEN_FAILED] = EventKind.GETTING_UPDATE_TOKEN_FAILED
    reason: Any = None


class RegistrationUpdated(_Event):
    kind: Literal[EventKind.REGISTRATION_UPDATED] = EventKind.REGISTRATION_UPDATED


class UpdatingRegistrationFailed(_Event):
    kind: Literal[EventKind.UPDATING_REGISTRATION_FAILED] = EventKind.UPDATING_REGISTRATION_FAILED
    reason: Any = None


class Deregistered(_Event):
    kind: Literal[EventKind.DEREGISTERED] = EventKind.DEREGISTERED


class DeregistrationFailed(_Event):
    kind: Literal[EventKind.DEREGISTRATION_FAILED] = EventKind.DEREGISTRATION_FAILED
    reason: Any = None


ActivationEvent = Annotated[
    CalledActivate
    | CalledDeactivate
    | GotPushDeviceDetails
    | GettingPushDeviceDetailsFailed
    | GotUpdateToken
    | GettingUpdateTokenFailed
    | RegistrationUpdated
    | UpdatingRegistrationFailed
    | Deregistered
    | DeregistrationFailed,
    Field(discriminator="kind"),
]
"""Closed union of every machine input, discriminated by ``kind``."""
