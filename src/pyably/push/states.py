"""Activation state identity.

:class:`ActivationState` is immutable. ``WaitingForDeregistration`` is the
only parameterized state: it carries the state to fall back to if the
deregistration request fails.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class StateName(StrEnum):
    NOT_ACTIVATED = "NotActivated"
    WAITING_FOR_PUSH_DEVICE_DETAILS = "WaitingForPushDeviceDetails"
    WAITING_FOR_UPDATE_TOKEN = "WaitingForUpdateToken"
    WAITING_FOR_NEW_PUSH_DEVICE_DETAILS = "WaitingForNewPushDeviceDetails"
    WAITING_FOR_REGISTRATION_UPDATE = "WaitingForRegistrationUpdate"
    AFTER_REGISTRATION_UPDATE_FAILED = "AfterRegistrationUpdateFailed"
    WAITING_FOR_DEREGISTRATION = "WaitingForDeregistration"


# Quiescent states: reached with no network operation in flight.
PERSISTENT_STATES: frozenset[StateName] = frozenset(
    {
        StateName.NOT_ACTIVATED,
        StateName.WAITING_FOR_NEW_PUSH_DEVICE_DETAILS,
    }
)


@dataclass(frozen=True)
class ActivationState:
    name: StateName
    previous: ActivationState | None = None

    def __post_init__(self) -> None:
        if (self.name is StateName.WAITING_FOR_DEREGISTRATION) != (self.previous is not None):
            raise ValueError("only WaitingForDeregistration carries a fallback state")

    def __str__(self) -> str:
        if self.previous is not None:
            return f"{self.name}({self.previous})"
        return str(self.name)


NOT_ACTIVATED = ActivationState(StateName.NOT_ACTIVATED)
WAITING_FOR_PUSH_DEVICE_DETAILS = ActivationState(StateName.WAITING_FOR_PUSH_DEVICE_DETAILS)
WAITING_FOR_UPDATE_TOKEN = ActivationState(StateName.WAITING_FOR_UPDATE_TOKEN)
WAITING_FOR_NEW_PUSH_DEVICE_DETAILS = ActivationState(StateName.WAITING_FOR_NEW_PUSH_DEVICE_DETAILS)
WAITING_FOR_REGISTRATION_UPDATE = ActivationState(StateName.WAITING_FOR_REGISTRATION_UPDATE)
AFTER_REGISTRATION_UPDATE_FAILED = ActivationState(StateName.AFTER_REGISTRATION_UPDATE_FAILED)


def waiting_for_deregistration(previous: ActivationState) -> ActivationState:
    return ActivationState(StateName.WAITING_FOR_DEREGISTRATION, previous=previous)


def is_persistent(state: ActivationState) -> bool:
    return state.name in PERSISTENT_STATES


def restore(name: str | None) -> ActivationState | None:
    """Rebuild a persisted state from its name.

    Only quiescent states are ever persisted, so anything else (or an
    unknown name) yields ``None``.
    """
    if name is None:
        return None
    try:
        state_name = StateName(name)
    except ValueError:
        return None
    if state_name not in PERSISTENT_STATES:
        return None
    return ActivationState(state_name)
