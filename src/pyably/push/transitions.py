"""Push activation transition table.

The table is a pure function:
    step(state, event, device) -> Transition | None

No I/O, no mutation. The machine executes the returned actions.
``None`` means the current state cannot consume the event yet and the
event must be deferred to the pending queue.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from pyably.models.device import LocalDevice
from pyably.push import states
from pyably.push.actions import (
    Action,
    ClearUpdateToken,
    Deregister,
    Enqueue,
    NotifyActivated,
    NotifyDeactivated,
    NotifyUpdateFailed,
    RegisterDevice,
    RequestDeviceDetails,
    StoreUpdateToken,
    UpdateRegistration,
)
from pyably.push.events import (
    ActivationEvent,
    DeregistrationFailed,
    EventKind,
    GettingPushDeviceDetailsFailed,
    GettingUpdateTokenFailed,
    GotPushDeviceDetails,
    GotUpdateToken,
    UpdatingRegistrationFailed,
)
from pyably.push.states import ActivationState, StateName


@dataclass(frozen=True)
class Transition:
    next_state: ActivationState
    actions: tuple[Action, ...] = ()


_Handler = Callable[[ActivationState, ActivationEvent, LocalDevice], Transition]


def _stay(state: ActivationState, _event: ActivationEvent, _device: LocalDevice) -> Transition:
    return Transition(state)


# =============================================================================
# NotActivated
# =============================================================================


def _not_activated_deactivate(_state: ActivationState, _event: ActivationEvent, _device: LocalDevice) -> Transition:
    return Transition(states.NOT_ACTIVATED, (NotifyDeactivated(None),))


def _not_activated_activate(_state: ActivationState, event: ActivationEvent, device: LocalDevice) -> Transition:
    if device.is_registered:
        # Already registered: let the registered state answer the activation.
        return Transition(states.WAITING_FOR_NEW_PUSH_DEVICE_DETAILS, (Enqueue(event),))
    if device.recipient:
        return Transition(states.WAITING_FOR_PUSH_DEVICE_DETAILS, (Enqueue(GotPushDeviceDetails()),))
    return Transition(states.WAITING_FOR_PUSH_DEVICE_DETAILS, (RequestDeviceDetails(),))


# =============================================================================
# WaitingForPushDeviceDetails
# =============================================================================


def _waiting_details_deactivate(_state: ActivationState, _event: ActivationEvent, _device: LocalDevice) -> Transition:
    return Transition(states.NOT_ACTIVATED, (NotifyDeactivated(None),))


def _waiting_details_got_details(_state: ActivationState, _event: ActivationEvent, _device: LocalDevice) -> Transition:
    return Transition(states.WAITING_FOR_UPDATE_TOKEN, (RegisterDevice(),))


def _waiting_details_failed(_state: ActivationState, event: ActivationEvent, _device: LocalDevice) -> Transition:
    assert isinstance(event, GettingPushDeviceDetailsFailed)  # noqa: S101
    return Transition(states.NOT_ACTIVATED, (NotifyActivated(event.reason),))


# =============================================================================
# WaitingForUpdateToken
# =============================================================================


def _waiting_token_got_token(_state: ActivationState, event: ActivationEvent, _device: LocalDevice) -> Transition:
    assert isinstance(event, GotUpdateToken)  # noqa: S101
    return Transition(
        states.WAITING_FOR_NEW_PUSH_DEVICE_DETAILS,
        (StoreUpdateToken(event.update_token), NotifyActivated(None)),
    )


def _waiting_token_failed(_state: ActivationState, event: ActivationEvent, _device: LocalDevice) -> Transition:
    assert isinstance(event, GettingUpdateTokenFailed)  # noqa: S101
    return Transition(states.NOT_ACTIVATED, (NotifyActivated(event.reason),))


# =============================================================================
# WaitingForNewPushDeviceDetails / WaitingForRegistrationUpdate
# =============================================================================


def _already_activated(state: ActivationState, _event: ActivationEvent, _device: LocalDevice) -> Transition:
    return Transition(state, (NotifyActivated(None),))


def _start_deregistration(state: ActivationState, _event: ActivationEvent, _device: LocalDevice) -> Transition:
    return Transition(states.waiting_for_deregistration(state), (Deregister(),))


def _start_registration_update(_state: ActivationState, _event: ActivationEvent, _device: LocalDevice) -> Transition:
    return Transition(states.WAITING_FOR_REGISTRATION_UPDATE, (UpdateRegistration(),))


def _registration_updated(_state: ActivationState, _event: ActivationEvent, _device: LocalDevice) -> Transition:
    return Transition(states.WAITING_FOR_NEW_PUSH_DEVICE_DETAILS)


def _registration_update_failed(_state: ActivationState, event: ActivationEvent, _device: LocalDevice) -> Transition:
    assert isinstance(event, UpdatingRegistrationFailed)  # noqa: S101
    # The device stays registered; only the refresh failed.
    return Transition(states.AFTER_REGISTRATION_UPDATE_FAILED, (NotifyUpdateFailed(event.reason),))


# =============================================================================
# WaitingForDeregistration(previous)
# =============================================================================


def _deregistered(_state: ActivationState, _event: ActivationEvent, _device: LocalDevice) -> Transition:
    return Transition(states.NOT_ACTIVATED, (ClearUpdateToken(), NotifyDeactivated(None)))


def _deregistration_failed(state: ActivationState, event: ActivationEvent, _device: LocalDevice) -> Transition:
    assert isinstance(event, DeregistrationFailed)  # noqa: S101
    assert state.previous is not None  # noqa: S101
    return Transition(state.previous, (NotifyDeactivated(event.reason),))


# =============================================================================
# Dispatch table
# =============================================================================

_HANDLERS: dict[tuple[StateName, EventKind], _Handler] = {
    # NotActivated
    (StateName.NOT_ACTIVATED, EventKind.CALLED_DEACTIVATE): _not_activated_deactivate,
    (StateName.NOT_ACTIVATED, EventKind.CALLED_ACTIVATE): _not_activated_activate,
    (StateName.NOT_ACTIVATED, EventKind.GOT_PUSH_DEVICE_DETAILS): _stay,
    # WaitingForPushDeviceDetails
    (StateName.WAITING_FOR_PUSH_DEVICE_DETAILS, EventKind.CALLED_ACTIVATE): _stay,
    (StateName.WAITING_FOR_PUSH_DEVICE_DETAILS, EventKind.CALLED_DEACTIVATE): _waiting_details_deactivate,
    (StateName.WAITING_FOR_PUSH_DEVICE_DETAILS, EventKind.GOT_PUSH_DEVICE_DETAILS): _waiting_details_got_details,
    (StateName.WAITING_FOR_PUSH_DEVICE_DETAILS, EventKind.GETTING_PUSH_DEVICE_DETAILS_FAILED): _waiting_details_failed,
    # WaitingForUpdateToken
    (StateName.WAITING_FOR_UPDATE_TOKEN, EventKind.CALLED_ACTIVATE): _stay,
    (StateName.WAITING_FOR_UPDATE_TOKEN, EventKind.GOT_UPDATE_TOKEN): _waiting_token_got_token,
    (StateName.WAITING_FOR_UPDATE_TOKEN, EventKind.GETTING_UPDATE_TOKEN_FAILED): _waiting_token_failed,
    # WaitingForNewPushDeviceDetails
    (StateName.WAITING_FOR_NEW_PUSH_DEVICE_DETAILS, EventKind.CALLED_ACTIVATE): _already_activated,
    (StateName.WAITING_FOR_NEW_PUSH_DEVICE_DETAILS, EventKind.CALLED_DEACTIVATE): _start_deregistration,
    (StateName.WAITING_FOR_NEW_PUSH_DEVICE_DETAILS, EventKind.GOT_PUSH_DEVICE_DETAILS): _start_registration_update,
    # WaitingForRegistrationUpdate
    (StateName.WAITING_FOR_REGISTRATION_UPDATE, EventKind.CALLED_ACTIVATE): _already_activated,
    (StateName.WAITING_FOR_REGISTRATION_UPDATE, EventKind.REGISTRATION_UPDATED): _registration_updated,
    (StateName.WAITING_FOR_REGISTRATION_UPDATE, EventKind.UPDATING_REGISTRATION_FAILED): _registration_update_failed,
    # AfterRegistrationUpdateFailed
    (StateName.AFTER_REGISTRATION_UPDATE_FAILED, EventKind.CALLED_ACTIVATE): _start_registration_update,
    (StateName.AFTER_REGISTRATION_UPDATE_FAILED, EventKind.GOT_PUSH_DEVICE_DETAILS): _start_registration_update,
    (StateName.AFTER_REGISTRATION_UPDATE_FAILED, EventKind.CALLED_DEACTIVATE): _start_deregistration,
    # WaitingForDeregistration(previous)
    (StateName.WAITING_FOR_DEREGISTRATION, EventKind.CALLED_DEACTIVATE): _stay,
    (StateName.WAITING_FOR_DEREGISTRATION, EventKind.DEREGISTERED): _deregistered,
    (StateName.WAITING_FOR_DEREGISTRATION, EventKind.DEREGISTRATION_FAILED): _deregistration_failed,
}


def step(state: ActivationState, event: ActivationEvent, device: LocalDevice) -> Transition | None:
    """Decide how *state* reacts to *event*.

    Returns ``None`` when the pair is not in the table, meaning the event
    must wait in the pending queue until a later state can consume it.
    """
    handler = _HANDLERS.get((state.name, event.kind))
    if handler is None:
        return None
    return handler(state, event, device)
