from __future__ import annotations

import pytest

from pyably.models.device import LocalDevice
from pyably.push import states
from pyably.push.actions import (
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
    CalledActivate,
    CalledDeactivate,
    Deregistered,
    DeregistrationFailed,
    EventKind,
    GettingPushDeviceDetailsFailed,
    GettingUpdateTokenFailed,
    GotPushDeviceDetails,
    GotUpdateToken,
    RegistrationUpdated,
    UpdatingRegistrationFailed,
)
from pyably.push.states import ActivationState, StateName
from pyably.push.transitions import step

_EVENTS = {
    EventKind.CALLED_ACTIVATE: CalledActivate(),
    EventKind.CALLED_DEACTIVATE: CalledDeactivate(),
    EventKind.GOT_PUSH_DEVICE_DETAILS: GotPushDeviceDetails(),
    EventKind.GETTING_PUSH_DEVICE_DETAILS_FAILED: GettingPushDeviceDetailsFailed(reason="boom"),
    EventKind.GOT_UPDATE_TOKEN: GotUpdateToken(update_token="T1"),
    EventKind.GETTING_UPDATE_TOKEN_FAILED: GettingUpdateTokenFailed(reason="boom"),
    EventKind.REGISTRATION_UPDATED: RegistrationUpdated(),
    EventKind.UPDATING_REGISTRATION_FAILED: UpdatingRegistrationFailed(reason="boom"),
    EventKind.DEREGISTERED: Deregistered(),
    EventKind.DEREGISTRATION_FAILED: DeregistrationFailed(reason="boom"),
}


def _state(name: StateName) -> ActivationState:
    if name is StateName.WAITING_FOR_DEREGISTRATION:
        return states.waiting_for_deregistration(states.WAITING_FOR_NEW_PUSH_DEVICE_DETAILS)
    return ActivationState(name)


_S = StateName
_E = EventKind
_HANDLED = {
    _S.NOT_ACTIVATED: {_E.CALLED_ACTIVATE, _E.CALLED_DEACTIVATE, _E.GOT_PUSH_DEVICE_DETAILS},
    _S.WAITING_FOR_PUSH_DEVICE_DETAILS: {
        _E.CALLED_ACTIVATE,
        _E.CALLED_DEACTIVATE,
        _E.GOT_PUSH_DEVICE_DETAILS,
        _E.GETTING_PUSH_DEVICE_DETAILS_FAILED,
    },
    _S.WAITING_FOR_UPDATE_TOKEN: {_E.CALLED_ACTIVATE, _E.GOT_UPDATE_TOKEN, _E.GETTING_UPDATE_TOKEN_FAILED},
    _S.WAITING_FOR_NEW_PUSH_DEVICE_DETAILS: {_E.CALLED_ACTIVATE, _E.CALLED_DEACTIVATE, _E.GOT_PUSH_DEVICE_DETAILS},
    _S.WAITING_FOR_REGISTRATION_UPDATE: {
        _E.CALLED_ACTIVATE,
        _E.REGISTRATION_UPDATED,
        _E.UPDATING_REGISTRATION_FAILED,
    },
    _S.AFTER_REGISTRATION_UPDATE_FAILED: {_E.CALLED_ACTIVATE, _E.CALLED_DEACTIVATE, _E.GOT_PUSH_DEVICE_DETAILS},
    _S.WAITING_FOR_DEREGISTRATION: {_E.CALLED_DEACTIVATE, _E.DEREGISTERED, _E.DEREGISTRATION_FAILED},
}

_HANDLED_PAIRS = [(name, kind) for name, kinds in _HANDLED.items() for kind in sorted(kinds)]
_UNHANDLED = [(name, kind) for name in StateName for kind in EventKind if kind not in _HANDLED[name]]


def test_every_event_kind_has_a_sample() -> None:
    assert set(_EVENTS) == set(EventKind)


@pytest.mark.parametrize(("name", "kind"), _HANDLED_PAIRS)
def test_listed_pairs_produce_a_transition(name: StateName, kind: EventKind) -> None:
    assert step(_state(name), _EVENTS[kind], LocalDevice(update_token="T")) is not None


@pytest.mark.parametrize(("name", "kind"), _UNHANDLED)
def test_unlisted_pairs_are_deferred(name: StateName, kind: EventKind) -> None:
    assert step(_state(name), _EVENTS[kind], LocalDevice()) is None


def test_registered_state_defers_unlisted_events() -> None:
    registered = states.WAITING_FOR_NEW_PUSH_DEVICE_DETAILS
    assert step(registered, GotUpdateToken(update_token="T"), LocalDevice()) is None
    assert step(registered, Deregistered(), LocalDevice()) is None


# ------------------------------------------------------------------
# NotActivated
# ------------------------------------------------------------------


def test_activate_on_fresh_device_requests_details() -> None:
    result = step(states.NOT_ACTIVATED, CalledActivate(), LocalDevice())
    assert result is not None
    assert result.next_state == states.WAITING_FOR_PUSH_DEVICE_DETAILS
    assert result.actions == (RequestDeviceDetails(),)


def test_activate_with_known_recipient_synthesizes_details_event() -> None:
    device = LocalDevice(recipient={"transportType": "fcm", "registrationToken": "abc"})
    result = step(states.NOT_ACTIVATED, CalledActivate(), device)
    assert result is not None
    assert result.next_state == states.WAITING_FOR_PUSH_DEVICE_DETAILS
    assert result.actions == (Enqueue(GotPushDeviceDetails()),)


def test_activate_when_already_registered_requeues_activation() -> None:
    event = CalledActivate(use_custom_registerer=True)
    result = step(states.NOT_ACTIVATED, event, LocalDevice(update_token="T0"))
    assert result is not None
    assert result.next_state == states.WAITING_FOR_NEW_PUSH_DEVICE_DETAILS
    assert result.actions == (Enqueue(event),)


def test_deactivate_when_not_activated_reports_success() -> None:
    result = step(states.NOT_ACTIVATED, CalledDeactivate(), LocalDevice())
    assert result is not None
    assert result.next_state == states.NOT_ACTIVATED
    assert result.actions == (NotifyDeactivated(None),)


def test_details_while_not_activated_are_ignored() -> None:
    result = step(states.NOT_ACTIVATED, GotPushDeviceDetails(), LocalDevice())
    assert result is not None
    assert result.next_state == states.NOT_ACTIVATED
    assert result.actions == ()


# ------------------------------------------------------------------
# Activation path
# ------------------------------------------------------------------


def test_details_trigger_registration() -> None:
    result = step(states.WAITING_FOR_PUSH_DEVICE_DETAILS, GotPushDeviceDetails(), LocalDevice())
    assert result is not None
    assert result.next_state == states.WAITING_FOR_UPDATE_TOKEN
    assert result.actions == (RegisterDevice(),)


def test_details_failure_reports_reason() -> None:
    reason = RuntimeError("no token")
    result = step(
        states.WAITING_FOR_PUSH_DEVICE_DETAILS,
        GettingPushDeviceDetailsFailed(reason=reason),
        LocalDevice(),
    )
    assert result is not None
    assert result.next_state == states.NOT_ACTIVATED
    assert result.actions == (NotifyActivated(reason),)


def test_activate_while_waiting_is_idempotent() -> None:
    for state in (states.WAITING_FOR_PUSH_DEVICE_DETAILS, states.WAITING_FOR_UPDATE_TOKEN):
        result = step(state, CalledActivate(), LocalDevice())
        assert result is not None
        assert result.next_state == state
        assert result.actions == ()


def test_update_token_stores_token_then_notifies() -> None:
    result = step(states.WAITING_FOR_UPDATE_TOKEN, GotUpdateToken(update_token="T1"), LocalDevice())
    assert result is not None
    assert result.next_state == states.WAITING_FOR_NEW_PUSH_DEVICE_DETAILS
    assert result.actions == (StoreUpdateToken("T1"), NotifyActivated(None))


def test_update_token_failure_returns_to_not_activated() -> None:
    result = step(states.WAITING_FOR_UPDATE_TOKEN, GettingUpdateTokenFailed(reason="denied"), LocalDevice())
    assert result is not None
    assert result.next_state == states.NOT_ACTIVATED
    assert result.actions == (NotifyActivated("denied"),)


# ------------------------------------------------------------------
# Registered / refresh
# ------------------------------------------------------------------


def test_activate_when_registered_reports_success_without_moving() -> None:
    for state in (states.WAITING_FOR_NEW_PUSH_DEVICE_DETAILS, states.WAITING_FOR_REGISTRATION_UPDATE):
        result = step(state, CalledActivate(), LocalDevice(update_token="T"))
        assert result is not None
        assert result.next_state == state
        assert result.actions == (NotifyActivated(None),)


def test_new_details_start_registration_update() -> None:
    result = step(states.WAITING_FOR_NEW_PUSH_DEVICE_DETAILS, GotPushDeviceDetails(), LocalDevice())
    assert result is not None
    assert result.next_state == states.WAITING_FOR_REGISTRATION_UPDATE
    assert result.actions == (UpdateRegistration(),)


def test_registration_update_failure_keeps_device_registered() -> None:
    result = step(states.WAITING_FOR_REGISTRATION_UPDATE, UpdatingRegistrationFailed(reason="x"), LocalDevice())
    assert result is not None
    assert result.next_state == states.AFTER_REGISTRATION_UPDATE_FAILED
    assert result.actions == (NotifyUpdateFailed("x"),)


@pytest.mark.parametrize("event", [CalledActivate(), GotPushDeviceDetails()])
def test_failed_update_is_retried(event: CalledActivate | GotPushDeviceDetails) -> None:
    result = step(states.AFTER_REGISTRATION_UPDATE_FAILED, event, LocalDevice())
    assert result is not None
    assert result.next_state == states.WAITING_FOR_REGISTRATION_UPDATE
    assert result.actions == (UpdateRegistration(),)


# ------------------------------------------------------------------
# Deregistration
# ------------------------------------------------------------------


@pytest.mark.parametrize(
    "origin",
    [states.WAITING_FOR_NEW_PUSH_DEVICE_DETAILS, states.AFTER_REGISTRATION_UPDATE_FAILED],
)
def test_deactivate_starts_deregistration_remembering_origin(origin: ActivationState) -> None:
    result = step(origin, CalledDeactivate(), LocalDevice())
    assert result is not None
    assert result.next_state == states.waiting_for_deregistration(origin)
    assert result.actions == (Deregister(),)


def test_deactivate_while_deregistering_keeps_origin() -> None:
    waiting = states.waiting_for_deregistration(states.AFTER_REGISTRATION_UPDATE_FAILED)
    result = step(waiting, CalledDeactivate(), LocalDevice())
    assert result is not None
    assert result.next_state == waiting
    assert result.next_state.previous == states.AFTER_REGISTRATION_UPDATE_FAILED


def test_deregistered_clears_token() -> None:
    waiting = states.waiting_for_deregistration(states.WAITING_FOR_NEW_PUSH_DEVICE_DETAILS)
    result = step(waiting, Deregistered(), LocalDevice(update_token="T"))
    assert result is not None
    assert result.next_state == states.NOT_ACTIVATED
    assert result.actions == (ClearUpdateToken(), NotifyDeactivated(None))


def test_deregistration_failure_falls_back_to_origin() -> None:
    waiting = states.waiting_for_deregistration(states.AFTER_REGISTRATION_UPDATE_FAILED)
    result = step(waiting, DeregistrationFailed(reason="offline"), LocalDevice(update_token="T"))
    assert result is not None
    assert result.next_state == states.AFTER_REGISTRATION_UPDATE_FAILED
    assert result.actions == (NotifyDeactivated("offline"),)


# ------------------------------------------------------------------
# State values
# ------------------------------------------------------------------


def test_only_deregistration_state_carries_fallback() -> None:
    with pytest.raises(ValueError):
        ActivationState(StateName.WAITING_FOR_DEREGISTRATION)
    with pytest.raises(ValueError):
        ActivationState(StateName.NOT_ACTIVATED, previous=states.NOT_ACTIVATED)


def test_restore_accepts_only_quiescent_states() -> None:
    assert states.restore("NotActivated") == states.NOT_ACTIVATED
    assert states.restore("WaitingForNewPushDeviceDetails") == states.WAITING_FOR_NEW_PUSH_DEVICE_DETAILS
    assert states.restore("WaitingForUpdateToken") is None
    assert states.restore("Bogus") is None
    assert states.restore(None) is None
