"""Push notifications: device activation and push admin."""

from pyably.push.machine import ActivationStateMachine
from pyably.push.platform import AsyncPlatformPush, PlatformPush
from pyably.push.push import Push
from pyably.push.registrar import Registrar
from pyably.push.states import ActivationState, StateName

__all__ = [
    "ActivationState",
    "ActivationStateMachine",
    "AsyncPlatformPush",
    "PlatformPush",
    "Push",
    "Registrar",
    "StateName",
]
