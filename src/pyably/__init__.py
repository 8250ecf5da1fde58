"""pyably - Async Python REST client for push device activation."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyably")
except PackageNotFoundError:
    __version__ = "0+local"
from pyably.client import AblyRest
from pyably.config import AblyConfig
from pyably.exceptions import (
    AblyApiError,
    AblyConfigError,
    AblyError,
    AblyPushNotSupportedError,
    AblyTransportError,
)
from pyably.models import (
    DeviceDetails,
    DevicePushDetails,
    LocalDevice,
    PushChannelSubscription,
)
from pyably.push import (
    ActivationState,
    ActivationStateMachine,
    AsyncPlatformPush,
    PlatformPush,
    Push,
    Registrar,
    StateName,
)
from pyably.storage import JsonFileStorage, MemoryStorage, Storage

__all__ = [
    "__version__",
    "AblyApiError",
    "AblyConfig",
    "AblyConfigError",
    "AblyError",
    "AblyPushNotSupportedError",
    "AblyRest",
    "AblyTransportError",
    "ActivationState",
    "ActivationStateMachine",
    "AsyncPlatformPush",
    "DeviceDetails",
    "DevicePushDetails",
    "JsonFileStorage",
    "LocalDevice",
    "MemoryStorage",
    "PlatformPush",
    "Push",
    "PushChannelSubscription",
    "Registrar",
    "StateName",
    "Storage",
]
