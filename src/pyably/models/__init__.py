"""Data models for push REST payloads."""

from pyably.models._base import AblyBaseModel
from pyably.models.device import DeviceDetails, DevicePushDetails, LocalDevice
from pyably.models.subscription import PushChannelSubscription

__all__ = [
    "AblyBaseModel",
    "DeviceDetails",
    "DevicePushDetails",
    "LocalDevice",
    "PushChannelSubscription",
]
