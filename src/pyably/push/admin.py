"""Push admin surface: device registrations and channel subscriptions."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pyably._api import push_admin as _admin_api
from pyably._api._common import PaginatedResult
from pyably._transport import Transport
from pyably.models.device import DeviceDetails
from pyably.models.subscription import PushChannelSubscription


class DeviceRegistrations:
    """CRUD over ``/push/deviceRegistrations``."""

    def __init__(self, transport: Callable[[], Transport]) -> None:
        self._transport = transport

    async def save(self, device: DeviceDetails) -> DeviceDetails:
        return await _admin_api.save_device(self._transport(), device)

    async def get(self, device_id: str) -> DeviceDetails:
        return await _admin_api.get_device(self._transport(), device_id)

    async def list(self, **filters: Any) -> PaginatedResult[DeviceDetails]:
        return await _admin_api.list_devices(self._transport(), **filters)

    async def remove(self, device_id: str) -> None:
        await _admin_api.remove_device(self._transport(), device_id)

    async def remove_where(self, **filters: Any) -> None:
        await _admin_api.remove_devices_where(self._transport(), **filters)


class ChannelSubscriptions:
    """CRUD over ``/push/channelSubscriptions`` plus channel listing."""

    def __init__(self, transport: Callable[[], Transport]) -> None:
        self._transport = transport

    async def save(self, subscription: PushChannelSubscription) -> PushChannelSubscription:
        return await _admin_api.save_subscription(self._transport(), subscription)

    async def list(self, **filters: Any) -> PaginatedResult[PushChannelSubscription]:
        return await _admin_api.list_subscriptions(self._transport(), **filters)

    async def remove_where(self, **filters: Any) -> None:
        await _admin_api.remove_subscriptions_where(self._transport(), **filters)

    async def list_channels(self, **filters: Any) -> PaginatedResult[str]:
        return await _admin_api.list_channels(self._transport(), **filters)


class PushAdmin:
    def __init__(self, transport: Callable[[], Transport]) -> None:
        self.device_registrations = DeviceRegistrations(transport)
        self.channel_subscriptions = ChannelSubscriptions(transport)
