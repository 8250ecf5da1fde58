"""Push admin endpoints.

Endpoints:
  - /push/publish                    (publish directly to a recipient)
  - /push/deviceRegistrations        (save / get / list / remove)
  - /push/channelSubscriptions       (save / list / remove)
  - /push/channels                   (list channels with subscribers)
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

from pyably._api._common import PaginatedResult, build_params
from pyably._constants import (
    CHANNEL_SUBSCRIPTIONS_ENDPOINT,
    CHANNELS_ENDPOINT,
    DEVICE_REGISTRATIONS_ENDPOINT,
    PUBLISH_ENDPOINT,
)
from pyably._transport import Transport
from pyably.models.device import DeviceDetails
from pyably.models.subscription import PushChannelSubscription

_logger = logging.getLogger(__name__)


def _device_path(device_id: str) -> str:
    return f"{DEVICE_REGISTRATIONS_ENDPOINT}/{quote(device_id, safe='')}"


async def publish(
    transport: Transport,
    recipient: dict[str, Any],
    payload: dict[str, Any],
) -> None:
    """Deliver a push notification straight to *recipient*.

    Parameters
    ----------
    recipient : dict
        Target, e.g. ``{"deviceId": "..."}`` or ``{"clientId": "..."}``.
    payload : dict
        Push payload (``notification``, ``data``, platform overrides).
    """
    body = {**payload, "recipient": recipient}
    await transport.request("POST", PUBLISH_ENDPOINT, body=body)
    _logger.debug("Push published recipient_keys=%s", sorted(recipient))


async def save_device(transport: Transport, device: DeviceDetails) -> DeviceDetails:
    """Create or replace a device registration."""
    response = await transport.request("PUT", _device_path(device.id), body=device.to_wire())
    if isinstance(response.body, dict):
        return DeviceDetails.model_validate(response.body)
    return device


async def get_device(transport: Transport, device_id: str) -> DeviceDetails:
    """Fetch one device registration by id."""
    response = await transport.request("GET", _device_path(device_id))
    return DeviceDetails.model_validate(response.body)


async def list_devices(transport: Transport, **filters: Any) -> PaginatedResult[DeviceDetails]:
    """List device registrations (filters: ``device_id``, ``client_id``, ``limit``...)."""
    return await PaginatedResult.fetch(
        transport,
        DEVICE_REGISTRATIONS_ENDPOINT,
        build_params(filters),
        DeviceDetails.model_validate,
    )


async def remove_device(transport: Transport, device_id: str) -> None:
    """Remove one device registration by id."""
    await transport.request("DELETE", _device_path(device_id))


async def remove_devices_where(transport: Transport, **filters: Any) -> None:
    """Remove every device registration matching *filters*."""
    await transport.request("DELETE", DEVICE_REGISTRATIONS_ENDPOINT, params=build_params(filters))


async def save_subscription(
    transport: Transport,
    subscription: PushChannelSubscription,
) -> PushChannelSubscription:
    """Subscribe a device or client to push on a channel."""
    response = await transport.request("POST", CHANNEL_SUBSCRIPTIONS_ENDPOINT, body=subscription.to_wire())
    if isinstance(response.body, dict):
        return PushChannelSubscription.model_validate(response.body)
    return subscription


async def list_subscriptions(transport: Transport, **filters: Any) -> PaginatedResult[PushChannelSubscription]:
    """List channel subscriptions (filters: ``channel``, ``device_id``, ``client_id``...)."""
    return await PaginatedResult.fetch(
        transport,
        CHANNEL_SUBSCRIPTIONS_ENDPOINT,
        build_params(filters),
        PushChannelSubscription.model_validate,
    )


async def remove_subscriptions_where(transport: Transport, **filters: Any) -> None:
    """Remove every channel subscription matching *filters*."""
    await transport.request("DELETE", CHANNEL_SUBSCRIPTIONS_ENDPOINT, params=build_params(filters))


async def list_channels(transport: Transport, **filters: Any) -> PaginatedResult[str]:
    """List channels that have at least one push subscription."""
    return await PaginatedResult.fetch(transport, CHANNELS_ENDPOINT, build_params(filters), str)
