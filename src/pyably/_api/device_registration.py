"""Device registration calls issued by the activation state machine.

Endpoints:
  - POST   /push/deviceRegistrations        (register, returns update token)
  - PATCH  /push/deviceRegistrations/{id}   (refresh push recipient)
  - DELETE /push/deviceRegistrations/{id}   (deregister)
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

from pyably._constants import DEVICE_REGISTRATIONS_ENDPOINT, DEVICE_TOKEN_HEADER
from pyably._transport import Transport
from pyably.exceptions import AblyApiError
from pyably.models.device import LocalDevice

_logger = logging.getLogger(__name__)


def _device_path(device: LocalDevice) -> str:
    return f"{DEVICE_REGISTRATIONS_ENDPOINT}/{quote(device.id, safe='')}"


def _auth_headers(device: LocalDevice) -> dict[str, str]:
    if device.update_token is None:
        return {}
    return {DEVICE_TOKEN_HEADER: device.update_token}


def parse_update_token(body: Any) -> str:
    """Extract the update token from a registration response.

    Older service versions answer with ``updateToken``; newer ones nest it
    as ``deviceIdentityToken.token``.
    """
    if isinstance(body, dict):
        token = body.get("updateToken")
        if isinstance(token, str) and token:
            return token
        identity = body.get("deviceIdentityToken")
        if isinstance(identity, dict):
            token = identity.get("token")
            if isinstance(token, str) and token:
                return token
    raise AblyApiError(
        "Registration response carries no update token",
        endpoint=DEVICE_REGISTRATIONS_ENDPOINT,
    )


class RestRegistrar:
    """Default registrar: talks to the push REST API directly."""

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    async def register(self, device: LocalDevice) -> str:
        body = device.to_device_details().to_wire()
        response = await self._transport.request("POST", DEVICE_REGISTRATIONS_ENDPOINT, body=body)
        token = parse_update_token(response.body)
        _logger.debug("Device registered id=%s", device.id)
        return token

    async def update_registration(self, device: LocalDevice) -> None:
        body = {"push": {"recipient": device.recipient}}
        await self._transport.request(
            "PATCH",
            _device_path(device),
            body=body,
            headers=_auth_headers(device),
        )
        _logger.debug("Device registration updated id=%s", device.id)

    async def deregister(self, device: LocalDevice) -> None:
        await self._transport.request("DELETE", _device_path(device), headers=_auth_headers(device))
        _logger.debug("Device deregistered id=%s", device.id)
