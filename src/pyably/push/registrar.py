"""Registrar interface used by the activation machine for network calls."""

from __future__ import annotations

from typing import Protocol

from pyably.models.device import LocalDevice


class Registrar(Protocol):
    """Performs the three registration round-trips for the local device.

    :class:`pyably._api.device_registration.RestRegistrar` talks to the
    push REST API. Applications that register devices through their own
    backend supply another implementation as a custom registerer and/or
    deregisterer. Any exception raised is reported as the failure reason.
    """

    async def register(self, device: LocalDevice) -> str:
        """Register *device* and return the update token issued for it."""
        ...

    async def update_registration(self, device: LocalDevice) -> None:
        """Push the device's current recipient details to the service."""
        ...

    async def deregister(self, device: LocalDevice) -> None:
        """Remove the device's registration."""
        ...
