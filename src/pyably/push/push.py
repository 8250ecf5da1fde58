"""Push facade exposed as ``client.push``."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from pyably._api import push_admin as _admin_api
from pyably._api.device_registration import RestRegistrar
from pyably.exceptions import AblyError
from pyably.push.admin import PushAdmin
from pyably.push.events import CalledActivate, CalledDeactivate
from pyably.push.machine import ActivationCallback, ActivationStateMachine

if TYPE_CHECKING:
    from pyably.client import AblyRest


def _raise_for_reason(reason: Any) -> None:
    if reason is None:
        return
    if isinstance(reason, Exception):
        raise reason
    raise AblyError(str(reason))


class Push:
    """Push notifications for one client.

    Usage::

        async with AblyRest(config, platform_push=platform) as client:
            await client.push.activate_async()
            ...
            await client.push.deactivate_async()
    """

    def __init__(self, client: AblyRest) -> None:
        self._client = client
        self._machine: ActivationStateMachine | None = None
        self.admin = PushAdmin(client._require_transport)

    @property
    def state_machine(self) -> ActivationStateMachine:
        """The client's activation machine, built and restored on first use.

        Only valid inside ``async with client``; leaving the context drops it.
        """
        if self._machine is None:
            client = self._client
            self._machine = ActivationStateMachine(
                client.device_store,
                client.storage,
                RestRegistrar(client._require_transport()),
                client.platform_push,
                custom_registerer=client.custom_registerer,
                custom_deregisterer=client.custom_deregisterer,
                on_update_failed=client.on_update_failed,
            )
        return self._machine

    def activate(self, use_custom_registerer: bool = False, callback: ActivationCallback | None = None) -> None:
        """Register this device for push.

        *callback* is invoked once with ``None`` on success or with the
        failure reason. It replaces any activate callback still pending.
        """
        machine = self.state_machine
        machine.activated_callback = callback
        machine.handle_event(CalledActivate(use_custom_registerer=use_custom_registerer))

    def deactivate(self, use_custom_deregisterer: bool = False, callback: ActivationCallback | None = None) -> None:
        """Deregister this device from push; see :meth:`activate` for *callback*."""
        machine = self.state_machine
        machine.deactivated_callback = callback
        machine.handle_event(CalledDeactivate(use_custom_deregisterer=use_custom_deregisterer))

    async def activate_async(self, use_custom_registerer: bool = False) -> None:
        """Activate and wait for the outcome, raising the failure reason."""
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self.activate(use_custom_registerer, lambda reason: future.done() or future.set_result(reason))
        _raise_for_reason(await future)

    async def deactivate_async(self, use_custom_deregisterer: bool = False) -> None:
        """Deactivate and wait for the outcome, raising the failure reason."""
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self.deactivate(use_custom_deregisterer, lambda reason: future.done() or future.set_result(reason))
        _raise_for_reason(await future)

    async def publish(self, recipient: dict[str, Any], payload: dict[str, Any]) -> None:
        """Publish a push notification directly to *recipient*."""
        await _admin_api.publish(self._client._require_transport(), recipient, payload)

    async def close(self) -> None:
        """Cancel in-flight operations and forget the machine.

        The next use rebuilds it from the last persisted state, bound to the
        client's current transport.
        """
        machine, self._machine = self._machine, None
        if machine is not None:
            await machine.close()
