"""Platform integrations that supply push recipient details."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, Protocol

from pyably.push.device_store import DeviceRegistrationStore
from pyably.push.events import GettingPushDeviceDetailsFailed, GotPushDeviceDetails

if TYPE_CHECKING:
    from pyably.push.machine import ActivationStateMachine

_logger = logging.getLogger(__name__)


class PlatformPush(Protocol):
    """Obtains the device's push recipient details.

    Implementations must not block: they start the acquisition and later
    raise :class:`GotPushDeviceDetails` or
    :class:`GettingPushDeviceDetailsFailed` on the machine.
    """

    def request_device_details(self, machine: ActivationStateMachine) -> None:
        ...


class AsyncPlatformPush:
    """Platform integration driven by a coroutine returning the recipient.

    Parameters
    ----------
    fetch_recipient : callable
        Coroutine function returning the platform recipient dict, e.g.
        ``{"transportType": "fcm", "registrationToken": "..."}``.
    store : DeviceRegistrationStore
        Where the obtained recipient is recorded.
    """

    def __init__(
        self,
        fetch_recipient: Callable[[], Awaitable[dict[str, Any]]],
        store: DeviceRegistrationStore,
    ) -> None:
        self._fetch_recipient = fetch_recipient
        self._store = store

    def request_device_details(self, machine: ActivationStateMachine) -> None:
        machine.spawn(self._acquire(machine))

    async def _acquire(self, machine: ActivationStateMachine) -> None:
        try:
            recipient = await self._fetch_recipient()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            _logger.debug("Obtaining push device details failed", exc_info=True)
            machine.handle_event(GettingPushDeviceDetailsFailed(reason=exc))
            return
        self._store.set_recipient(recipient)
        machine.handle_event(GotPushDeviceDetails())
