"""High-level async REST client with push support."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

import aiohttp

from pyably._transport import RestTransport, Transport
from pyably.config import AblyConfig
from pyably.exceptions import AblyError
from pyably.models.device import LocalDevice
from pyably.push.device_store import DeviceRegistrationStore
from pyably.push.machine import ActivationCallback
from pyably.push.platform import AsyncPlatformPush, PlatformPush
from pyably.push.push import Push
from pyably.push.registrar import Registrar
from pyably.storage import JsonFileStorage, MemoryStorage, Storage

_logger = logging.getLogger(__name__)


class AblyRest:
    """Async REST client owning the local device and its push activation.

    Usage::

        async with AblyRest(config, fetch_recipient=get_fcm_token) as client:
            await client.push.activate_async()

    Parameters
    ----------
    config : AblyConfig
        Client configuration.
    session : aiohttp.ClientSession or None
        Externally managed HTTP session; created and closed by the client
        when omitted.
    storage : Storage or None
        Persistent key-value storage. Defaults to a JSON file when
        ``config.push_storage_path`` is set, else memory.
    platform_push : PlatformPush or None
        Supplies push recipient details for activation.
    fetch_recipient : coroutine function or None
        Shortcut for ``platform_push=AsyncPlatformPush(fetch_recipient, ...)``.
    custom_registerer, custom_deregisterer : Registrar or None
        Used by activations/deactivations requested with ``use_custom_*``.
    on_update_failed : callable or None
        Called with the reason whenever a registration refresh fails.
    """

    def __init__(
        self,
        config: AblyConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        storage: Storage | None = None,
        platform_push: PlatformPush | None = None,
        fetch_recipient: Callable[[], Awaitable[dict[str, Any]]] | None = None,
        custom_registerer: Registrar | None = None,
        custom_deregisterer: Registrar | None = None,
        on_update_failed: ActivationCallback | None = None,
        device_platform: str = "browser",
        form_factor: str = "desktop",
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = None

        if storage is None:
            storage = JsonFileStorage(config.push_storage_path) if config.push_storage_path else MemoryStorage()
        self.storage: Storage = storage
        self.device_store = DeviceRegistrationStore(
            storage,
            client_id=config.client_id,
            platform=device_platform,
            form_factor=form_factor,
        )

        if platform_push is None and fetch_recipient is not None:
            platform_push = AsyncPlatformPush(fetch_recipient, self.device_store)
        self.platform_push = platform_push
        self.custom_registerer = custom_registerer
        self.custom_deregisterer = custom_deregisterer
        self.on_update_failed = on_update_failed

        self.push = Push(self)

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> AblyRest:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._config.request_timeout),
            )
        self._transport = RestTransport(self._config, self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.push.close()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._transport = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise AblyError("Client not initialized. Use 'async with AblyRest(...) as client:'")
        return self._transport

    # ------------------------------------------------------------------
    # Device
    # ------------------------------------------------------------------

    @property
    def config(self) -> AblyConfig:
        return self._config

    def device(self) -> LocalDevice:
        """The local device identity used for push activation."""
        return self.device_store.device
