"""Persistence of the local device's registration identity."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from pyably._constants import LOCAL_DEVICE_KEY
from pyably.models.device import LocalDevice
from pyably.storage import Storage

_logger = logging.getLogger(__name__)


class DeviceRegistrationStore:
    """Owns the :class:`LocalDevice` and keeps it in sync with storage.

    The device is loaded lazily on first access. A missing or unreadable
    stored record yields a freshly generated identity.
    """

    def __init__(
        self,
        storage: Storage,
        *,
        client_id: str | None = None,
        platform: str = "browser",
        form_factor: str = "desktop",
    ) -> None:
        self._storage = storage
        self._client_id = client_id
        self._platform = platform
        self._form_factor = form_factor
        self._device: LocalDevice | None = None

    @property
    def device(self) -> LocalDevice:
        if self._device is None:
            self._device = self._load()
        return self._device

    def _new_device(self) -> LocalDevice:
        return LocalDevice(
            client_id=self._client_id,
            platform=self._platform,
            form_factor=self._form_factor,
        )

    def _load(self) -> LocalDevice:
        raw = self._storage.get(LOCAL_DEVICE_KEY)
        if raw is None:
            device = self._new_device()
            self._storage.set(LOCAL_DEVICE_KEY, device.model_dump(by_alias=True))
            return device
        try:
            device = LocalDevice.model_validate(raw)
        except ValidationError:
            _logger.warning("Stored local device is invalid; generating a new identity", exc_info=True)
            device = self._new_device()
            self._storage.set(LOCAL_DEVICE_KEY, device.model_dump(by_alias=True))
        return device

    def persist(self) -> None:
        self._storage.set(LOCAL_DEVICE_KEY, self.device.model_dump(by_alias=True))

    def set_update_token(self, update_token: str | None) -> None:
        self.device.update_token = update_token
        self.persist()

    def set_recipient(self, recipient: dict[str, Any] | None) -> None:
        self.device.recipient = dict(recipient) if recipient is not None else None
        self.persist()
