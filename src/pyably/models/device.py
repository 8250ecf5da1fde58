"""Device registration models."""

from __future__ import annotations

import secrets
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from pyably.models._base import AblyBaseModel


class DevicePushDetails(AblyBaseModel):
    """Push delivery details of a registered device."""

    recipient: dict[str, Any] | None = None
    """Platform-specific recipient (e.g. ``{"transportType": "fcm", "registrationToken": ...}``)."""

    state: str | None = None
    """Delivery state reported by the service (``ACTIVE``, ``FAILING``, ``FAILED``)."""

    error_reason: dict[str, Any] | None = None


class DeviceDetails(AblyBaseModel):
    """A device registration as stored by the push service."""

    id: str
    client_id: str | None = None
    platform: str | None = None
    form_factor: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    device_secret: str | None = None
    push: DevicePushDetails = Field(default_factory=DevicePushDetails)


def _new_device_id() -> str:
    return secrets.token_hex(16).upper()


def _new_device_secret() -> str:
    return secrets.token_urlsafe(32)


class LocalDevice(BaseModel):
    """Identity of this process's device for push purposes.

    Mutable: the activation machine records the update token here once the
    service has accepted the registration, and the platform integration
    records the recipient once it has been obtained.
    """

    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
        validate_assignment=True,
    )

    id: str = Field(default_factory=_new_device_id)
    device_secret: str = Field(default_factory=_new_device_secret)
    client_id: str | None = None
    platform: str = "browser"
    form_factor: str = "desktop"
    metadata: dict[str, Any] = Field(default_factory=dict)
    recipient: dict[str, Any] | None = None
    update_token: str | None = None

    @property
    def is_registered(self) -> bool:
        """Whether the service has issued an update token for this device."""
        return self.update_token is not None

    def to_device_details(self) -> DeviceDetails:
        """Build the registration body sent to the push service."""
        return DeviceDetails(
            id=self.id,
            client_id=self.client_id,
            platform=self.platform,
            form_factor=self.form_factor,
            metadata=dict(self.metadata),
            device_secret=self.device_secret,
            push=DevicePushDetails(recipient=self.recipient),
        )
