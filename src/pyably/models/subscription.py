"""Push channel subscription model."""

from __future__ import annotations

from pydantic import model_validator

from pyably.models._base import AblyBaseModel


class PushChannelSubscription(AblyBaseModel):
    """Subscription of a device or a client to push on a channel.

    Exactly one of ``device_id`` and ``client_id`` must be set.
    """

    channel: str
    device_id: str | None = None
    client_id: str | None = None

    @model_validator(mode="after")
    def _require_single_target(self) -> PushChannelSubscription:
        if (self.device_id is None) == (self.client_id is None):
            raise ValueError("exactly one of device_id and client_id must be set")
        return self
