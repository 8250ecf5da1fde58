"""Custom exception hierarchy for pyably."""

from __future__ import annotations


class AblyError(Exception):
    """Base exception for all pyably errors."""


class AblyConfigError(AblyError):
    """Invalid or missing configuration."""


class AblyTransportError(AblyError):
    """HTTP-level failure (network, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class AblyApiError(AblyError):
    """The REST service answered with an error body or a non-2xx status."""

    def __init__(
        self,
        message: str,
        *,
        code: int | None = None,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.code = code
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class AblyPushNotSupportedError(AblyError):
    """No platform push integration is available for device activation.

    Raised when the activation state machine is built without a
    :class:`~pyably.push.platform.PlatformPush` collaborator, since the
    machine cannot obtain device details without one.
    """
