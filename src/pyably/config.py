"""Client configuration for pyably."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from typing import Any

from pyably._constants import DEFAULT_REST_HOST
from pyably.exceptions import AblyConfigError


@dataclasses.dataclass(frozen=True)
class AblyConfig:
    """Client configuration.

    Parameters
    ----------
    key : str
        API key in the form ``"<app>.<key-id>:<secret>"``.
    rest_host : str
        REST base URL. Defaults to the global Ably endpoint.
    client_id : str or None
        Client identity attached to the local device registration.
    request_timeout : float
        Total timeout in seconds for a single HTTP request.
    headers : Mapping[str, str]
        Extra headers merged into every request.
    push_storage_path : str or None
        JSON file used to persist push activation state across restarts.
        When ``None`` the state lives in memory only.
    """

    key: str
    rest_host: str = DEFAULT_REST_HOST
    client_id: str | None = None
    request_timeout: float = 10.0
    headers: Mapping[str, str] = dataclasses.field(default_factory=dict)
    push_storage_path: str | None = None

    @property
    def key_name(self) -> str:
        """The public part of the key (``"<app>.<key-id>"``)."""
        return self._split_key()[0]

    @property
    def key_secret(self) -> str:
        """The secret part of the key."""
        return self._split_key()[1]

    def _split_key(self) -> tuple[str, str]:
        name, sep, secret = self.key.partition(":")
        if not sep or not name or not secret:
            raise AblyConfigError("API key must look like '<app>.<key-id>:<secret>'")
        return name, secret

    @classmethod
    def from_env(cls, **overrides: Any) -> AblyConfig:
        """Create configuration from environment variables.

        Reads ``ABLY_KEY`` and the optional ``ABLY_REST_HOST``,
        ``ABLY_CLIENT_ID``, ``ABLY_REQUEST_TIMEOUT`` and
        ``ABLY_PUSH_STORAGE_PATH`` variables. Explicit keyword arguments
        override environment values.

        Returns
        -------
        AblyConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "ABLY_KEY": "key",
            "ABLY_REST_HOST": "rest_host",
            "ABLY_CLIENT_ID": "client_id",
            "ABLY_PUSH_STORAGE_PATH": "push_storage_path",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        # request_timeout is numeric, handle separately
        timeout_env = env.get("ABLY_REQUEST_TIMEOUT")
        if timeout_env is not None and "request_timeout" not in overrides:
            try:
                config_kwargs["request_timeout"] = float(timeout_env)
            except ValueError as exc:
                raise AblyConfigError(f"ABLY_REQUEST_TIMEOUT is not a number: {timeout_env!r}") from exc

        config_kwargs.update(overrides)
        if not config_kwargs.get("key"):
            raise AblyConfigError("ABLY_KEY is not set and no key was given")

        return cls(**config_kwargs)
