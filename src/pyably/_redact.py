"""Helpers for safe debug logging.

Push registration traffic carries secrets: the API key, the device secret,
the update token and the platform's recipient token. Platforms name their
tokens differently (``registrationToken``, ``deviceToken``, ``targetUrl``
plus ``p256dh``/``auth`` keys for web push), so any key ending in ``token``
or ``secret`` is masked, and a ``recipient`` keeps only its transport type.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

_SENSITIVE_KEYS: frozenset[str] = frozenset({"key", "authorization", "p256dh", "auth", "targeturl"})
_SENSITIVE_SUFFIXES: tuple[str, ...] = ("token", "secret")

_REDACTED = "<redacted>"


def is_sensitive_key(key: str) -> bool:
    """Whether values under *key* must never reach a log line."""
    lowered = key.lower()
    return lowered in _SENSITIVE_KEYS or lowered.endswith(_SENSITIVE_SUFFIXES)


def _redact_recipient(recipient: Mapping[str, Any]) -> dict[str, Any]:
    return {
        str(k): (v if str(k) == "transportType" else _REDACTED)
        for k, v in recipient.items()
    }


def redact_for_log(value: Any, *, max_string: int = 512, _depth: int = 0) -> Any:
    """Return a redacted copy of *value* suitable for debug logs."""
    if _depth > 20:
        return "<max-depth>"

    if value is None or isinstance(value, (bool, int, float)):
        return value

    if isinstance(value, str):
        return value if len(value) <= max_string else f"{value[:max_string]}…<truncated>"

    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, Mapping):
        redacted: dict[str, Any] = {}
        for k, v in value.items():
            key = str(k)
            if is_sensitive_key(key):
                redacted[key] = _REDACTED
            elif key == "recipient" and isinstance(v, Mapping):
                redacted[key] = _redact_recipient(v)
            else:
                redacted[key] = redact_for_log(v, max_string=max_string, _depth=_depth + 1)
        return redacted

    if isinstance(value, Sequence):
        return [redact_for_log(v, max_string=max_string, _depth=_depth + 1) for v in value]

    return repr(value)


def redact_headers(headers: Mapping[str, str] | None) -> dict[str, str]:
    """Mask authentication headers such as ``X-Ably-DeviceToken``."""
    if not headers:
        return {}
    return {k: (_REDACTED if is_sensitive_key(k) else v) for k, v in headers.items()}
