"""HTTP transport for the push REST API."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol
from urllib.parse import parse_qsl, urlsplit

import aiohttp

from pyably._constants import PROTOCOL_VERSION, USER_AGENT
from pyably._redact import redact_for_log, redact_headers
from pyably.config import AblyConfig
from pyably.exceptions import AblyApiError, AblyTransportError

_logger = logging.getLogger(__name__)

_LINK_RE = re.compile(r'<([^>]+)>\s*;\s*rel="?([^",;]+)"?')


@dataclass(frozen=True)
class RestResponse:
    """Decoded response of a REST call."""

    status: int
    body: Any = None
    links: dict[str, str] = field(default_factory=dict)
    """``rel`` -> absolute request path (with query), from the ``Link`` header."""


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`RestTransport`) concrete.
    """

    async def request(
        self,
        method: str,
        path: str,
        *,
        body: Any = None,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> RestResponse:
        ...


def parse_link_header(value: str | None, request_path: str) -> dict[str, str]:
    """Parse a ``Link`` header into ``{rel: path}``.

    Relative targets such as ``./deviceRegistrations?cursor=x`` are resolved
    against the directory of *request_path*.
    """
    if not value:
        return {}
    base = request_path.split("?", 1)[0].rsplit("/", 1)[0]
    links: dict[str, str] = {}
    for target, rel in _LINK_RE.findall(value):
        if target.startswith("./"):
            target = f"{base}/{target[2:]}"
        elif not target.startswith("/"):
            target = urlsplit(target)._replace(scheme="", netloc="").geturl()
        links[rel] = target
    return links


def split_path(path: str) -> tuple[str, dict[str, str]]:
    """Split ``/a/b?x=1`` into ``("/a/b", {"x": "1"})``."""
    parts = urlsplit(path)
    return parts.path, dict(parse_qsl(parts.query, keep_blank_values=True))


def _error_from_body(body: Any, status: int, endpoint: str) -> AblyApiError:
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        code = error.get("code")
        return AblyApiError(
            f"{endpoint} failed: code={code} message={error.get('message', '')}",
            code=code if isinstance(code, int) else None,
            status_code=error.get("statusCode", status),
            endpoint=endpoint,
        )
    return AblyApiError(
        f"HTTP {status} from {endpoint}",
        status_code=status,
        endpoint=endpoint,
    )


class RestTransport:
    """JSON over HTTP transport authenticated with the API key."""

    def __init__(self, config: AblyConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._auth = aiohttp.BasicAuth(config.key_name, config.key_secret)

    def _build_headers(self, extra: Mapping[str, str] | None) -> dict[str, str]:
        headers: dict[str, str] = {
            "accept": "application/json",
            "content-type": "application/json",
            "user-agent": USER_AGENT,
            "x-ably-version": PROTOCOL_VERSION,
        }
        headers.update(self._config.headers)
        if extra:
            headers.update(extra)
        return headers

    async def request(
        self,
        method: str,
        path: str,
        *,
        body: Any = None,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> RestResponse:
        """Send one request and decode the JSON reply.

        Raises :class:`AblyApiError` for non-2xx replies and
        :class:`AblyTransportError` for network or decoding failures.
        """
        url = f"{self._config.rest_host}{path}"
        data = json.dumps(body, separators=(",", ":")) if body is not None else None

        _logger.debug(
            "%s %s params=%s headers=%s body=%s",
            method,
            url,
            params,
            redact_headers(headers),
            redact_for_log(body),
        )

        try:
            async with self._http.request(
                method,
                url,
                data=data,
                params=dict(params) if params else None,
                headers=self._build_headers(headers),
                auth=self._auth,
            ) as resp:
                text = await resp.text()
                status = resp.status
                link_header = resp.headers.get("Link")
        except aiohttp.ClientError as exc:
            raise AblyTransportError(
                f"Request to {path} failed: {exc}",
                endpoint=path,
            ) from exc

        decoded: Any = None
        if text.strip():
            try:
                decoded = json.loads(text)
            except json.JSONDecodeError as exc:
                if status < 300:
                    raise AblyTransportError(
                        f"Invalid JSON from {path}: {text[:200]}",
                        status_code=status,
                        endpoint=path,
                    ) from exc

        if status >= 300:
            raise _error_from_body(decoded, status, path)

        _logger.debug("%s %s -> %d %s", method, url, status, redact_for_log(decoded))
        return RestResponse(status=status, body=decoded, links=parse_link_header(link_header, path))
