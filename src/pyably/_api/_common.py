"""Shared helpers for push REST endpoint modules.

It is internal to pyably and may change at any time.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Generic, TypeVar

from pydantic.alias_generators import to_camel

from pyably._transport import RestResponse, Transport, split_path
from pyably.exceptions import AblyApiError

T = TypeVar("T")


def build_params(filters: Mapping[str, Any]) -> dict[str, str]:
    """Convert snake_case keyword filters into camelCase query params.

    ``None`` values are dropped; booleans are sent as ``true``/``false``.
    """
    params: dict[str, str] = {}
    for key, value in filters.items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        params[to_camel(key)] = str(value)
    return params


def expect_list(response: RestResponse, endpoint: str) -> list[Any]:
    if response.body is None:
        return []
    if not isinstance(response.body, list):
        raise AblyApiError(
            f"Expected a JSON array from {endpoint}",
            status_code=response.status,
            endpoint=endpoint,
        )
    return response.body


class PaginatedResult(Generic[T]):
    """One page of a list endpoint, following ``Link: rel="next"``."""

    def __init__(
        self,
        transport: Transport,
        items: list[T],
        *,
        parse_item: Callable[[Any], T],
        next_path: str | None = None,
    ) -> None:
        self._transport = transport
        self.items = items
        self._parse_item = parse_item
        self._next_path = next_path

    @classmethod
    async def fetch(
        cls,
        transport: Transport,
        path: str,
        params: Mapping[str, str] | None,
        parse_item: Callable[[Any], T],
    ) -> PaginatedResult[T]:
        response = await transport.request("GET", path, params=params)
        items = [parse_item(item) for item in expect_list(response, path)]
        return cls(transport, items, parse_item=parse_item, next_path=response.links.get("next"))

    def has_next(self) -> bool:
        return self._next_path is not None

    def is_last(self) -> bool:
        return self._next_path is None

    async def next(self) -> PaginatedResult[T] | None:
        """Fetch the following page, or ``None`` on the last page."""
        if self._next_path is None:
            return None
        path, params = split_path(self._next_path)
        return await PaginatedResult.fetch(self._transport, path, params, self._parse_item)
