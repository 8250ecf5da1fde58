"""Base model for push REST payloads.

Every wire model inherits from :class:`AblyBaseModel` which maps
camelCase API keys to snake_case fields via ``alias_generator=to_camel``
and ignores keys it does not know about.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class AblyBaseModel(BaseModel):
    """Base for push REST request/response models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_wire(self) -> dict[str, Any]:
        """Dump as a camelCase dict, omitting unset optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True)
