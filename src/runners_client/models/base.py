"""Base model for backend JSON payloads.

The backend speaks camelCase; Python code uses snake_case attributes.
"""

from __future__ import annotations

__all__ = [
    "ApiModel",
]

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Backend DTO. Unknown fields are ignored so newer servers stay compatible."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_payload(self) -> dict[str, Any]:
        """Serialize as a camelCase request body, omitting unset optional fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
