"""
Shared request/response building blocks.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator


class RecordPayload(BaseModel):
    """
    Base for create/update bodies.

    Blank strings become None before field validation, so optional columns
    are stored as NULL and required ones fail as missing.
    """

    model_config = ConfigDict(
        str_strip_whitespace=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    @model_validator(mode="before")
    @classmethod
    def _blank_to_none(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        return {
            key: (None if isinstance(value, str) and not value.strip() else value)
            for key, value in data.items()
        }


def ok(**payload: Any) -> dict[str, Any]:
    return {"success": True, **payload}
