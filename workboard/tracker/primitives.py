"""
Common primitives shared by the Workboard schemas and services.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, constr, model_validator
from pydantic.alias_generators import to_camel
from ulid import ULID


def generate_ulid() -> str:
    """Generate a ULID for object IDs.

    ULIDs are lexicographically sortable and globally unique.
    """
    return str(ULID())


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CallerContext:
    """Who is calling and on behalf of which workspace.

    Every service operation takes one of these instead of reading tenant
    ids from global configuration.
    """

    workspace_id: str
    user_id: str


class CamelModel(BaseModel):
    """Base for request schemas: camelCase on the wire, snake_case in code."""

    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class SelectOption(CamelModel):
    """One choice of a select or multi-select field."""

    label: constr(min_length=1, max_length=256)
    value: constr(min_length=1, max_length=256)
    color: Optional[constr(max_length=32)] = None


class FieldSettings(CamelModel):
    """Type-dependent constraints of a field definition."""

    min: Optional[float] = Field(None, description="Lower bound for number fields")
    max: Optional[float] = Field(None, description="Upper bound for number fields")
    format: Optional[constr(max_length=64)] = Field(
        None, description="Display format for date fields"
    )
    placeholder: Optional[constr(max_length=256)] = None

    @model_validator(mode="after")
    def check_bounds(self) -> "FieldSettings":
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError("settings.min must not exceed settings.max")
        return self


class CustomFieldValue(CamelModel):
    """A value stored on a task, keyed by field definition id."""

    field_id: constr(min_length=1, max_length=128)
    value: Any = None
