"""
Field Definition schemas.

A Field Definition is user-authored metadata describing one custom
attribute available to every task of a list.

Invariants:
- select and multi-select definitions always carry at least one option.
- ``required`` is advisory; the task store does not enforce it.
- Changing ``type`` does not migrate values already stored on tasks.
"""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import Field, constr

from .primitives import CamelModel, FieldSettings, SelectOption


class FieldDefinitionCreate(CamelModel):
    """Schema for creating a new Field Definition."""

    name: constr(max_length=256)
    # Kept as a plain string so unknown kinds reach the registry and are
    # reported as a field shape error.
    type: constr(max_length=32)
    required: bool = False
    options: Optional[List[SelectOption]] = None
    default_value: Any = None
    settings: Optional[FieldSettings] = None


class FieldDefinitionUpdate(CamelModel):
    """Partial update; only keys present in the request are applied."""

    name: Optional[constr(max_length=256)] = None
    type: Optional[constr(max_length=32)] = None
    required: Optional[bool] = None
    options: Optional[List[SelectOption]] = None
    default_value: Any = None
    settings: Optional[FieldSettings] = None
    order: Optional[int] = Field(None, description="Manual position in the list")

