"""
List schemas.

A List is a named bucket of tasks; it owns its tasks and its custom field
definitions.
"""

from __future__ import annotations

from typing import Optional

from pydantic import constr

from .primitives import CamelModel

DEFAULT_LIST_COLOR = "#3b82f6"
DEFAULT_LIST_ICON = "📋"


class ListCreate(CamelModel):
    """Schema for creating a new List."""

    name: constr(max_length=256)
    description: Optional[constr(max_length=4000)] = None
    color: Optional[constr(max_length=32)] = None
    icon: Optional[constr(max_length=32)] = None


class ListUpdate(CamelModel):
    """Partial update; only keys present in the request are applied."""

    name: Optional[constr(max_length=256)] = None
    description: Optional[constr(max_length=4000)] = None
    color: Optional[constr(max_length=32)] = None
    icon: Optional[constr(max_length=32)] = None
    order: Optional[int] = None
