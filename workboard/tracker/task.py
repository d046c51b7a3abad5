"""
Task schemas.

A Task is a unit of work inside a List: built-in fields (status, priority,
due date) plus custom field values keyed by field definition id.

Invariants:
- ``completedAt`` is set exactly when ``status`` is done; the store
  maintains it on every create and update.
- ``customFields`` holds at most one entry per field id.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, constr
from pydantic.alias_generators import to_camel

from .enums import Priority, SortOrder, TaskStatus
from .primitives import CamelModel, CustomFieldValue


class TaskCreate(CamelModel):
    """Schema for creating a new Task."""

    name: constr(max_length=512)
    description: Optional[constr(max_length=16000)] = None
    status: Optional[TaskStatus] = None
    priority: Optional[Priority] = None
    due_date: Optional[datetime] = None
    custom_fields: List[CustomFieldValue] = Field(default_factory=list)
    assignees: List[constr(min_length=1, max_length=128)] = Field(default_factory=list)


class TaskUpdate(CamelModel):
    """Partial update; only keys present in the request are applied."""

    name: Optional[constr(max_length=512)] = None
    description: Optional[constr(max_length=16000)] = None
    status: Optional[TaskStatus] = None
    priority: Optional[Priority] = None
    due_date: Optional[datetime] = None
    custom_fields: Optional[List[CustomFieldValue]] = None
    assignees: Optional[List[constr(min_length=1, max_length=128)]] = None
    order: Optional[int] = None
    completed_at: Optional[datetime] = None


class TaskQuery(BaseModel):
    """Filter and sort options for listing a list's tasks.

    ``status`` and ``priority`` accept a single value or a comma-separated
    "any of" list.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status: Optional[str] = None
    priority: Optional[str] = None
    search: Optional[str] = None
    due_date_from: Optional[datetime] = None
    due_date_to: Optional[datetime] = None
    sort_field: str = "order"
    sort_order: SortOrder = SortOrder.ASC
