"""
Workspace schemas.
"""

from __future__ import annotations

from typing import Optional

from pydantic import constr

from .enums import Priority, TaskStatus
from .primitives import CamelModel


class WorkspaceSettings(CamelModel):
    """Workspace-wide defaults."""

    default_task_status: TaskStatus = TaskStatus.TODO
    default_priority: Priority = Priority.NORMAL


class WorkspaceUpdate(CamelModel):
    """Partial update of the workspace."""

    name: Optional[constr(min_length=1, max_length=256)] = None
    description: Optional[constr(max_length=4000)] = None
    settings: Optional[WorkspaceSettings] = None
