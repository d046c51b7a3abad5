"""
Canonical enums for Workboard.

These define the allowed values for built-in task fields and the closed
set of custom field kinds.
"""

from enum import Enum


class FieldType(str, Enum):
    """Kinds of user-defined custom fields."""

    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    CHECKBOX = "checkbox"
    URL = "url"
    SELECT = "select"
    MULTI_SELECT = "multi-select"
    PRIORITY = "priority"
    STATUS = "status"


class TaskStatus(str, Enum):
    """Workflow state of a task."""

    TODO = "to-do"
    IN_PROGRESS = "in-progress"
    IN_REVIEW = "in-review"
    DONE = "done"
    BLOCKED = "blocked"


class Priority(str, Enum):
    """Task priority levels."""

    URGENT = "urgent"
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"


class PermissionLevel(str, Enum):
    """Role of a workspace member."""

    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"
    VIEWER = "viewer"


class SortOrder(str, Enum):
    """Direction for task queries."""

    ASC = "asc"
    DESC = "desc"
