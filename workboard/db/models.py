"""
SQLAlchemy models for Workboard.

Embedded sequences (custom field values, select options, members,
assignees) are stored as JSON columns; ownership links are plain foreign
key columns so cascades are performed explicitly by the service layer.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.sql import func
from sqlalchemy.types import TypeDecorator

from .base import Base

# These mirror workboard/tracker/enums.py
task_status_enum = Enum(
    "to-do", "in-progress", "in-review", "done", "blocked", name="task_status"
)

task_priority_enum = Enum("urgent", "high", "normal", "low", name="task_priority")

field_type_enum = Enum(
    "text",
    "number",
    "date",
    "checkbox",
    "url",
    "select",
    "multi-select",
    "priority",
    "status",
    name="field_type",
)


class UTCDateTime(TypeDecorator):
    """Timestamp stored and returned in UTC.

    Aware values are converted to UTC before binding and naive values are
    taken to be UTC already. SQLite keeps no offset, so results come back
    naive and are tagged as UTC on the way out.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class UserModel(Base):
    """A person who can own workspaces, create records and be assigned tasks."""

    __tablename__ = "users"

    id = Column(String(128), primary_key=True)
    email = Column(String(320), nullable=False, unique=True)
    name = Column(String(256), nullable=False)
    avatar = Column(String(2000), nullable=True)

    created_at = Column(UTCDateTime(), nullable=False, default=func.now())
    updated_at = Column(UTCDateTime(), nullable=False, default=func.now())

    def to_summary(self) -> Dict[str, Any]:
        """Fields shown wherever a user reference is expanded."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "avatar": self.avatar,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary."""
        return {
            **self.to_summary(),
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


class WorkspaceModel(Base):
    """Top-level tenant container."""

    __tablename__ = "workspaces"

    id = Column(String(128), primary_key=True)
    name = Column(String(256), nullable=False)
    description = Column(Text, nullable=True)
    owner_id = Column(String(128), ForeignKey("users.id"), nullable=False, index=True)

    # [{userId, role, joinedAt}]
    members = Column(JSON, nullable=False, default=list)
    # {defaultTaskStatus, defaultPriority}
    settings = Column(JSON, nullable=False, default=dict)

    created_at = Column(UTCDateTime(), nullable=False, default=func.now())
    updated_at = Column(UTCDateTime(), nullable=False, default=func.now())

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "ownerId": self.owner_id,
            "members": self.members or [],
            "settings": self.settings or {},
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


class ListModel(Base):
    """A named bucket of tasks within a workspace."""

    __tablename__ = "lists"

    id = Column(String(128), primary_key=True)
    workspace_id = Column(String(128), ForeignKey("workspaces.id"), nullable=False)
    name = Column(String(256), nullable=False)
    description = Column(Text, nullable=True)
    color = Column(String(32), nullable=False, default="#3b82f6")
    icon = Column(String(32), nullable=False, default="📋")
    order = Column(Integer, nullable=False, default=0)
    created_by = Column(String(128), nullable=False)

    created_at = Column(UTCDateTime(), nullable=False, default=func.now())
    updated_at = Column(UTCDateTime(), nullable=False, default=func.now())

    __table_args__ = (
        Index("ix_lists_workspace_order", "workspace_id", "order"),
        Index("ix_lists_workspace_created", "workspace_id", "created_at"),
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary."""
        return {
            "id": self.id,
            "workspaceId": self.workspace_id,
            "name": self.name,
            "description": self.description,
            "color": self.color,
            "icon": self.icon,
            "order": self.order,
            "createdBy": self.created_by,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


class FieldDefinitionModel(Base):
    """A custom attribute available to every task of one list."""

    __tablename__ = "field_definitions"

    id = Column(String(128), primary_key=True)
    list_id = Column(String(128), ForeignKey("lists.id"), nullable=False)
    workspace_id = Column(String(128), ForeignKey("workspaces.id"), nullable=False)
    name = Column(String(256), nullable=False)
    type = Column(field_type_enum, nullable=False)
    order = Column(Integer, nullable=False, default=0)
    required = Column(Boolean, nullable=False, default=False)
    # [{label, value, color}]
    options = Column(JSON, nullable=False, default=list)
    default_value = Column(JSON, nullable=True)
    # {min, max, format, placeholder}
    settings = Column(JSON, nullable=False, default=dict)
    created_by = Column(String(128), nullable=False)

    created_at = Column(UTCDateTime(), nullable=False, default=func.now())
    updated_at = Column(UTCDateTime(), nullable=False, default=func.now())

    __table_args__ = (
        Index("ix_field_definitions_list_order", "list_id", "order"),
        Index("ix_field_definitions_workspace", "workspace_id"),
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary."""
        return {
            "id": self.id,
            "listId": self.list_id,
            "workspaceId": self.workspace_id,
            "name": self.name,
            "type": self.type,
            "order": self.order,
            "required": self.required,
            "options": self.options or [],
            "defaultValue": self.default_value,
            "settings": self.settings or {},
            "createdBy": self.created_by,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


class TaskModel(Base):
    """A unit of work inside a list."""

    __tablename__ = "tasks"

    id = Column(String(128), primary_key=True)
    list_id = Column(String(128), ForeignKey("lists.id"), nullable=False)
    workspace_id = Column(String(128), ForeignKey("workspaces.id"), nullable=False)
    name = Column(String(512), nullable=False)
    description = Column(Text, nullable=True)

    status = Column(task_status_enum, nullable=False, default="to-do")
    priority = Column(task_priority_enum, nullable=False, default="normal")
    due_date = Column(UTCDateTime(), nullable=True)

    # [{fieldId, value}]; may hold entries for deleted field definitions
    custom_fields = Column(JSON, nullable=False, default=list)

    order = Column(Integer, nullable=False, default=0)
    assignees = Column(JSON, nullable=False, default=list)
    created_by = Column(String(128), nullable=False)
    updated_by = Column(String(128), nullable=True)
    completed_at = Column(UTCDateTime(), nullable=True)

    created_at = Column(UTCDateTime(), nullable=False, default=func.now())
    updated_at = Column(UTCDateTime(), nullable=False, default=func.now())

    __table_args__ = (
        Index("ix_tasks_list_order", "list_id", "order"),
        Index("ix_tasks_workspace_status", "workspace_id", "status"),
        Index("ix_tasks_workspace_priority", "workspace_id", "priority"),
        Index("ix_tasks_workspace_due_date", "workspace_id", "due_date"),
        Index("ix_tasks_created_at", "created_at"),
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary (stored custom fields, unexpanded refs)."""
        return {
            "id": self.id,
            "listId": self.list_id,
            "workspaceId": self.workspace_id,
            "name": self.name,
            "description": self.description,
            "status": self.status,
            "priority": self.priority,
            "dueDate": _iso(self.due_date),
            "customFields": self.custom_fields or [],
            "order": self.order,
            "assignees": self.assignees or [],
            "createdBy": self.created_by,
            "updatedBy": self.updated_by,
            "completedAt": _iso(self.completed_at),
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


class AttachmentModel(Base):
    """A file linked to exactly one task."""

    __tablename__ = "attachments"

    id = Column(String(128), primary_key=True)
    # No foreign key: attachments outlive the task they were uploaded to
    task_id = Column(String(128), nullable=False)
    workspace_id = Column(String(128), ForeignKey("workspaces.id"), nullable=False)
    name = Column(String(512), nullable=False)
    original_name = Column(String(512), nullable=False)
    url = Column(String(2000), nullable=False)
    storage_id = Column(String(1024), nullable=False, unique=True)
    type = Column(String(256), nullable=False)
    size = Column(Integer, nullable=False)
    uploaded_by = Column(String(128), nullable=False)

    created_at = Column(UTCDateTime(), nullable=False, default=func.now())

    __table_args__ = (
        Index("ix_attachments_task_created", "task_id", "created_at"),
        Index("ix_attachments_workspace", "workspace_id"),
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary."""
        return {
            "id": self.id,
            "taskId": self.task_id,
            "workspaceId": self.workspace_id,
            "name": self.name,
            "originalName": self.original_name,
            "url": self.url,
            "storageId": self.storage_id,
            "type": self.type,
            "size": self.size,
            "uploadedBy": self.uploaded_by,
            "createdAt": _iso(self.created_at),
        }
