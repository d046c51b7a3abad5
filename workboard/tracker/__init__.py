"""
Workboard task tracker.

Objects:

- Workspace: tenant boundary, owned by a user
- List: ordered container of tasks inside a workspace
- FieldDefinition: user-authored custom attribute available to a list's tasks
- Task: unit of work with built-in fields and custom field values
- Attachment: file linked to a task, bytes kept in a blob store

Ownership:
    Workspace → List → (FieldDefinition, Task) ; Task → Attachment
"""

# Enums
from .enums import FieldType, PermissionLevel, Priority, SortOrder, TaskStatus

# Errors
from .errors import (
    CascadeDeleteError,
    FieldShapeError,
    FieldValueError,
    InternalError,
    NotFoundError,
    ValidationError,
    WorkboardError,
)

# Primitives
from .primitives import (
    CallerContext,
    CustomFieldValue,
    FieldSettings,
    SelectOption,
    generate_ulid,
    utc_now,
)

# Field type registry
from .field_types import (
    FIELD_KINDS,
    get_field_kind,
    is_valid_value,
    requires_options,
    validate_definition_shape,
    validate_value,
)

# Schemas
from .field_definition import FieldDefinitionCreate, FieldDefinitionUpdate
from .list import ListCreate, ListUpdate
from .task import TaskCreate, TaskQuery, TaskUpdate
from .workspace import WorkspaceSettings, WorkspaceUpdate

# Consistency rules
from .consistency import CascadeResult, carry_orphans, delete_list_cascade, live_custom_fields

__all__ = [
    # Enums
    "FieldType",
    "PermissionLevel",
    "Priority",
    "SortOrder",
    "TaskStatus",
    # Errors
    "CascadeDeleteError",
    "FieldShapeError",
    "FieldValueError",
    "InternalError",
    "NotFoundError",
    "ValidationError",
    "WorkboardError",
    # Primitives
    "CallerContext",
    "CustomFieldValue",
    "FieldSettings",
    "SelectOption",
    "generate_ulid",
    "utc_now",
    # Field types
    "FIELD_KINDS",
    "get_field_kind",
    "is_valid_value",
    "requires_options",
    "validate_definition_shape",
    "validate_value",
    # Schemas
    "FieldDefinitionCreate",
    "FieldDefinitionUpdate",
    "ListCreate",
    "ListUpdate",
    "TaskCreate",
    "TaskQuery",
    "TaskUpdate",
    "WorkspaceSettings",
    "WorkspaceUpdate",
    # Consistency
    "CascadeResult",
    "carry_orphans",
    "delete_list_cascade",
    "live_custom_fields",
]
