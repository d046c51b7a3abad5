"""
Database package for Workboard.
"""

from .base import Base, get_db, get_engine, init_database
from .models import (
    AttachmentModel,
    FieldDefinitionModel,
    ListModel,
    TaskModel,
    UserModel,
    WorkspaceModel,
)

__all__ = [
    "Base",
    "get_engine",
    "get_db",
    "init_database",
    "AttachmentModel",
    "FieldDefinitionModel",
    "ListModel",
    "TaskModel",
    "UserModel",
    "WorkspaceModel",
]
