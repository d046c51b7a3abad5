"""
Cross-entity consistency rules.

The data model is denormalized: tasks reference field definitions by id
only, and nothing enforces those references. The rules here are the whole
contract:

- Deleting a list removes its tasks, then its field definitions, then the
  list. Each step is committed separately; a failure part way raises
  CascadeDeleteError carrying which steps already ran. Completed steps are
  not rolled back.
  Rows removed by the cascade are also removed from the session, so
  callers sharing it hold no instances of them.
- Deleting a field definition leaves task values in place. Readers hide
  entries whose field no longer exists, and updates carry them over, so
  the data is still there if someone needs it back.
- Retyping a field does not migrate stored values. A value that no longer
  fits renders as null.
- Deleting a task leaves its attachments in place.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping

import structlog
from sqlalchemy.orm import Session

from ..db.models import FieldDefinitionModel, ListModel, TaskModel
from .errors import CascadeDeleteError
from .field_types import is_valid_value

logger = structlog.get_logger()


@dataclass
class CascadeResult:
    """Which steps of a list delete completed."""

    list_id: str
    tasks_deleted: bool = False
    fields_deleted: bool = False
    list_deleted: bool = False
    task_count: int = 0
    field_count: int = 0

    @property
    def complete(self) -> bool:
        return self.tasks_deleted and self.fields_deleted and self.list_deleted

    def completed_steps(self) -> List[str]:
        steps = []
        if self.tasks_deleted:
            steps.append("tasks")
        if self.fields_deleted:
            steps.append("fields")
        if self.list_deleted:
            steps.append("list")
        return steps

    def to_dict(self) -> Dict[str, Any]:
        return {
            "listId": self.list_id,
            "tasksDeleted": self.task_count,
            "fieldsDeleted": self.field_count,
            "completed": self.completed_steps(),
        }


def delete_list_cascade(db: Session, workspace_id: str, list_id: str) -> CascadeResult:
    """Delete a list with everything it owns, in order: tasks, fields, list.

    The caller is expected to have checked that the list exists.

    Raises:
        CascadeDeleteError: a step failed; ``error.result`` shows progress.
    """
    result = CascadeResult(list_id=list_id)
    step = "tasks"
    try:
        result.task_count = (
            db.query(TaskModel)
            .filter(TaskModel.list_id == list_id, TaskModel.workspace_id == workspace_id)
            .delete(synchronize_session="fetch")
        )
        db.commit()
        result.tasks_deleted = True

        step = "fields"
        result.field_count = (
            db.query(FieldDefinitionModel)
            .filter(
                FieldDefinitionModel.list_id == list_id,
                FieldDefinitionModel.workspace_id == workspace_id,
            )
            .delete(synchronize_session="fetch")
        )
        db.commit()
        result.fields_deleted = True

        step = "list"
        db.query(ListModel).filter(
            ListModel.id == list_id, ListModel.workspace_id == workspace_id
        ).delete(synchronize_session="fetch")
        db.commit()
        result.list_deleted = True
    except Exception as e:
        db.rollback()
        logger.error(
            "list_cascade_failed",
            list_id=list_id,
            step=step,
            completed=result.completed_steps(),
            error=str(e),
        )
        raise CascadeDeleteError(f"Failed to delete list ({step} step)", result) from e

    logger.info(
        "list_deleted",
        list_id=list_id,
        tasks=result.task_count,
        fields=result.field_count,
    )
    return result


def live_custom_fields(
    entries: List[Mapping[str, Any]],
    definitions: Mapping[str, FieldDefinitionModel],
) -> List[Dict[str, Any]]:
    """Stored entries as readers should see them.

    Entries for deleted definitions are dropped; values that do not fit the
    definition's current type are shown as null.
    """
    visible = []
    for entry in entries or []:
        definition = definitions.get(entry.get("fieldId"))
        if definition is None:
            continue
        value = entry.get("value")
        if not is_valid_value(
            definition.type, value, definition.options, definition.settings
        ):
            value = None
        visible.append({"fieldId": entry["fieldId"], "value": value})
    return visible


def carry_orphans(
    stored: List[Mapping[str, Any]],
    replacement: List[Dict[str, Any]],
    definitions: Mapping[str, FieldDefinitionModel],
) -> List[Dict[str, Any]]:
    """Append stored entries for deleted definitions to a replacement list."""
    orphans = [
        dict(entry)
        for entry in stored or []
        if entry.get("fieldId") not in definitions
    ]
    return list(replacement) + orphans
