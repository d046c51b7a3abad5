"""
Workboard Service Layer.

Provides database operations for workspaces, lists, field definitions,
tasks and attachments. Each service is built per request with a session
and the caller's context, and every lookup is scoped by the caller's
workspace plus the owning parent, so an id used under the wrong parent
reads as not found.

Services raise ``ValidationError`` before writing anything and
``NotFoundError`` when a scoped lookup misses. Store errors propagate.
"""

import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

import structlog
from sqlalchemy import asc, desc, func, or_
from sqlalchemy.orm import Session

from ..config import Settings, get_settings
from ..db.models import (
    AttachmentModel,
    FieldDefinitionModel,
    ListModel,
    TaskModel,
    UserModel,
    WorkspaceModel,
)
from ..storage import BlobStore
from .consistency import (
    CascadeResult,
    carry_orphans,
    delete_list_cascade,
    live_custom_fields,
)
from .enums import PermissionLevel, Priority, SortOrder, TaskStatus
from .errors import InternalError, NotFoundError, ValidationError
from .field_definition import FieldDefinitionCreate, FieldDefinitionUpdate
from .field_types import get_field_kind, validate_definition_shape, validate_value
from .list import DEFAULT_LIST_COLOR, DEFAULT_LIST_ICON, ListCreate, ListUpdate
from .primitives import CallerContext, CustomFieldValue, generate_ulid, utc_now
from .task import TaskCreate, TaskQuery, TaskUpdate
from .workspace import WorkspaceSettings, WorkspaceUpdate

logger = structlog.get_logger()

TASK_SORT_FIELDS = {
    "order": TaskModel.order,
    "createdAt": TaskModel.created_at,
    "updatedAt": TaskModel.updated_at,
    "name": TaskModel.name,
    "status": TaskModel.status,
    "priority": TaskModel.priority,
    "dueDate": TaskModel.due_date,
    "completedAt": TaskModel.completed_at,
}

_TOKEN = re.compile(r"\w+")


def _required_name(value: Optional[str], kind: str) -> str:
    name = (value or "").strip()
    if not name:
        raise ValidationError(f"{kind} name is required", field="name")
    return name


def _trimmed(value: Optional[str]) -> Optional[str]:
    return value.strip() if value is not None else None


def _next_order(db: Session, column, *criteria) -> int:
    """Append-on-create position: one past the current max, or 0.

    Read-then-write without a lock; concurrent creates can share a value.
    """
    current = db.query(func.max(column)).filter(*criteria).scalar()
    return 0 if current is None else current + 1


def _search_tokens(text: Optional[str]) -> set:
    return set(_TOKEN.findall((text or "").lower()))


def _parse_any_of(raw: Optional[str], allowed: Iterable[str], field: str) -> List[str]:
    if not raw:
        return []
    values = [v.strip() for v in raw.split(",") if v.strip()]
    allowed = list(allowed)
    invalid = [v for v in values if v not in allowed]
    if invalid:
        raise ValidationError(
            f"Invalid {field} filter: {', '.join(invalid)}. Allowed: {', '.join(allowed)}",
            field=field,
        )
    return values


def expand_users(db: Session, user_ids: Iterable[Optional[str]]) -> Dict[str, Dict[str, Any]]:
    """Summaries for the given user ids; unknown ids are left out."""
    ids = {uid for uid in user_ids if uid}
    if not ids:
        return {}
    users = db.query(UserModel).filter(UserModel.id.in_(ids)).all()
    return {u.id: u.to_summary() for u in users}


class WorkspaceService:
    """Service for the caller's workspace and its bootstrap user."""

    def __init__(self, db: Session, caller: CallerContext):
        self.db = db
        self.caller = caller

    def get(self) -> WorkspaceModel:
        workspace = (
            self.db.query(WorkspaceModel)
            .filter(WorkspaceModel.id == self.caller.workspace_id)
            .first()
        )
        if not workspace:
            raise NotFoundError("Workspace", self.caller.workspace_id)
        return workspace

    def get_or_create(
        self,
        user_email: str,
        user_name: str,
        workspace_name: str,
        workspace_description: str = "Default workspace for task management",
    ) -> Tuple[WorkspaceModel, UserModel]:
        """Return the caller's workspace and user, creating them on first use.

        Calling this repeatedly never creates duplicates.
        """
        now = utc_now()
        email = user_email.strip().lower()

        user = self.db.query(UserModel).filter(UserModel.id == self.caller.user_id).first()
        if not user:
            user = self.db.query(UserModel).filter(UserModel.email == email).first()
        if not user:
            user = UserModel(
                id=self.caller.user_id,
                email=email,
                name=user_name.strip(),
                created_at=now,
                updated_at=now,
            )
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)
            logger.info("default_user_created", user_id=user.id)

        workspace = (
            self.db.query(WorkspaceModel)
            .filter(WorkspaceModel.id == self.caller.workspace_id)
            .first()
        )
        if not workspace:
            workspace = WorkspaceModel(
                id=self.caller.workspace_id,
                name=workspace_name.strip(),
                description=workspace_description,
                owner_id=user.id,
                members=[
                    {
                        "userId": user.id,
                        "role": PermissionLevel.OWNER.value,
                        "joinedAt": now.isoformat(),
                    }
                ],
                settings=WorkspaceSettings().model_dump(mode="json", by_alias=True),
                created_at=now,
                updated_at=now,
            )
            self.db.add(workspace)
            self.db.commit()
            self.db.refresh(workspace)
            logger.info("default_workspace_created", workspace_id=workspace.id)

        return workspace, user

    def update(self, data: WorkspaceUpdate) -> WorkspaceModel:
        workspace = self.get()
        fields = data.model_fields_set

        if "name" in fields and data.name is not None:
            workspace.name = _required_name(data.name, "Workspace")
        if "description" in fields:
            workspace.description = _trimmed(data.description)
        if "settings" in fields and data.settings is not None:
            workspace.settings = data.settings.model_dump(mode="json", by_alias=True)

        workspace.updated_at = utc_now()
        self.db.commit()
        self.db.refresh(workspace)
        logger.info("workspace_updated", workspace_id=workspace.id)
        return workspace


class ListService:
    """Service for managing lists in the caller's workspace."""

    def __init__(self, db: Session, caller: CallerContext):
        self.db = db
        self.caller = caller

    def list(self) -> List[ListModel]:
        return (
            self.db.query(ListModel)
            .filter(ListModel.workspace_id == self.caller.workspace_id)
            .order_by(asc(ListModel.order), asc(ListModel.created_at))
            .all()
        )

    def get(self, list_id: str) -> ListModel:
        task_list = (
            self.db.query(ListModel)
            .filter(
                ListModel.id == list_id,
                ListModel.workspace_id == self.caller.workspace_id,
            )
            .first()
        )
        if not task_list:
            raise NotFoundError("List", list_id)
        return task_list

    def create(self, data: ListCreate) -> ListModel:
        name = _required_name(data.name, "List")
        WorkspaceService(self.db, self.caller).get()

        now = utc_now()
        task_list = ListModel(
            id=generate_ulid(),
            workspace_id=self.caller.workspace_id,
            name=name,
            description=_trimmed(data.description),
            color=data.color or DEFAULT_LIST_COLOR,
            icon=data.icon or DEFAULT_LIST_ICON,
            order=_next_order(
                self.db, ListModel.order, ListModel.workspace_id == self.caller.workspace_id
            ),
            created_by=self.caller.user_id,
            created_at=now,
            updated_at=now,
        )
        self.db.add(task_list)
        self.db.commit()
        self.db.refresh(task_list)

        logger.info("list_created", list_id=task_list.id, order=task_list.order)
        return task_list

    def update(self, list_id: str, data: ListUpdate) -> ListModel:
        fields = data.model_fields_set
        name = _required_name(data.name, "List") if "name" in fields else None

        task_list = self.get(list_id)
        if name is not None:
            task_list.name = name
        if "description" in fields:
            task_list.description = _trimmed(data.description)
        if "color" in fields and data.color is not None:
            task_list.color = data.color
        if "icon" in fields and data.icon is not None:
            task_list.icon = data.icon
        if "order" in fields and data.order is not None:
            task_list.order = data.order

        task_list.updated_at = utc_now()
        self.db.commit()
        self.db.refresh(task_list)
        logger.info("list_updated", list_id=list_id)
        return task_list

    def delete(self, list_id: str) -> CascadeResult:
        """Delete a list together with its tasks and field definitions."""
        self.get(list_id)
        return delete_list_cascade(self.db, self.caller.workspace_id, list_id)


class FieldDefinitionService:
    """Service for managing a list's custom field definitions."""

    def __init__(self, db: Session, caller: CallerContext):
        self.db = db
        self.caller = caller
        self.lists = ListService(db, caller)

    def _scoped(self, list_id: str):
        return self.db.query(FieldDefinitionModel).filter(
            FieldDefinitionModel.list_id == list_id,
            FieldDefinitionModel.workspace_id == self.caller.workspace_id,
        )

    def list(self, list_id: str) -> List[FieldDefinitionModel]:
        self.lists.get(list_id)
        return (
            self._scoped(list_id)
            .order_by(asc(FieldDefinitionModel.order), asc(FieldDefinitionModel.created_at))
            .all()
        )

    def definitions_by_id(self, list_id: str) -> Dict[str, FieldDefinitionModel]:
        """Live definitions of a list keyed by id (no list existence check)."""
        return {d.id: d for d in self._scoped(list_id).all()}

    def get(self, list_id: str, field_id: str) -> FieldDefinitionModel:
        self.lists.get(list_id)
        field = self._scoped(list_id).filter(FieldDefinitionModel.id == field_id).first()
        if not field:
            raise NotFoundError("Custom field", field_id)
        return field

    def create(self, list_id: str, data: FieldDefinitionCreate) -> FieldDefinitionModel:
        name = _required_name(data.name, "Field")
        validate_definition_shape(data.type, data.options)
        field_type = get_field_kind(data.type).type.value
        options = [o.model_dump(exclude_none=True) for o in data.options or []]
        settings = data.settings.model_dump(exclude_none=True) if data.settings else {}
        validate_value(field_type, data.default_value, options, settings, field_name=name)

        self.lists.get(list_id)

        now = utc_now()
        field = FieldDefinitionModel(
            id=generate_ulid(),
            list_id=list_id,
            workspace_id=self.caller.workspace_id,
            name=name,
            type=field_type,
            order=_next_order(
                self.db,
                FieldDefinitionModel.order,
                FieldDefinitionModel.list_id == list_id,
            ),
            required=bool(data.required),
            options=options,
            default_value=data.default_value,
            settings=settings,
            created_by=self.caller.user_id,
            created_at=now,
            updated_at=now,
        )
        self.db.add(field)
        self.db.commit()
        self.db.refresh(field)

        logger.info(
            "custom_field_created",
            field_id=field.id,
            list_id=list_id,
            field_type=field_type,
        )
        return field

    def update(
        self, list_id: str, field_id: str, data: FieldDefinitionUpdate
    ) -> FieldDefinitionModel:
        """Apply only the supplied keys.

        When the type or the options change, the resulting pair is checked
        again, using stored values for whichever side was not supplied.
        Values already stored on tasks are not migrated.
        """
        fields = data.model_fields_set
        field = self.get(list_id, field_id)

        name = _required_name(data.name, "Field") if "name" in fields else field.name
        field_type = field.type
        if "type" in fields and data.type is not None:
            field_type = get_field_kind(data.type).type.value

        options = field.options or []
        if "options" in fields:
            options = [o.model_dump(exclude_none=True) for o in data.options or []]

        settings = field.settings or {}
        if "settings" in fields:
            settings = data.settings.model_dump(exclude_none=True) if data.settings else {}

        if "type" in fields or "options" in fields:
            validate_definition_shape(field_type, options)
        if "default_value" in fields:
            validate_value(field_type, data.default_value, options, settings, field_name=name)

        old_type = field.type
        field.name = name
        field.type = field_type
        field.options = options
        field.settings = settings
        if "required" in fields and data.required is not None:
            field.required = data.required
        if "default_value" in fields:
            field.default_value = data.default_value
        if "order" in fields and data.order is not None:
            field.order = data.order

        field.updated_at = utc_now()
        self.db.commit()
        self.db.refresh(field)

        if old_type != field_type:
            # Stored task values keep their old shape
            logger.warning(
                "custom_field_retyped",
                field_id=field_id,
                old_type=old_type,
                new_type=field_type,
            )
        logger.info("custom_field_updated", field_id=field_id)
        return field

    def delete(self, list_id: str, field_id: str) -> None:
        """Remove a definition. Task values that reference it are kept."""
        field = self.get(list_id, field_id)
        self.db.delete(field)
        self.db.commit()
        logger.info("custom_field_deleted", field_id=field_id, list_id=list_id)


class TaskService:
    """Service for managing tasks of a list."""

    def __init__(self, db: Session, caller: CallerContext):
        self.db = db
        self.caller = caller
        self.lists = ListService(db, caller)
        self.fields = FieldDefinitionService(db, caller)

    def _scoped(self, list_id: str):
        return self.db.query(TaskModel).filter(
            TaskModel.list_id == list_id,
            TaskModel.workspace_id == self.caller.workspace_id,
        )

    def _check_custom_fields(
        self,
        entries: List[CustomFieldValue],
        definitions: Dict[str, FieldDefinitionModel],
    ) -> List[Dict[str, Any]]:
        """Validate submitted values against the list's live definitions."""
        seen = set()
        checked = []
        for entry in entries:
            if entry.field_id in seen:
                raise ValidationError(
                    f"Duplicate value for custom field {entry.field_id}",
                    field="customFields",
                )
            seen.add(entry.field_id)

            definition = definitions.get(entry.field_id)
            if definition is None:
                raise ValidationError(
                    f"Unknown custom field {entry.field_id}", field="customFields"
                )
            validate_value(
                definition.type,
                entry.value,
                definition.options,
                definition.settings,
                field_name=definition.name,
            )
            checked.append({"fieldId": entry.field_id, "value": entry.value})
        return checked

    def get(self, list_id: str, task_id: str) -> TaskModel:
        task = self._scoped(list_id).filter(TaskModel.id == task_id).first()
        if not task:
            raise NotFoundError("Task", task_id)
        return task

    def create(self, list_id: str, data: TaskCreate) -> TaskModel:
        name = _required_name(data.name, "Task")
        self.lists.get(list_id)
        definitions = self.fields.definitions_by_id(list_id)
        custom_fields = self._check_custom_fields(data.custom_fields, definitions)

        now = utc_now()
        status = data.status or TaskStatus.TODO
        task = TaskModel(
            id=generate_ulid(),
            list_id=list_id,
            workspace_id=self.caller.workspace_id,
            name=name,
            description=_trimmed(data.description),
            status=status.value,
            priority=(data.priority or Priority.NORMAL).value,
            due_date=data.due_date,
            custom_fields=custom_fields,
            order=_next_order(self.db, TaskModel.order, TaskModel.list_id == list_id),
            assignees=list(dict.fromkeys(data.assignees)),
            created_by=self.caller.user_id,
            updated_by=self.caller.user_id,
            completed_at=now if status == TaskStatus.DONE else None,
            created_at=now,
            updated_at=now,
        )
        self.db.add(task)
        self.db.commit()
        self.db.refresh(task)

        logger.info("task_created", task_id=task.id, list_id=list_id, order=task.order)
        return task

    def update(self, list_id: str, task_id: str, data: TaskUpdate) -> TaskModel:
        """Apply only the supplied keys.

        A status change always decides ``completedAt``: moving to done sets
        it (to the supplied value, or now), moving anywhere else clears it
        even if a value was supplied in the same request.
        """
        fields = data.model_fields_set
        task = self.get(list_id, task_id)

        name = _required_name(data.name, "Task") if "name" in fields else None
        custom_fields = None
        if "custom_fields" in fields:
            definitions = self.fields.definitions_by_id(list_id)
            checked = self._check_custom_fields(data.custom_fields or [], definitions)
            custom_fields = carry_orphans(task.custom_fields, checked, definitions)

        if name is not None:
            task.name = name
        if "description" in fields:
            task.description = _trimmed(data.description)
        if "priority" in fields and data.priority is not None:
            task.priority = data.priority.value
        if "due_date" in fields:
            task.due_date = data.due_date
        if custom_fields is not None:
            task.custom_fields = custom_fields
        if "assignees" in fields:
            task.assignees = list(dict.fromkeys(data.assignees or []))
        if "order" in fields and data.order is not None:
            task.order = data.order

        if "status" in fields and data.status is not None:
            task.status = data.status.value
            if data.status == TaskStatus.DONE:
                task.completed_at = data.completed_at or utc_now()
            else:
                task.completed_at = None
        elif "completed_at" in fields and data.completed_at is not None:
            # Only meaningful while the task is done
            if task.status == TaskStatus.DONE.value:
                task.completed_at = data.completed_at

        task.updated_by = self.caller.user_id
        task.updated_at = utc_now()
        self.db.commit()
        self.db.refresh(task)

        logger.info("task_updated", task_id=task_id, status=task.status)
        return task

    def delete(self, list_id: str, task_id: str) -> None:
        """Hard delete. Attachments of the task are left in place."""
        task = self.get(list_id, task_id)
        self.db.delete(task)
        self.db.commit()
        logger.info("task_deleted", task_id=task_id, list_id=list_id)

    def query(self, list_id: str, params: Optional[TaskQuery] = None) -> List[TaskModel]:
        """List a list's tasks with filters and a deterministic sort."""
        params = params or TaskQuery()
        self.lists.get(list_id)

        if params.sort_field not in TASK_SORT_FIELDS:
            raise ValidationError(
                f"Unsupported sort field '{params.sort_field}'. "
                f"Allowed: {', '.join(TASK_SORT_FIELDS)}",
                field="sortField",
            )

        query = self._scoped(list_id)

        statuses = _parse_any_of(params.status, [s.value for s in TaskStatus], "status")
        if len(statuses) == 1:
            query = query.filter(TaskModel.status == statuses[0])
        elif statuses:
            query = query.filter(TaskModel.status.in_(statuses))

        priorities = _parse_any_of(params.priority, [p.value for p in Priority], "priority")
        if len(priorities) == 1:
            query = query.filter(TaskModel.priority == priorities[0])
        elif priorities:
            query = query.filter(TaskModel.priority.in_(priorities))

        if params.due_date_from:
            query = query.filter(TaskModel.due_date >= params.due_date_from)
        if params.due_date_to:
            query = query.filter(TaskModel.due_date <= params.due_date_to)

        tokens = _search_tokens(params.search)
        if params.search and params.search.strip() and not tokens:
            return []
        if tokens and all(t.isascii() for t in tokens):
            # Narrow in SQL, then keep only whole-token matches. SQLite only
            # folds ASCII case, so other tokens are matched in Python alone.
            query = query.filter(
                or_(
                    *[
                        or_(TaskModel.name.ilike(f"%{t}%"), TaskModel.description.ilike(f"%{t}%"))
                        for t in tokens
                    ]
                )
            )

        column = TASK_SORT_FIELDS[params.sort_field]
        direction = desc if params.sort_order == SortOrder.DESC else asc
        ordering = [direction(column)]
        if params.sort_field != "createdAt":
            ordering.append(asc(TaskModel.created_at))

        tasks = query.order_by(*ordering).all()

        if tokens:
            tasks = [
                t
                for t in tasks
                if tokens & _search_tokens(f"{t.name} {t.description or ''}")
            ]
        return tasks

    def to_response(
        self,
        tasks: List[TaskModel],
        list_id: str,
        expand_authors: bool = False,
    ) -> List[Dict[str, Any]]:
        """Render tasks for callers: live custom fields and expanded users."""
        definitions = self.fields.definitions_by_id(list_id)
        user_ids = [uid for t in tasks for uid in t.assignees or []]
        if expand_authors:
            user_ids += [uid for t in tasks for uid in (t.created_by, t.updated_by)]
        users = expand_users(self.db, user_ids)

        rendered = []
        for task in tasks:
            data = task.to_dict()
            data["customFields"] = live_custom_fields(task.custom_fields, definitions)
            data["assignees"] = [users[uid] for uid in task.assignees or [] if uid in users]
            if expand_authors:
                data["createdBy"] = users.get(task.created_by, task.created_by)
                data["updatedBy"] = users.get(task.updated_by, task.updated_by)
            rendered.append(data)
        return rendered


class AttachmentService:
    """Service for files attached to tasks."""

    def __init__(
        self,
        db: Session,
        caller: CallerContext,
        blob_store: BlobStore,
        settings: Optional[Settings] = None,
    ):
        self.db = db
        self.caller = caller
        self.blob_store = blob_store
        self.settings = settings or get_settings()

    def _require_task(self, task_id: str) -> TaskModel:
        task = (
            self.db.query(TaskModel)
            .filter(
                TaskModel.id == task_id,
                TaskModel.workspace_id == self.caller.workspace_id,
            )
            .first()
        )
        if not task:
            raise NotFoundError("Task", task_id)
        return task

    def _scoped(self, task_id: str):
        return self.db.query(AttachmentModel).filter(
            AttachmentModel.task_id == task_id,
            AttachmentModel.workspace_id == self.caller.workspace_id,
        )

    def list(self, task_id: str) -> List[AttachmentModel]:
        self._require_task(task_id)
        return self._scoped(task_id).order_by(desc(AttachmentModel.created_at)).all()

    def get(self, task_id: str, attachment_id: str) -> AttachmentModel:
        self._require_task(task_id)
        attachment = self._scoped(task_id).filter(AttachmentModel.id == attachment_id).first()
        if not attachment:
            raise NotFoundError("Attachment", attachment_id)
        return attachment

    def validate_upload(self, filename: Optional[str], content_type: Optional[str], size: int) -> None:
        if not filename:
            raise ValidationError("No file provided", field="file")
        max_bytes = self.settings.max_upload_bytes
        if size > max_bytes:
            raise ValidationError(
                f"File size exceeds maximum limit of {max_bytes / 1024 / 1024:g}MB",
                field="file",
            )
        if content_type not in self.settings.allowed_upload_type_list:
            raise ValidationError(f"File type '{content_type}' is not allowed", field="file")

    def create(
        self,
        task_id: str,
        filename: Optional[str],
        content_type: Optional[str],
        data: bytes,
    ) -> AttachmentModel:
        """Upload the bytes to the blob store, then record the attachment."""
        self.validate_upload(filename, content_type, len(data))
        self._require_task(task_id)

        try:
            blob = self.blob_store.upload(data, filename, f"tasks/{task_id}")
        except Exception as e:
            logger.error("blob_upload_failed", task_id=task_id, error=str(e))
            raise InternalError("Failed to upload file") from e

        attachment = AttachmentModel(
            id=generate_ulid(),
            task_id=task_id,
            workspace_id=self.caller.workspace_id,
            name=filename.strip(),
            original_name=filename,
            url=blob.url,
            storage_id=blob.object_id,
            type=content_type,
            size=len(data),
            uploaded_by=self.caller.user_id,
            created_at=utc_now(),
        )
        try:
            self.db.add(attachment)
            self.db.commit()
        except Exception:
            self.db.rollback()
            self._purge_blob(blob.object_id)
            raise
        self.db.refresh(attachment)

        logger.info(
            "attachment_created",
            attachment_id=attachment.id,
            task_id=task_id,
            size=attachment.size,
        )
        return attachment

    def _purge_blob(self, object_id: str) -> bool:
        """Best-effort blob removal; failures are logged, never raised."""
        try:
            removed = self.blob_store.delete(object_id)
        except Exception as e:
            logger.warning("blob_delete_failed", object_id=object_id, error=str(e))
            return False
        if not removed:
            logger.warning("blob_delete_failed", object_id=object_id)
        return removed

    def delete(self, task_id: str, attachment_id: str) -> bool:
        """Remove the blob (best effort) and then the record.

        Returns whether the blob was removed; the record is removed either way.
        """
        attachment = self.get(task_id, attachment_id)
        blob_removed = self._purge_blob(attachment.storage_id)

        self.db.delete(attachment)
        self.db.commit()
        logger.info(
            "attachment_deleted",
            attachment_id=attachment_id,
            task_id=task_id,
            blob_removed=blob_removed,
        )
        return blob_removed

    def to_response(self, attachments: List[AttachmentModel]) -> List[Dict[str, Any]]:
        users = expand_users(self.db, [a.uploaded_by for a in attachments])
        rendered = []
        for attachment in attachments:
            data = attachment.to_dict()
            data["uploadedBy"] = users.get(attachment.uploaded_by, attachment.uploaded_by)
            rendered.append(data)
        return rendered
