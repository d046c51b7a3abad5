"""
Workboard API Routes.

REST endpoints for workspaces, lists, custom field definitions, tasks and
attachments. All endpoints are prefixed with /api and answer with the
``{success, data, message}`` envelope; errors are rendered by the handlers
in ``workboard.api``.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, File, Header, Query, UploadFile
from sqlalchemy.orm import Session

from ..config import Settings, get_settings
from ..db.base import get_db
from ..storage import BlobStore, get_blob_store
from .enums import SortOrder
from .field_definition import FieldDefinitionCreate, FieldDefinitionUpdate
from .list import ListCreate, ListUpdate
from .primitives import CallerContext
from .services import (
    AttachmentService,
    FieldDefinitionService,
    ListService,
    TaskService,
    WorkspaceService,
)
from .task import TaskCreate, TaskQuery, TaskUpdate
from .workspace import WorkspaceUpdate

router = APIRouter(prefix="/api", tags=["Workboard"])


def ok(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    """Wrap a payload in the success envelope."""
    body: Dict[str, Any] = {"success": True, "data": data}
    if message:
        body["message"] = message
    return body


def get_caller(
    x_workspace_id: Optional[str] = Header(None),
    x_user_id: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> CallerContext:
    """Caller identity from headers, falling back to the configured defaults."""
    return CallerContext(
        workspace_id=x_workspace_id or settings.default_workspace_id,
        user_id=x_user_id or settings.default_user_id,
    )


def get_attachment_store(settings: Settings = Depends(get_settings)) -> BlobStore:
    return get_blob_store(settings.blob_store_uri, settings.blob_public_base_url)


# =============================================================================
# Workspace Endpoints
# =============================================================================


@router.get("/workspace")
async def get_workspace(
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    """Get the caller's workspace, creating it (and its owner) on first use."""
    service = WorkspaceService(db, caller)
    workspace, _ = service.get_or_create(
        user_email=settings.default_user_email,
        user_name=settings.default_user_name,
        workspace_name=settings.default_workspace_name,
    )
    return ok(workspace.to_dict())


@router.put("/workspace")
async def update_workspace(
    update: WorkspaceUpdate,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> Dict[str, Any]:
    """Update the workspace name, description or settings."""
    workspace = WorkspaceService(db, caller).update(update)
    return ok(workspace.to_dict(), "Workspace updated successfully")


# =============================================================================
# List Endpoints
# =============================================================================


@router.get("/lists")
async def list_lists(
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> Dict[str, Any]:
    """List the workspace's lists by position."""
    lists = ListService(db, caller).list()
    return ok([item.to_dict() for item in lists])


@router.post("/lists", status_code=201)
async def create_list(
    task_list: ListCreate,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> Dict[str, Any]:
    """Create a new List at the end of the workspace."""
    db_list = ListService(db, caller).create(task_list)
    return ok(db_list.to_dict(), "List created successfully")


@router.get("/lists/{list_id}")
async def get_list(
    list_id: str,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> Dict[str, Any]:
    """Get a List by ID."""
    return ok(ListService(db, caller).get(list_id).to_dict())


@router.put("/lists/{list_id}")
async def update_list(
    list_id: str,
    update: ListUpdate,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> Dict[str, Any]:
    """Update a List."""
    db_list = ListService(db, caller).update(list_id, update)
    return ok(db_list.to_dict(), "List updated successfully")


@router.delete("/lists/{list_id}")
async def delete_list(
    list_id: str,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> Dict[str, Any]:
    """Delete a List with its tasks and field definitions."""
    result = ListService(db, caller).delete(list_id)
    return ok(result.to_dict(), "List deleted successfully")


# =============================================================================
# Custom Field Endpoints
# =============================================================================


@router.get("/lists/{list_id}/fields")
async def list_fields(
    list_id: str,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> Dict[str, Any]:
    """List a List's field definitions by position."""
    fields = FieldDefinitionService(db, caller).list(list_id)
    return ok([f.to_dict() for f in fields])


@router.post("/lists/{list_id}/fields", status_code=201)
async def create_field(
    list_id: str,
    field: FieldDefinitionCreate,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> Dict[str, Any]:
    """Create a new field definition."""
    db_field = FieldDefinitionService(db, caller).create(list_id, field)
    return ok(db_field.to_dict(), "Custom field created successfully")


@router.get("/lists/{list_id}/fields/{field_id}")
async def get_field(
    list_id: str,
    field_id: str,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> Dict[str, Any]:
    return ok(FieldDefinitionService(db, caller).get(list_id, field_id).to_dict())


@router.put("/lists/{list_id}/fields/{field_id}")
async def update_field(
    list_id: str,
    field_id: str,
    update: FieldDefinitionUpdate,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> Dict[str, Any]:
    db_field = FieldDefinitionService(db, caller).update(list_id, field_id, update)
    return ok(db_field.to_dict(), "Custom field updated successfully")


@router.delete("/lists/{list_id}/fields/{field_id}")
async def delete_field(
    list_id: str,
    field_id: str,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> Dict[str, Any]:
    """Delete a field definition; task values referencing it stay stored."""
    FieldDefinitionService(db, caller).delete(list_id, field_id)
    return ok(message="Custom field deleted successfully")


# =============================================================================
# Task Endpoints
# =============================================================================


@router.get("/lists/{list_id}/tasks")
async def list_tasks(
    list_id: str,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    search: Optional[str] = None,
    due_date_from: Optional[datetime] = Query(None, alias="dueDateFrom"),
    due_date_to: Optional[datetime] = Query(None, alias="dueDateTo"),
    sort_field: str = Query("order", alias="sortField"),
    sort_order: SortOrder = Query(SortOrder.ASC, alias="sortOrder"),
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> Dict[str, Any]:
    """Query a List's tasks with filters and sorting."""
    params = TaskQuery(
        status=status,
        priority=priority,
        search=search,
        due_date_from=due_date_from,
        due_date_to=due_date_to,
        sort_field=sort_field,
        sort_order=sort_order,
    )
    service = TaskService(db, caller)
    tasks = service.query(list_id, params)
    return ok(service.to_response(tasks, list_id))


@router.post("/lists/{list_id}/tasks", status_code=201)
async def create_task(
    list_id: str,
    task: TaskCreate,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> Dict[str, Any]:
    """Create a new Task at the end of the List."""
    service = TaskService(db, caller)
    db_task = service.create(list_id, task)
    return ok(service.to_response([db_task], list_id)[0], "Task created successfully")


@router.get("/lists/{list_id}/tasks/{task_id}")
async def get_task(
    list_id: str,
    task_id: str,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> Dict[str, Any]:
    """Get a Task with assignees and authors expanded."""
    service = TaskService(db, caller)
    db_task = service.get(list_id, task_id)
    return ok(service.to_response([db_task], list_id, expand_authors=True)[0])


@router.put("/lists/{list_id}/tasks/{task_id}")
async def update_task(
    list_id: str,
    task_id: str,
    update: TaskUpdate,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> Dict[str, Any]:
    service = TaskService(db, caller)
    db_task = service.update(list_id, task_id, update)
    return ok(service.to_response([db_task], list_id)[0], "Task updated successfully")


@router.delete("/lists/{list_id}/tasks/{task_id}")
async def delete_task(
    list_id: str,
    task_id: str,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> Dict[str, Any]:
    TaskService(db, caller).delete(list_id, task_id)
    return ok(message="Task deleted successfully")


# =============================================================================
# Attachment Endpoints
# =============================================================================


@router.get("/tasks/{task_id}/attachments")
async def list_attachments(
    task_id: str,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
    store: BlobStore = Depends(get_attachment_store),
) -> Dict[str, Any]:
    """List a Task's attachments, newest first."""
    service = AttachmentService(db, caller, store)
    return ok(service.to_response(service.list(task_id)))


@router.post("/tasks/{task_id}/attachments", status_code=201)
async def upload_attachment(
    task_id: str,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
    store: BlobStore = Depends(get_attachment_store),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    """Upload a file and attach it to a Task."""
    service = AttachmentService(db, caller, store, settings)
    # Reject on the declared size before reading, and never buffer more
    # than one byte past the limit
    service.validate_upload(file.filename, file.content_type, file.size or 0)
    data = await file.read(settings.max_upload_bytes + 1)
    attachment = service.create(task_id, file.filename, file.content_type, data)
    return ok(service.to_response([attachment])[0], "File uploaded successfully")


@router.get("/tasks/{task_id}/attachments/{attachment_id}")
async def get_attachment(
    task_id: str,
    attachment_id: str,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
    store: BlobStore = Depends(get_attachment_store),
) -> Dict[str, Any]:
    service = AttachmentService(db, caller, store)
    return ok(service.to_response([service.get(task_id, attachment_id)])[0])


@router.delete("/tasks/{task_id}/attachments/{attachment_id}")
async def delete_attachment(
    task_id: str,
    attachment_id: str,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
    store: BlobStore = Depends(get_attachment_store),
) -> Dict[str, Any]:
    """Delete an attachment. A blob that cannot be removed is only logged."""
    service = AttachmentService(db, caller, store)
    blob_removed = service.delete(task_id, attachment_id)
    return ok({"blobRemoved": blob_removed}, "Attachment deleted successfully")
