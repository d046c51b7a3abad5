"""
Tests for task attachments and the blob store behind them.
"""

import pytest
from starlette.datastructures import UploadFile as StarletteUploadFile

from workboard.api import app
from workboard.config import Settings, get_settings
from workboard.db.models import AttachmentModel
from workboard.storage import FileBlobStore, get_blob_store
from workboard.tracker.errors import InternalError, NotFoundError, ValidationError
from workboard.tracker.list import ListCreate
from workboard.tracker.routes import get_attachment_store
from workboard.tracker.services import AttachmentService, ListService, TaskService
from workboard.tracker.task import TaskCreate


class FailingDeleteStore(FileBlobStore):
    """Uploads work, deletes blow up."""

    def delete(self, object_id: str) -> bool:
        raise OSError("storage unavailable")


class FailingUploadStore(FileBlobStore):
    def upload(self, data, original_name, folder):
        raise OSError("storage unavailable")


@pytest.fixture
def task(db, caller, workspace):
    task_list = ListService(db, caller).create(ListCreate(name="Files"))
    return TaskService(db, caller).create(task_list.id, TaskCreate(name="With files"))


def _service(db, caller, store, **overrides):
    return AttachmentService(db, caller, store, Settings(**overrides))


class TestFileBlobStore:
    def test_upload_and_delete(self, blob_store):
        blob = blob_store.upload(b"hello", "../../etc/passwd", "tasks/t1")
        assert blob.object_id.startswith("tasks/t1/")
        assert blob.object_id.endswith("-passwd")
        assert (blob_store.root / blob.object_id).read_bytes() == b"hello"

        assert blob_store.delete(blob.object_id) is True
        assert blob_store.delete(blob.object_id) is False

    def test_public_base_url(self, tmp_path):
        store = FileBlobStore(tmp_path, public_base_url="https://files.example.com/")
        blob = store.upload(b"x", "report.pdf", "tasks/t1")
        assert blob.url == f"https://files.example.com/{blob.object_id}"

    def test_escape_rejected(self, blob_store):
        with pytest.raises(ValueError):
            blob_store.delete("../outside.txt")

    def test_factory(self, tmp_path):
        store = get_blob_store(f"file://{tmp_path}/blobs")
        assert isinstance(store, FileBlobStore)
        with pytest.raises(ValueError):
            get_blob_store("s3://bucket/prefix")


class TestAttachmentService:
    def test_create_and_list(self, db, caller, blob_store, task):
        service = _service(db, caller, blob_store)
        attachment = service.create(task.id, "notes.txt", "text/plain", b"hello")

        assert attachment.size == 5
        assert attachment.uploaded_by == "user-test"
        assert attachment.original_name == "notes.txt"
        assert (blob_store.root / attachment.storage_id).exists()
        assert [a.id for a in service.list(task.id)] == [attachment.id]

    def test_disallowed_type(self, db, caller, blob_store, task):
        service = _service(db, caller, blob_store)
        with pytest.raises(ValidationError):
            service.create(task.id, "run.exe", "application/x-msdownload", b"MZ")
        assert db.query(AttachmentModel).count() == 0

    def test_oversize(self, db, caller, blob_store, task):
        service = _service(db, caller, blob_store, max_upload_bytes=4)
        with pytest.raises(ValidationError) as exc_info:
            service.create(task.id, "notes.txt", "text/plain", b"hello")
        assert "exceeds" in exc_info.value.message

    def test_missing_filename(self, db, caller, blob_store, task):
        with pytest.raises(ValidationError):
            _service(db, caller, blob_store).create(task.id, "", "text/plain", b"x")

    def test_unknown_task(self, db, caller, blob_store, workspace):
        service = _service(db, caller, blob_store)
        with pytest.raises(NotFoundError):
            service.create("missing", "notes.txt", "text/plain", b"x")
        with pytest.raises(NotFoundError):
            service.list("missing")

    def test_upload_failure_writes_no_record(self, db, caller, tmp_path, task):
        service = _service(db, caller, FailingUploadStore(tmp_path))
        with pytest.raises(InternalError):
            service.create(task.id, "notes.txt", "text/plain", b"x")
        assert db.query(AttachmentModel).count() == 0

    def test_delete_survives_blob_failure(self, db, caller, tmp_path, task):
        service = _service(db, caller, FailingDeleteStore(tmp_path))
        attachment = service.create(task.id, "notes.txt", "text/plain", b"x")

        assert service.delete(task.id, attachment.id) is False
        assert db.query(AttachmentModel).count() == 0

    def test_attachments_outlive_their_task(self, db, caller, blob_store, task):
        service = _service(db, caller, blob_store)
        service.create(task.id, "notes.txt", "text/plain", b"x")

        TaskService(db, caller).delete(task.list_id, task.id)
        assert db.query(AttachmentModel).filter(AttachmentModel.task_id == task.id).count() == 1


class TestAttachmentEndpoints:
    @pytest.fixture
    def task_id(self, client, api_list):
        response = client.post(f"/api/lists/{api_list['id']}/tasks", json={"name": "Docs"})
        return response.json()["data"]["id"]

    def test_upload_list_delete(self, client, task_id):
        base = f"/api/tasks/{task_id}/attachments"
        response = client.post(base, files={"file": ("notes.txt", b"hello", "text/plain")})
        assert response.status_code == 201
        attachment = response.json()["data"]
        assert attachment["type"] == "text/plain"
        assert attachment["size"] == 5
        assert attachment["uploadedBy"]["id"] == "default-user"

        response = client.get(base)
        assert [a["id"] for a in response.json()["data"]] == [attachment["id"]]

        response = client.delete(f"{base}/{attachment['id']}")
        assert response.status_code == 200
        assert response.json()["data"]["blobRemoved"] is True
        assert client.get(f"{base}/{attachment['id']}").status_code == 404

    def test_disallowed_type(self, client, task_id):
        response = client.post(
            f"/api/tasks/{task_id}/attachments",
            files={"file": ("tool.exe", b"MZ", "application/x-msdownload")},
        )
        assert response.status_code == 400
        assert "not allowed" in response.json()["error"]

    def test_missing_file_part(self, client, task_id):
        response = client.post(f"/api/tasks/{task_id}/attachments")
        assert response.status_code == 400

    def test_unknown_task(self, client, default_workspace):
        response = client.get("/api/tasks/missing/attachments")
        assert response.status_code == 404

    def test_blob_delete_failure_still_deletes_record(self, client, task_id, tmp_path):
        app.dependency_overrides[get_attachment_store] = lambda: FailingDeleteStore(
            tmp_path / "flaky"
        )
        base = f"/api/tasks/{task_id}/attachments"
        attachment = client.post(
            base, files={"file": ("notes.txt", b"hello", "text/plain")}
        ).json()["data"]

        response = client.delete(f"{base}/{attachment['id']}")
        assert response.status_code == 200
        assert response.json()["data"]["blobRemoved"] is False
        assert client.get(base).json()["data"] == []

    def test_oversize_upload_rejected(self, client, task_id):
        app.dependency_overrides[get_settings] = lambda: Settings(max_upload_bytes=4)
        base = f"/api/tasks/{task_id}/attachments"

        response = client.post(base, files={"file": ("notes.txt", b"0123456789", "text/plain")})
        assert response.status_code == 400
        assert "exceeds" in response.json()["error"]
        assert client.get(base).json()["data"] == []

    def test_upload_read_is_capped_at_the_limit(self, client, task_id, monkeypatch):
        app.dependency_overrides[get_settings] = lambda: Settings(max_upload_bytes=4)
        requested = []
        original_read = StarletteUploadFile.read

        async def recording_read(self, size=-1):
            requested.append(size)
            return await original_read(self, size)

        monkeypatch.setattr(StarletteUploadFile, "read", recording_read)
        response = client.post(
            f"/api/tasks/{task_id}/attachments",
            files={"file": ("abc.txt", b"abc", "text/plain")},
        )
        assert response.status_code == 201
        assert requested
        assert all(size == 5 for size in requested)
