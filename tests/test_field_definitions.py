"""
Tests for custom field definitions.

Service-level tests use the session fixture; the endpoint tests go through
/api/lists/{listId}/fields.
"""

import pytest

from workboard.tracker.errors import FieldShapeError, FieldValueError, NotFoundError
from workboard.tracker.field_definition import FieldDefinitionCreate, FieldDefinitionUpdate
from workboard.tracker.list import ListCreate
from workboard.tracker.services import FieldDefinitionService, ListService

DEPARTMENT = {
    "name": "Department",
    "type": "select",
    "options": [
        {"label": "Engineering", "value": "eng"},
        {"label": "Design", "value": "design"},
    ],
}


@pytest.fixture
def task_list(db, caller, workspace):
    return ListService(db, caller).create(ListCreate(name="Roadmap"))


@pytest.fixture
def fields(db, caller):
    return FieldDefinitionService(db, caller)


class TestFieldDefinitionService:
    def test_create_assigns_increasing_order(self, fields, task_list):
        first = fields.create(task_list.id, FieldDefinitionCreate(name="Notes", type="text"))
        second = fields.create(task_list.id, FieldDefinitionCreate(name="Points", type="number"))
        third = fields.create(task_list.id, FieldDefinitionCreate(**DEPARTMENT))

        assert [first.order, second.order, third.order] == [0, 1, 2]
        assert [f.id for f in fields.list(task_list.id)] == [first.id, second.id, third.id]

    def test_create_select_without_options_rejected(self, fields, task_list):
        with pytest.raises(FieldShapeError):
            fields.create(task_list.id, FieldDefinitionCreate(name="Team", type="select"))
        assert fields.list(task_list.id) == []

    def test_create_unknown_type_rejected(self, fields, task_list):
        with pytest.raises(FieldShapeError):
            fields.create(task_list.id, FieldDefinitionCreate(name="Hue", type="color"))

    def test_create_checks_default_value(self, fields, task_list):
        with pytest.raises(FieldValueError):
            fields.create(
                task_list.id,
                FieldDefinitionCreate(name="Points", type="number", default_value="lots"),
            )

    def test_create_on_missing_list(self, fields, workspace):
        with pytest.raises(NotFoundError):
            fields.create("missing-list", FieldDefinitionCreate(name="Notes", type="text"))

    def test_update_applies_only_supplied_keys(self, fields, task_list):
        field = fields.create(task_list.id, FieldDefinitionCreate(**DEPARTMENT))
        updated = fields.update(
            task_list.id, field.id, FieldDefinitionUpdate(name="Team", required=True)
        )
        assert updated.name == "Team"
        assert updated.required is True
        assert updated.type == "select"
        assert [o["value"] for o in updated.options] == ["eng", "design"]

    def test_retype_to_select_needs_options(self, fields, task_list):
        field = fields.create(task_list.id, FieldDefinitionCreate(name="Notes", type="text"))
        with pytest.raises(FieldShapeError):
            fields.update(task_list.id, field.id, FieldDefinitionUpdate(type="select"))
        assert fields.get(task_list.id, field.id).type == "text"

    def test_clearing_options_of_select_rejected(self, fields, task_list):
        field = fields.create(task_list.id, FieldDefinitionCreate(**DEPARTMENT))
        with pytest.raises(FieldShapeError):
            fields.update(task_list.id, field.id, FieldDefinitionUpdate(options=[]))

    def test_get_under_other_list_is_not_found(self, db, caller, fields, task_list):
        other = ListService(db, caller).create(ListCreate(name="Other"))
        field = fields.create(task_list.id, FieldDefinitionCreate(name="Notes", type="text"))
        with pytest.raises(NotFoundError):
            fields.get(other.id, field.id)

    def test_delete(self, fields, task_list):
        field = fields.create(task_list.id, FieldDefinitionCreate(name="Notes", type="text"))
        fields.delete(task_list.id, field.id)
        with pytest.raises(NotFoundError):
            fields.get(task_list.id, field.id)


class TestFieldEndpoints:
    def test_create_field(self, client, api_list):
        response = client.post(f"/api/lists/{api_list['id']}/fields", json=DEPARTMENT)
        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["data"]["type"] == "select"
        assert data["data"]["order"] == 0
        assert data["data"]["listId"] == api_list["id"]

    def test_create_select_without_options(self, client, api_list):
        response = client.post(
            f"/api/lists/{api_list['id']}/fields",
            json={"name": "Team", "type": "select"},
        )
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["code"] == "FIELD_SHAPE_ERROR"

    def test_update_and_delete_field(self, client, api_list):
        base = f"/api/lists/{api_list['id']}/fields"
        field_id = client.post(base, json={"name": "Notes", "type": "text"}).json()["data"]["id"]

        response = client.put(f"{base}/{field_id}", json={"name": "Comments"})
        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Comments"

        response = client.delete(f"{base}/{field_id}")
        assert response.status_code == 200
        assert response.json()["success"] is True

        response = client.get(f"{base}/{field_id}")
        assert response.status_code == 404

    def test_list_fields_of_missing_list(self, client, default_workspace):
        response = client.get("/api/lists/nope/fields")
        assert response.status_code == 404
        assert response.json()["error"] == "List not found"
