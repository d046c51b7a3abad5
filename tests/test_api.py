"""
Tests for the application shell: envelope, error mapping, middleware.
"""

from workboard.middleware import REQUEST_ID_HEADER


class TestSystemEndpoints:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_version(self, client):
        response = client.get("/version")
        assert response.status_code == 200
        assert "version" in response.json()


class TestEnvelope:
    def test_success_envelope(self, client, default_workspace):
        body = client.get("/api/lists").json()
        assert body == {"success": True, "data": []}

    def test_not_found_envelope(self, client, default_workspace):
        response = client.get("/api/lists/does-not-exist")
        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "error": "List not found",
            "code": "NOT_FOUND",
        }

    def test_unknown_body_keys_rejected(self, client, default_workspace):
        response = client.post("/api/lists", json={"name": "X", "colour": "red"})
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert "colour" in body["error"]

    def test_validation_error_names_field(self, client, default_workspace):
        response = client.post("/api/lists", json={"name": "   "})
        assert response.status_code == 400
        assert response.json()["field"] == "name"


class TestMiddleware:
    def test_request_id_generated(self, client):
        response = client.get("/health")
        assert response.headers[REQUEST_ID_HEADER]
        assert "X-Process-Time" in response.headers

    def test_request_id_echoed(self, client):
        response = client.get("/health", headers={REQUEST_ID_HEADER: "req-123"})
        assert response.headers[REQUEST_ID_HEADER] == "req-123"
