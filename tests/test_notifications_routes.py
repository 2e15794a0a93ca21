# =============================================================================
# tests/test_notifications_routes.py - HTTP Surface Tests
# =============================================================================
# This module contains tests for:
# - Notification listing and read-state endpoints
# - Health and root endpoints
# - Request validation and upstream failures mapped to {"error", "code"}
# - Upload documentation in the OpenAPI schema
# =============================================================================

from tests.conftest import CREW_ID, HEAD_ID, PROJECT_ID


class TestNotificationRoutes:
    """Test /api/v1/notifications."""

    def test_list_wraps_notifications(self, make_client, crew, fake_supabase):
        fake_supabase.add("notifications", {"id": "n1", "user_id": CREW_ID, "is_read": False, "title": "Hi"})
        fake_supabase.add("notifications", {"id": "n2", "user_id": HEAD_ID, "is_read": False, "title": "Not yours"})

        response = make_client(crew).get("/api/v1/notifications")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert [n["id"] for n in body["notifications"]] == ["n1"]

    def test_mark_all_read(self, make_client, crew, fake_supabase):
        fake_supabase.add("notifications", {"id": "n1", "user_id": CREW_ID, "is_read": False})

        response = make_client(crew).patch("/api/v1/notifications")

        assert response.status_code == 200
        assert fake_supabase.rows("notifications")[0]["is_read"] is True

    def test_mark_unknown_notification(self, make_client, crew):
        response = make_client(crew).patch("/api/v1/notifications/does-not-exist")

        assert response.status_code == 404
        assert response.json()["error"] == "Notification not found"


class TestApplicationSurface:
    """Test health checks and error mapping."""

    def test_root(self, make_client, crew):
        response = make_client(crew).get("/")

        assert response.json()["name"] == "CrewDesk API"

    def test_upload_docs_state_the_configured_limit(self, make_client, crew):
        schemas = make_client(crew).get("/openapi.json").json()["components"]["schemas"]

        upload_body = next(s for name, s in schemas.items() if name.startswith("Body_upload_file"))
        assert upload_body["properties"]["file"]["description"] == "Document to upload (image or PDF, max 5MB)"

    def test_health(self, make_client, crew):
        response = make_client(crew).get("/api/v1/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_body_validation_is_400(self, make_client, head):
        response = make_client(head).post("/api/v1/tasks", json={"project_id": PROJECT_ID})

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_database_failure_is_generic_500(self, make_client, crew, fake_supabase):
        fake_supabase.fail("notifications", "select")

        response = make_client(crew).get("/api/v1/notifications")

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error", "code": "UPSTREAM_FAILURE"}

    def test_expense_export_is_csv(self, make_client, head, fake_supabase):
        fake_supabase.add("expenses", {
            "project_id": PROJECT_ID,
            "description": "Dolly rental",
            "amount": 4500,
            "category": "equipment",
            "expense_date": "2026-10-01",
            "created_by": HEAD_ID,
        })

        response = make_client(head).get(f"/api/v1/projects/{PROJECT_ID}/expenses/export")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "attachment" in response.headers["content-disposition"]
        assert "Dolly rental" in response.text

    def test_crew_cannot_export(self, make_client, crew):
        response = make_client(crew).get(f"/api/v1/projects/{PROJECT_ID}/expenses/export")

        assert response.status_code == 403
