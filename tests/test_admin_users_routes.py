# =============================================================================
# tests/test_admin_users_routes.py - Admin User Endpoint Tests
# =============================================================================
# This module contains tests for:
# - Admin-only access (checked before body validation)
# - Account creation through the identity provider
# - Update warnings and deletion invariants
# - Error body shape {"error", "code"}
# =============================================================================

from tests.conftest import ADMIN_ID, CREW_ID, HEAD_ID

NEW_USER = {
    "email": "grip@crewdesk.test",
    "password": "s3cret-pass",
    "fullName": "Njeri Grip",
    "role": "crew",
}


class TestCreateUser:
    """Test POST /api/v1/admin/users."""

    def test_non_admin_is_forbidden_even_with_bad_body(self, make_client, head):
        response = make_client(head).post("/api/v1/admin/users", json={})

        assert response.status_code == 403
        assert response.json() == {"error": "Forbidden - Admin access required", "code": "FORBIDDEN"}

    def test_missing_fields(self, make_client, admin):
        response = make_client(admin).post("/api/v1/admin/users", json={"email": "x@y.z"})

        assert response.status_code == 400
        assert response.json()["error"] == "Missing required fields: email, password, fullName, role"

    def test_invalid_role(self, make_client, admin):
        response = make_client(admin).post("/api/v1/admin/users", json={**NEW_USER, "role": "producer"})

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_creates_identity_and_profile(self, make_client, admin, fake_supabase):
        response = make_client(admin).post("/api/v1/admin/users", json=NEW_USER)

        assert response.status_code == 200
        user = response.json()["user"]
        assert user["full_name"] == "Njeri Grip"
        assert user["role"] == "crew"
        identity = fake_supabase.auth.admin.users[user["id"]]
        assert identity["email_confirm"] is True
        assert identity["user_metadata"] == {"full_name": "Njeri Grip", "role": "crew"}

    def test_identity_failure_is_generic_500(self, make_client, admin, fake_supabase):
        fake_supabase.auth.admin.fail = True

        response = make_client(admin).post("/api/v1/admin/users", json=NEW_USER)

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to create user", "code": "UPSTREAM_FAILURE"}


class TestUpdateAndDeleteUser:
    """Test PATCH and DELETE /api/v1/admin/users/{id}."""

    def test_update_requires_a_field(self, make_client, admin):
        response = make_client(admin).patch(f"/api/v1/admin/users/{CREW_ID}", json={})

        assert response.status_code == 400

    def test_update_role(self, make_client, admin, fake_supabase):
        response = make_client(admin).patch(
            f"/api/v1/admin/users/{CREW_ID}", json={"role": "department_head"}
        )

        assert response.status_code == 200
        assert response.json()["user"]["role"] == "department_head"

    def test_update_with_invalid_role(self, make_client, admin, fake_supabase):
        response = make_client(admin).patch(f"/api/v1/admin/users/{CREW_ID}", json={"role": "producer"})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid role. Must be: admin, department_head, or crew"
        crew_row = next(p for p in fake_supabase.rows("profiles") if p["id"] == CREW_ID)
        assert crew_row["role"] == "crew"

    def test_email_change_failure_keeps_profile_and_warns(self, make_client, admin, fake_supabase):
        fake_supabase.auth.admin.fail = True

        response = make_client(admin).patch(
            f"/api/v1/admin/users/{CREW_ID}", json={"email": "achieng.new@crewdesk.test"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["user"]["email"] == "achieng.new@crewdesk.test"
        assert body["warning"] == "Profile updated but email change failed. User may need to re-verify."

    def test_email_change_reaches_identity_provider(self, make_client, admin, fake_supabase):
        response = make_client(admin).patch(
            f"/api/v1/admin/users/{CREW_ID}", json={"email": "achieng.new@crewdesk.test"}
        )

        assert response.status_code == 200
        assert "warning" not in response.json()
        assert fake_supabase.auth.admin.users[CREW_ID] == {"email": "achieng.new@crewdesk.test"}

    def test_update_unknown_user(self, make_client, admin):
        response = make_client(admin).patch("/api/v1/admin/users/missing", json={"full_name": "X"})

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    def test_admin_cannot_delete_self(self, make_client, admin):
        response = make_client(admin).delete(f"/api/v1/admin/users/{ADMIN_ID}")

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_OPERATION"

    def test_delete_user(self, make_client, admin, fake_supabase):
        fake_supabase.auth.admin.users[HEAD_ID] = {"email": "otieno@crewdesk.test"}

        response = make_client(admin).delete(f"/api/v1/admin/users/{HEAD_ID}")

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "User deleted successfully"}
        assert HEAD_ID not in fake_supabase.auth.admin.users

    def test_admin_can_be_deleted_once_a_second_admin_exists(self, make_client, admin, fake_supabase):
        fake_supabase.add("profiles", {"id": "admin-b", "full_name": "Muthoni Admin", "role": "admin"})
        fake_supabase.auth.admin.users["admin-b"] = {"email": "muthoni@crewdesk.test"}

        response = make_client(admin).delete("/api/v1/admin/users/admin-b")

        assert response.status_code == 200
        assert "admin-b" not in fake_supabase.auth.admin.users

    def test_delete_unknown_user(self, make_client, admin):
        response = make_client(admin).delete("/api/v1/admin/users/missing")

        assert response.status_code == 404
