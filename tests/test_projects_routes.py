# =============================================================================
# tests/test_projects_routes.py - Project Endpoint Tests
# =============================================================================
# This module contains tests for:
# - Project updates limited to the owner and admins
# - Crew management limited to the owner and admins
# - Read access for ordinary members
# =============================================================================

from tests.conftest import CREW_ID, OTHER_CREW_ID, PROJECT_ID

OWNER_ONLY_MESSAGE = "Only the project owner or an admin can manage this project"


def _project(fake_supabase) -> dict:
    return next(p for p in fake_supabase.rows("projects") if p["id"] == PROJECT_ID)


class TestProjectUpdates:
    """Test PATCH /api/v1/projects/{id}."""

    def test_member_cannot_change_budget(self, make_client, crew, fake_supabase):
        response = make_client(crew).patch(f"/api/v1/projects/{PROJECT_ID}", json={"budget": 1})

        assert response.status_code == 403
        assert response.json() == {"error": OWNER_ONLY_MESSAGE, "code": "FORBIDDEN"}
        assert _project(fake_supabase)["budget"] == 100000

    def test_owner_changes_budget(self, make_client, head, fake_supabase):
        response = make_client(head).patch(f"/api/v1/projects/{PROJECT_ID}", json={"budget": 250000})

        assert response.status_code == 200
        assert response.json()["budget"] == 250000
        assert _project(fake_supabase)["budget"] == 250000

    def test_admin_changes_status(self, make_client, admin):
        response = make_client(admin).patch(f"/api/v1/projects/{PROJECT_ID}", json={"status": "completed"})

        assert response.status_code == 200
        assert response.json()["status"] == "completed"

    def test_member_can_still_read(self, make_client, crew):
        response = make_client(crew).get(f"/api/v1/projects/{PROJECT_ID}/members")

        assert response.status_code == 200
        assert [m["user_id"] for m in response.json()] == [CREW_ID]


class TestCrewManagement:
    """Test /api/v1/projects/{id}/members writes."""

    def test_member_cannot_add_crew(self, make_client, crew, fake_supabase):
        response = make_client(crew).post(
            f"/api/v1/projects/{PROJECT_ID}/members", json={"user_id": OTHER_CREW_ID}
        )

        assert response.status_code == 403
        assert len(fake_supabase.rows("project_members")) == 1

    def test_owner_adds_crew(self, make_client, head, fake_supabase):
        response = make_client(head).post(
            f"/api/v1/projects/{PROJECT_ID}/members", json={"user_id": OTHER_CREW_ID, "role": "Gaffer"}
        )

        assert response.status_code == 201
        assert {m["user_id"] for m in fake_supabase.rows("project_members")} == {CREW_ID, OTHER_CREW_ID}

    def test_member_cannot_relabel_or_remove_crew(self, make_client, crew, fake_supabase):
        client = make_client(crew)

        relabel = client.patch(
            f"/api/v1/projects/{PROJECT_ID}/members/{CREW_ID}", json={"role": "Project Manager"}
        )
        remove = client.delete(f"/api/v1/projects/{PROJECT_ID}/members/{CREW_ID}")

        assert relabel.status_code == 403
        assert remove.status_code == 403
        assert fake_supabase.rows("project_members")[0]["role"] == "Camera Operator"

    def test_owner_removes_crew(self, make_client, head, fake_supabase):
        response = make_client(head).delete(f"/api/v1/projects/{PROJECT_ID}/members/{CREW_ID}")

        assert response.status_code == 200
        assert fake_supabase.rows("project_members") == []
