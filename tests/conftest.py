# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - Provides an in-memory Supabase double and callers for each role
# - Provides a TestClient with the database and caller overridden
# =============================================================================

import os

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")
os.environ.pop("AI_API_KEY", None)

import pytest
from fastapi.testclient import TestClient

from core.models.profile import Caller, Role
from lib.supabase_client import SupabaseClient
from tests.fakes import FakeSupabase

ADMIN_ID = "00000000-0000-0000-0000-000000000001"
HEAD_ID = "00000000-0000-0000-0000-000000000002"
CREW_ID = "00000000-0000-0000-0000-000000000003"
OTHER_CREW_ID = "00000000-0000-0000-0000-000000000004"
PROJECT_ID = "10000000-0000-0000-0000-000000000001"
OTHER_PROJECT_ID = "10000000-0000-0000-0000-000000000002"


# =============================================================================
# Database
# =============================================================================

@pytest.fixture
def fake_supabase():
    """
    A fake seeded with four profiles and one project.

    The department head owns the project; the crew member is on its crew.
    OTHER_CREW_ID belongs to no project.
    """
    fake = FakeSupabase()
    for user_id, name, role, department in [
        (ADMIN_ID, "Wanjiku Admin", "admin", "production"),
        (HEAD_ID, "Otieno Head", "department_head", "camera"),
        (CREW_ID, "Achieng Crew", "crew", "camera"),
        (OTHER_CREW_ID, "Kamau Crew", "crew", "sound"),
    ]:
        fake.add("profiles", {
            "id": user_id,
            "full_name": name,
            "email": f"{name.split()[0].lower()}@crewdesk.test",
            "role": role,
            "department": department,
            "avatar_url": None,
        })

    fake.add("projects", {
        "id": PROJECT_ID,
        "title": "Nairobi Nights",
        "description": "Feature film",
        "status": "production",
        "budget": 100000,
        "created_by": HEAD_ID,
    })
    fake.add("project_members", {"project_id": PROJECT_ID, "user_id": CREW_ID, "role": "Camera Operator"})
    return fake


@pytest.fixture
def db(fake_supabase):
    return SupabaseClient("https://test-project.supabase.co", "test-service-key", client=fake_supabase)


# =============================================================================
# Callers
# =============================================================================

@pytest.fixture
def admin():
    return Caller(id=ADMIN_ID, email="wanjiku@crewdesk.test", full_name="Wanjiku Admin", role=Role.ADMIN)


@pytest.fixture
def head():
    return Caller(
        id=HEAD_ID,
        email="otieno@crewdesk.test",
        full_name="Otieno Head",
        role=Role.DEPARTMENT_HEAD,
        department="camera",
    )


@pytest.fixture
def crew():
    return Caller(id=CREW_ID, email="achieng@crewdesk.test", full_name="Achieng Crew", role=Role.CREW)


@pytest.fixture
def outsider():
    return Caller(id=OTHER_CREW_ID, email="kamau@crewdesk.test", full_name="Kamau Crew", role=Role.CREW)


# =============================================================================
# HTTP
# =============================================================================

@pytest.fixture
def make_client(db):
    """
    Build a TestClient acting as the given caller.

    Example:
        client = make_client(admin)
        client.get("/api/v1/users")
    """
    from app.auth.dependencies import get_caller
    from app.dependencies import get_db
    from app.main import app

    def _make(caller: Caller) -> TestClient:
        app.dependency_overrides[get_db] = lambda: db
        app.dependency_overrides[get_caller] = lambda: caller
        return TestClient(app, raise_server_exceptions=False)

    yield _make
    app.dependency_overrides.clear()
