# =============================================================================
# tests/test_task_service.py - Task Service Tests
# =============================================================================
# This module contains tests for:
# - Task listing scope (project tasks plus direct assignments)
# - Creation rights and creator stamping
# - Assignee updates and creator-only deletion
# =============================================================================

import pytest

from app.exceptions import ForbiddenError, NotFoundError, ValidationFailedError
from core.models.task import TaskCreate, TaskStatus, TaskUpdate
from core.services.task_service import TaskService
from tests.conftest import HEAD_ID, OTHER_CREW_ID, OTHER_PROJECT_ID, PROJECT_ID

pytestmark = pytest.mark.asyncio


@pytest.fixture
def seeded_tasks(fake_supabase):
    """Two tasks on the shared project and one on a project nobody here belongs to."""
    fake_supabase.add("projects", {"id": OTHER_PROJECT_ID, "title": "Elsewhere", "created_by": "stranger"})
    fake_supabase.add("tasks", {
        "id": "task-undated", "project_id": PROJECT_ID, "title": "Scout", "priority": "high",
        "status": "todo", "due_date": None, "created_by": HEAD_ID,
    })
    fake_supabase.add("tasks", {
        "id": "task-dated", "project_id": PROJECT_ID, "title": "Permits", "priority": "low",
        "status": "in_progress", "due_date": "2026-11-01", "created_by": HEAD_ID,
    })
    fake_supabase.add("tasks", {
        "id": "task-elsewhere", "project_id": OTHER_PROJECT_ID, "title": "Drive van", "priority": "medium",
        "status": "todo", "due_date": "2026-10-30", "assigned_to": OTHER_CREW_ID, "created_by": "stranger",
    })
    return fake_supabase


# =============================================================================
# Listing
# =============================================================================

class TestListTasks:
    """Test task listing scope, filters and ordering."""

    async def test_member_sees_project_tasks_in_order(self, db, crew, seeded_tasks):
        tasks = await TaskService.list_tasks(db, crew)

        assert [t["id"] for t in tasks] == ["task-dated", "task-undated"]

    async def test_assignee_sees_task_outside_their_projects(self, db, outsider, seeded_tasks):
        tasks = await TaskService.list_tasks(db, outsider)

        assert [t["id"] for t in tasks] == ["task-elsewhere"]

    async def test_status_filter_applies_after_merge(self, db, head, seeded_tasks):
        tasks = await TaskService.list_tasks(db, head, status=TaskStatus.TODO)

        assert [t["id"] for t in tasks] == ["task-undated"]

    async def test_outsider_cannot_list_project_tasks(self, db, outsider, seeded_tasks):
        with pytest.raises(ForbiddenError):
            await TaskService.list_project_tasks(db, outsider, PROJECT_ID)

    async def test_assignee_can_read_task(self, db, outsider, seeded_tasks):
        task = await TaskService.get_task(db, outsider, "task-elsewhere")

        assert task["title"] == "Drive van"

    async def test_missing_task_is_not_found(self, db, crew, seeded_tasks):
        with pytest.raises(NotFoundError):
            await TaskService.get_task(db, crew, "nope")


# =============================================================================
# Writes
# =============================================================================

class TestTaskWrites:
    """Test creation, updates and deletion rules."""

    async def test_owner_creates_task_stamped_as_creator(self, db, head, fake_supabase):
        task = await TaskService.create_task(
            db, head, TaskCreate(project_id=PROJECT_ID, title="Book generator", due_date="2026-11-02")
        )

        assert task["created_by"] == HEAD_ID
        assert task["status"] == "todo"
        assert task["priority"] == "medium"
        assert task["due_date"] == "2026-11-02"

    async def test_crew_cannot_create_task(self, db, crew):
        with pytest.raises(ForbiddenError):
            await TaskService.create_task(db, crew, TaskCreate(project_id=PROJECT_ID, title="Nope"))

    async def test_assignee_updates_status(self, db, outsider, seeded_tasks):
        updated = await TaskService.update_task(
            db, outsider, "task-elsewhere", TaskUpdate(status=TaskStatus.DONE)
        )

        assert updated["status"] == "done"
        assert updated["updated_at"]

    async def test_empty_update_is_rejected(self, db, head, seeded_tasks):
        with pytest.raises(ValidationFailedError):
            await TaskService.update_task(db, head, "task-dated", TaskUpdate())

    async def test_member_who_did_not_create_cannot_delete(self, db, crew, seeded_tasks):
        with pytest.raises(ForbiddenError):
            await TaskService.delete_task(db, crew, "task-dated")

        assert any(t["id"] == "task-dated" for t in seeded_tasks.rows("tasks"))

    async def test_creator_deletes_task(self, db, head, seeded_tasks):
        await TaskService.delete_task(db, head, "task-dated")

        assert all(t["id"] != "task-dated" for t in seeded_tasks.rows("tasks"))
