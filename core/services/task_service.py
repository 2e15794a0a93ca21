# =============================================================================
# core/services/task_service.py - Task Business Logic
# =============================================================================
# Task listing is the one place where access is wider than project scope: a
# caller sees every task of their projects plus any task assigned to them,
# even on projects they don't belong to.
#
# Listing flow:
#   accessible project ids ─┬─> tasks in those projects ─┐
#                           └─> tasks assigned to caller ─┴─> merge -> filter -> sort
# =============================================================================

import asyncio
import logging
from dataclasses import replace
from typing import Any

from app.exceptions import NotFoundError, ValidationFailedError
from core.models.profile import Caller
from core.models.task import TaskCreate, TaskPriority, TaskStatus, TaskUpdate
from core.services.authorization import (
    AccessTarget,
    Action,
    accessible_project_ids,
    authorize_project,
    ensure_allowed,
    load_project_target,
)
from lib.aggregations import filter_tasks, merge_tasks, sort_tasks
from lib.supabase_client import SupabaseClient
from lib.utils import utc_now_iso

logger = logging.getLogger(__name__)

TASK_WITH_RELATIONS = (
    "*, project:projects(id, title), "
    "assignee:profiles!assigned_to(id, full_name, email, avatar_url)"
)
TASK_DETAIL = (
    "*, project:projects(id, title, status), "
    "assignee:profiles!assigned_to(id, full_name, email, avatar_url), "
    "creator:profiles!created_by(id, full_name, email)"
)


class TaskService:
    """Service for task operations."""

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    async def _fetch_task(db: SupabaseClient, task_id: str, columns: str = "*") -> dict[str, Any]:
        client = await db.get_client()
        task = await db.fetch_one(
            client.table("tasks").select(columns).eq("id", task_id).limit(1),
            "fetch task",
        )
        if task is None:
            raise NotFoundError("Task", task_id)
        return task

    @staticmethod
    async def _task_target(db: SupabaseClient, task: dict[str, Any]) -> AccessTarget:
        """Project access facts plus the task's assignee and creator."""
        target = await load_project_target(db, task["project_id"])
        return replace(target, assignee_id=task.get("assigned_to"), creator_id=task.get("created_by"))

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @staticmethod
    async def list_tasks(
        db: SupabaseClient,
        caller: Caller,
        status: TaskStatus | None = None,
        priority: TaskPriority | None = None,
        assigned_to: str | None = None,
    ) -> list[dict[str, Any]]:
        """
        List the caller's tasks: every task in their projects plus tasks
        assigned to them anywhere.

        Filters apply after the merge; ordering is due date ascending with
        undated tasks last, then priority high to low.
        """
        client = await db.get_client()
        project_ids = await accessible_project_ids(db, caller.id)

        assigned_query = db.fetch_all(
            client.table("tasks").select(TASK_WITH_RELATIONS).eq("assigned_to", caller.id),
            "fetch assigned tasks",
        )
        if project_ids:
            project_tasks, assigned_tasks = await asyncio.gather(
                db.fetch_all(
                    client.table("tasks").select(TASK_WITH_RELATIONS).in_("project_id", project_ids),
                    "fetch project tasks",
                ),
                assigned_query,
            )
        else:
            project_tasks, assigned_tasks = [], await assigned_query

        tasks = merge_tasks(project_tasks, assigned_tasks)
        tasks = filter_tasks(
            tasks,
            status=status.value if status else None,
            priority=priority.value if priority else None,
            assigned_to=assigned_to,
        )
        return sort_tasks(tasks)

    @staticmethod
    async def list_project_tasks(db: SupabaseClient, caller: Caller, project_id: str) -> list[dict[str, Any]]:
        """List one project's tasks in due-date/priority order."""
        await authorize_project(db, caller, project_id, Action.READ_PROJECT)

        client = await db.get_client()
        tasks = await db.fetch_all(
            client.table("tasks").select(TASK_WITH_RELATIONS).eq("project_id", project_id),
            "fetch project tasks",
        )
        return sort_tasks(tasks)

    @staticmethod
    async def get_task(db: SupabaseClient, caller: Caller, task_id: str) -> dict[str, Any]:
        """
        Get a task with its project, assignee and creator.

        Raises:
            NotFoundError: If the task doesn't exist
            ForbiddenError: If the caller has neither project access nor the assignment
        """
        task = await TaskService._fetch_task(db, task_id, TASK_DETAIL)
        ensure_allowed(caller, Action.READ_TASK, await TaskService._task_target(db, task))
        return task

    @staticmethod
    async def assignable_users(db: SupabaseClient) -> list[dict[str, Any]]:
        """Profiles that tasks can be assigned to, alphabetically."""
        client = await db.get_client()
        return await db.fetch_all(
            client.table("profiles").select("id, full_name, email, role, department").order("full_name"),
            "fetch assignable users",
        )

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    @staticmethod
    async def create_task(db: SupabaseClient, caller: Caller, body: TaskCreate) -> dict[str, Any]:
        """
        Create a task in a project, stamped with the caller as creator.

        Raises:
            NotFoundError: If the project doesn't exist
            ForbiddenError: If the caller can't create tasks there
        """
        target = await load_project_target(db, body.project_id)
        ensure_allowed(caller, Action.CREATE_TASK, target)

        data = body.model_dump(mode="json", exclude_none=True)
        data["created_by"] = caller.id

        client = await db.get_client()
        task = await db.fetch_one(client.table("tasks").insert(data), "create task")
        if task is None:
            raise ValidationFailedError("Task could not be created")

        logger.info(f"Created task {task['id']} in project {body.project_id}")
        return task

    @staticmethod
    async def update_task(
        db: SupabaseClient,
        caller: Caller,
        task_id: str,
        body: TaskUpdate,
    ) -> dict[str, Any]:
        """Update a task (project members or the assignee)."""
        task = await TaskService._fetch_task(db, task_id)
        ensure_allowed(caller, Action.UPDATE_TASK, await TaskService._task_target(db, task))

        updates = body.model_dump(mode="json", exclude_unset=True)
        if not updates:
            raise ValidationFailedError("No fields to update")
        updates["updated_at"] = utc_now_iso()

        client = await db.get_client()
        updated = await db.fetch_one(
            client.table("tasks").update(updates).eq("id", task_id),
            "update task",
        )
        if updated is None:
            raise NotFoundError("Task", task_id)
        return updated

    @staticmethod
    async def delete_task(db: SupabaseClient, caller: Caller, task_id: str) -> None:
        """Delete a task (its creator or an admin)."""
        task = await TaskService._fetch_task(db, task_id)
        ensure_allowed(caller, Action.DELETE_TASK, await TaskService._task_target(db, task))

        client = await db.get_client()
        deleted = await db.fetch_all(client.table("tasks").delete().eq("id", task_id), "delete task")
        if not deleted:
            raise NotFoundError("Task", task_id)
        logger.info(f"Deleted task {task_id}")
