# =============================================================================
# core/services/dashboard_service.py - Dashboard Aggregates
# =============================================================================
# Every dashboard view is scoped to the caller: projects they created or are
# a member of, plus (for task views) tasks assigned to them anywhere. Rows are
# fetched with concurrent lookups and reduced by the pure helpers in
# lib.aggregations.
# =============================================================================

import asyncio
import logging
from datetime import date
from typing import Any

from core.models.profile import Caller
from core.models.project import ACTIVE_PROJECT_STATUSES
from core.models.task import TaskStatus
from core.services.authorization import accessible_project_ids
from lib.aggregations import (
    count_projects_by_status,
    count_tasks_by_status,
    merge_tasks,
    project_budget_rows,
    recent_activity,
    spending_by_category,
)
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)


class DashboardService:
    """Read-only aggregates for the caller's dashboard."""

    # -------------------------------------------------------------------------
    # Scoped Fetches
    # -------------------------------------------------------------------------

    @staticmethod
    async def _projects(db: SupabaseClient, project_ids: list[str], columns: str) -> list[dict[str, Any]]:
        if not project_ids:
            return []
        client = await db.get_client()
        return await db.fetch_all(
            client.table("projects").select(columns).in_("id", project_ids),
            "fetch dashboard projects",
        )

    @staticmethod
    async def _expenses(db: SupabaseClient, project_ids: list[str], columns: str) -> list[dict[str, Any]]:
        if not project_ids:
            return []
        client = await db.get_client()
        return await db.fetch_all(
            client.table("expenses").select(columns).in_("project_id", project_ids),
            "fetch dashboard expenses",
        )

    @staticmethod
    async def _tasks(db: SupabaseClient, caller: Caller, project_ids: list[str]) -> list[dict[str, Any]]:
        """Tasks in the caller's projects merged with tasks assigned to them."""
        client = await db.get_client()

        async def project_tasks() -> list[dict[str, Any]]:
            if not project_ids:
                return []
            return await db.fetch_all(
                client.table("tasks").select("id, status").in_("project_id", project_ids),
                "fetch dashboard project tasks",
            )

        in_projects, assigned = await asyncio.gather(
            project_tasks(),
            db.fetch_all(
                client.table("tasks").select("id, status").eq("assigned_to", caller.id),
                "fetch dashboard assigned tasks",
            ),
        )
        return merge_tasks(in_projects, assigned)

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    @staticmethod
    async def stats(db: SupabaseClient, caller: Caller) -> dict[str, Any]:
        """Headline counts for the caller's projects, tasks and spending."""
        project_ids = await accessible_project_ids(db, caller.id)
        projects, tasks, expenses = await asyncio.gather(
            DashboardService._projects(db, project_ids, "id, status"),
            DashboardService._tasks(db, caller, project_ids),
            DashboardService._expenses(db, project_ids, "amount"),
        )

        stats = {
            "total_projects": len(projects),
            "active_projects": sum(1 for p in projects if p.get("status") in ACTIVE_PROJECT_STATUSES),
            "total_tasks": len(tasks),
            "completed_tasks": sum(1 for t in tasks if t.get("status") == TaskStatus.DONE.value),
            "in_progress_tasks": sum(1 for t in tasks if t.get("status") == TaskStatus.IN_PROGRESS.value),
            "total_expenses": sum(float(e.get("amount") or 0) for e in expenses),
        }
        logger.debug(f"Dashboard stats for {caller.id}: {stats}")
        return stats

    @staticmethod
    async def recent_tasks(db: SupabaseClient, caller: Caller, limit: int = 5) -> list[dict[str, Any]]:
        """Newest tasks the caller created or is assigned to."""
        client = await db.get_client()
        return await db.fetch_all(
            client.table("tasks")
            .select("*, project:projects(title), assignee:profiles!assigned_to(full_name)")
            .or_(f"assigned_to.eq.{caller.id},created_by.eq.{caller.id}")
            .order("created_at", desc=True)
            .limit(limit),
            "fetch recent tasks",
        )

    @staticmethod
    async def upcoming_schedules(
        db: SupabaseClient,
        caller: Caller,
        limit: int = 5,
        today: date | None = None,
    ) -> list[dict[str, Any]]:
        """The next shoots (today onwards) across the caller's projects."""
        project_ids = await accessible_project_ids(db, caller.id)
        if not project_ids:
            return []

        client = await db.get_client()
        return await db.fetch_all(
            client.table("schedules")
            .select("*, project:projects(title)")
            .in_("project_id", project_ids)
            .gte("shoot_date", (today or date.today()).isoformat())
            .order("shoot_date")
            .order("shoot_time")
            .limit(limit),
            "fetch upcoming schedules",
        )

    @staticmethod
    async def budget(db: SupabaseClient, caller: Caller) -> list[dict[str, Any]]:
        """Budget vs spent for each of the caller's projects that has a budget."""
        project_ids = await accessible_project_ids(db, caller.id)
        projects, expenses = await asyncio.gather(
            DashboardService._projects(db, project_ids, "id, title, budget"),
            DashboardService._expenses(db, project_ids, "project_id, amount"),
        )
        return project_budget_rows(projects, expenses)

    @staticmethod
    async def expenses_by_category(db: SupabaseClient, caller: Caller) -> list[dict[str, Any]]:
        project_ids = await accessible_project_ids(db, caller.id)
        expenses = await DashboardService._expenses(db, project_ids, "category, amount")
        return spending_by_category(expenses)

    @staticmethod
    async def tasks_by_status(db: SupabaseClient, caller: Caller) -> list[dict[str, Any]]:
        project_ids = await accessible_project_ids(db, caller.id)
        tasks = await DashboardService._tasks(db, caller, project_ids)
        return count_tasks_by_status(tasks)

    @staticmethod
    async def projects_by_status(db: SupabaseClient, caller: Caller) -> list[dict[str, Any]]:
        project_ids = await accessible_project_ids(db, caller.id)
        projects = await DashboardService._projects(db, project_ids, "id, status")
        return count_projects_by_status(projects)

    @staticmethod
    async def activity(db: SupabaseClient, caller: Caller, limit: int = 10) -> list[dict[str, Any]]:
        """
        Recent task, expense and schedule creations in the caller's projects.

        Each source contributes at most `limit` rows; the merged feed is cut
        back to `limit`, newest first.
        """
        project_ids = await accessible_project_ids(db, caller.id)
        if not project_ids:
            return []

        client = await db.get_client()

        def recent(table: str, columns: str):
            return db.fetch_all(
                client.table(table)
                .select(columns)
                .in_("project_id", project_ids)
                .order("created_at", desc=True)
                .limit(limit),
                f"fetch recent {table}",
            )

        tasks, expenses, schedules = await asyncio.gather(
            recent("tasks", "id, title, created_at, project:projects(title), creator:profiles!created_by(full_name)"),
            recent(
                "expenses",
                "id, description, amount, created_at, project:projects(title), creator:profiles!created_by(full_name)",
            ),
            recent(
                "schedules",
                "id, scene_number, shoot_date, created_at, project:projects(title), creator:profiles!created_by(full_name)",
            ),
        )
        return recent_activity(tasks, expenses, schedules, limit)
