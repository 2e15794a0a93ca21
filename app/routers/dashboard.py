# =============================================================================
# app/routers/dashboard.py - Dashboard Endpoints
# =============================================================================
# Read-only rollups over the caller's projects, tasks, schedules and
# expenses. Every endpoint is scoped to what the caller can see.
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Query

from app.auth import CallerDep
from app.dependencies import DatabaseDep
from core.services.dashboard_service import DashboardService

router = APIRouter()


@router.get("/dashboard/stats")
async def stats(caller: CallerDep, db: DatabaseDep):
    """Headline counts: active projects, tasks, budget and spend."""
    return await DashboardService.stats(db, caller)


@router.get("/dashboard/recent-tasks")
async def recent_tasks(
    caller: CallerDep,
    db: DatabaseDep,
    limit: Annotated[int, Query(ge=1, le=50)] = 5,
):
    return await DashboardService.recent_tasks(db, caller, limit=limit)


@router.get("/dashboard/upcoming-schedules")
async def upcoming_schedules(
    caller: CallerDep,
    db: DatabaseDep,
    limit: Annotated[int, Query(ge=1, le=50)] = 5,
):
    return await DashboardService.upcoming_schedules(db, caller, limit=limit)


@router.get("/dashboard/budget")
async def budget(caller: CallerDep, db: DatabaseDep):
    """Budget vs spend per project."""
    return await DashboardService.budget(db, caller)


@router.get("/dashboard/expenses-by-category")
async def expenses_by_category(caller: CallerDep, db: DatabaseDep):
    return await DashboardService.expenses_by_category(db, caller)


@router.get("/dashboard/tasks-by-status")
async def tasks_by_status(caller: CallerDep, db: DatabaseDep):
    return await DashboardService.tasks_by_status(db, caller)


@router.get("/dashboard/projects-by-status")
async def projects_by_status(caller: CallerDep, db: DatabaseDep):
    return await DashboardService.projects_by_status(db, caller)


@router.get("/dashboard/activity")
async def activity(
    caller: CallerDep,
    db: DatabaseDep,
    limit: Annotated[int, Query(ge=1, le=50)] = 10,
):
    """Latest tasks, expenses and schedules merged into one feed."""
    return await DashboardService.activity(db, caller, limit=limit)
