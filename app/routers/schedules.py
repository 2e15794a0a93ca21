# =============================================================================
# app/routers/schedules.py - Shooting Schedule Endpoints
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Path, Query, status

from app.auth import CallerDep
from app.dependencies import DatabaseDep
from core.models.schedule import ScheduleCreate, ScheduleUpdate
from core.services.schedule_service import ScheduleService

router = APIRouter()

ScheduleId = Annotated[str, Path(description="Schedule id")]


@router.get("/schedules")
async def list_schedules(
    caller: CallerDep,
    db: DatabaseDep,
    project_id: Annotated[str | None, Query(description="Limit to one project")] = None,
):
    """Schedules ordered by shoot date then time."""
    return await ScheduleService.list_schedules(db, caller, project_id=project_id)


@router.get("/schedules/upcoming")
async def upcoming_schedules(
    caller: CallerDep,
    db: DatabaseDep,
    days: Annotated[int, Query(ge=1, le=365, description="Look-ahead window in days")] = 30,
):
    return await ScheduleService.upcoming_schedules(db, caller, days=days)


@router.post("/schedules", status_code=status.HTTP_201_CREATED)
async def create_schedule(body: ScheduleCreate, caller: CallerDep, db: DatabaseDep):
    return await ScheduleService.create_schedule(db, caller, body)


@router.get("/schedules/{schedule_id}")
async def get_schedule(schedule_id: ScheduleId, caller: CallerDep, db: DatabaseDep):
    return await ScheduleService.get_schedule(db, caller, schedule_id)


@router.patch("/schedules/{schedule_id}")
async def update_schedule(schedule_id: ScheduleId, body: ScheduleUpdate, caller: CallerDep, db: DatabaseDep):
    return await ScheduleService.update_schedule(db, caller, schedule_id, body)


@router.delete("/schedules/{schedule_id}")
async def delete_schedule(schedule_id: ScheduleId, caller: CallerDep, db: DatabaseDep):
    await ScheduleService.delete_schedule(db, caller, schedule_id)
    return {"success": True, "message": "Schedule deleted successfully"}
