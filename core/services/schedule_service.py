# =============================================================================
# core/services/schedule_service.py - Shoot Schedule Logic
# =============================================================================

import logging
from datetime import date, timedelta
from typing import Any

from app.exceptions import NotFoundError, ValidationFailedError
from core.models.profile import Caller
from core.models.schedule import ScheduleCreate, ScheduleUpdate
from core.services.authorization import Action, accessible_project_ids, authorize_project
from lib.supabase_client import SupabaseClient
from lib.utils import utc_now_iso

logger = logging.getLogger(__name__)

SCHEDULE_WITH_PROJECT = "*, project:projects(id, title, description)"


class ScheduleService:
    """
    Service for shoot schedule entries.

    Schedules are ordered by shoot date, then call time, everywhere.
    """

    @staticmethod
    async def _fetch_schedule(db: SupabaseClient, schedule_id: str, columns: str = "*") -> dict[str, Any]:
        client = await db.get_client()
        schedule = await db.fetch_one(
            client.table("schedules").select(columns).eq("id", schedule_id).limit(1),
            "fetch schedule",
        )
        if schedule is None:
            raise NotFoundError("Schedule", schedule_id)
        return schedule

    @staticmethod
    async def list_schedules(
        db: SupabaseClient,
        caller: Caller,
        project_id: str | None = None,
    ) -> list[dict[str, Any]]:
        """
        List schedules across the caller's projects, or for one project.
        """
        client = await db.get_client()
        query = client.table("schedules").select(SCHEDULE_WITH_PROJECT)

        if project_id:
            await authorize_project(db, caller, project_id, Action.READ_PROJECT)
            query = query.eq("project_id", project_id)
        else:
            project_ids = await accessible_project_ids(db, caller.id)
            if not project_ids:
                return []
            query = query.in_("project_id", project_ids)

        return await db.fetch_all(
            query.order("shoot_date").order("shoot_time"),
            "list schedules",
        )

    @staticmethod
    async def upcoming_schedules(
        db: SupabaseClient,
        caller: Caller,
        days: int = 30,
        limit: int | None = None,
        today: date | None = None,
    ) -> list[dict[str, Any]]:
        """
        Shoots from today through the next `days` days in the caller's projects.
        """
        project_ids = await accessible_project_ids(db, caller.id)
        if not project_ids:
            return []

        start = today or date.today()
        end = start + timedelta(days=days)

        client = await db.get_client()
        query = (
            client.table("schedules")
            .select(SCHEDULE_WITH_PROJECT)
            .in_("project_id", project_ids)
            .gte("shoot_date", start.isoformat())
            .lte("shoot_date", end.isoformat())
            .order("shoot_date")
            .order("shoot_time")
        )
        if limit:
            query = query.limit(limit)
        return await db.fetch_all(query, "fetch upcoming schedules")

    @staticmethod
    async def get_schedule(db: SupabaseClient, caller: Caller, schedule_id: str) -> dict[str, Any]:
        """Get one schedule entry with its project."""
        schedule = await ScheduleService._fetch_schedule(db, schedule_id, SCHEDULE_WITH_PROJECT)
        await authorize_project(db, caller, schedule["project_id"], Action.READ_PROJECT)
        return schedule

    @staticmethod
    async def create_schedule(db: SupabaseClient, caller: Caller, body: ScheduleCreate) -> dict[str, Any]:
        """Create a schedule entry in a project the caller can write to."""
        await authorize_project(db, caller, body.project_id, Action.WRITE_PROJECT)

        data = body.model_dump(mode="json", exclude_none=True)
        data["created_by"] = caller.id

        client = await db.get_client()
        schedule = await db.fetch_one(client.table("schedules").insert(data), "create schedule")
        if schedule is None:
            raise ValidationFailedError("Schedule could not be created")

        logger.info(f"Created schedule {schedule['id']} for {body.shoot_date} in project {body.project_id}")
        return schedule

    @staticmethod
    async def update_schedule(
        db: SupabaseClient,
        caller: Caller,
        schedule_id: str,
        body: ScheduleUpdate,
    ) -> dict[str, Any]:
        schedule = await ScheduleService._fetch_schedule(db, schedule_id)
        await authorize_project(db, caller, schedule["project_id"], Action.WRITE_PROJECT)

        updates = body.model_dump(mode="json", exclude_unset=True)
        if not updates:
            raise ValidationFailedError("No fields to update")
        updates["updated_at"] = utc_now_iso()

        client = await db.get_client()
        updated = await db.fetch_one(
            client.table("schedules").update(updates).eq("id", schedule_id),
            "update schedule",
        )
        if updated is None:
            raise NotFoundError("Schedule", schedule_id)
        return updated

    @staticmethod
    async def delete_schedule(db: SupabaseClient, caller: Caller, schedule_id: str) -> None:
        schedule = await ScheduleService._fetch_schedule(db, schedule_id)
        await authorize_project(db, caller, schedule["project_id"], Action.WRITE_PROJECT)

        client = await db.get_client()
        deleted = await db.fetch_all(
            client.table("schedules").delete().eq("id", schedule_id),
            "delete schedule",
        )
        if not deleted:
            raise NotFoundError("Schedule", schedule_id)
        logger.info(f"Deleted schedule {schedule_id}")
