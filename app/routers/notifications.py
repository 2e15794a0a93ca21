# =============================================================================
# app/routers/notifications.py - Notification Endpoints
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Path, Query

from app.auth import CallerDep
from app.dependencies import DatabaseDep
from core.services.notification_service import NotificationService

router = APIRouter()


@router.get("/notifications")
async def list_notifications(
    caller: CallerDep,
    db: DatabaseDep,
    unread_only: Annotated[bool, Query(description="Only unread notifications")] = False,
    limit: Annotated[int, Query(ge=1, le=200, description="Maximum notifications to return")] = 50,
):
    notifications = await NotificationService.list_notifications(
        db, caller, unread_only=unread_only, limit=limit
    )
    return {"success": True, "notifications": notifications}


@router.patch("/notifications")
async def mark_all_read(caller: CallerDep, db: DatabaseDep):
    return await NotificationService.mark_all_read(db, caller)


@router.patch("/notifications/{notification_id}")
async def mark_read(
    notification_id: Annotated[str, Path(description="Notification id")],
    caller: CallerDep,
    db: DatabaseDep,
):
    """Mark one of your notifications read."""
    return await NotificationService.mark_read(db, caller, notification_id)
