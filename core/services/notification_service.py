# =============================================================================
# core/services/notification_service.py - Notifications and Fan-out
# =============================================================================
# Notifications are written only by server-side fan-out and read/acknowledged
# by their recipient.
#
# Report fan-out: when a report is submitted, every admin, every department
# head and every "Project Manager" member of the report's project receives
# one notification. Fan-out returns a FanOutResult instead of raising; the
# report is already saved and must not fail because of it. Delivery is
# at-most-once with no retry.
# =============================================================================

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from app.exceptions import NotFoundError, ValidationFailedError
from core.models.messaging import (
    REPORT_ENTITY_TYPE,
    REPORT_SUBMITTED_TITLE,
    REPORT_SUBMITTED_TYPE,
    SEVERITY_INFO,
    UNKNOWN_PROJECT,
    UNKNOWN_REPORTER,
)
from core.models.profile import Caller, Role
from core.models.project import PROJECT_MANAGER_ROLE
from lib.supabase_client import SupabaseClient
from lib.utils import utc_now_iso

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FanOutResult:
    """
    Outcome of a notification fan-out.

    Attributes:
        recipients: Number of notification rows written
        error: Failure description, or None on success
    """

    recipients: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class NotificationService:
    """Service for notification delivery and read-state."""

    # -------------------------------------------------------------------------
    # Fan-out
    # -------------------------------------------------------------------------

    @staticmethod
    async def _display_names(
        db: SupabaseClient,
        reporter_id: str,
        project_id: str,
    ) -> tuple[str, str]:
        """Reporter name and project title, degrading to placeholders on any failure."""
        client = await db.get_client()
        reporter, project = await asyncio.gather(
            db.fetch_one(
                client.table("profiles").select("full_name").eq("id", reporter_id).limit(1),
                "fetch reporter name",
            ),
            db.fetch_one(
                client.table("projects").select("title").eq("id", project_id).limit(1),
                "fetch project title",
            ),
            return_exceptions=True,
        )
        reporter_name = reporter.get("full_name") if isinstance(reporter, dict) else None
        project_title = project.get("title") if isinstance(project, dict) else None
        return reporter_name or UNKNOWN_REPORTER, project_title or UNKNOWN_PROJECT

    @staticmethod
    async def report_recipients(db: SupabaseClient, project_id: str) -> list[str]:
        """
        Everyone to notify about a report on `project_id`.

        Union of admins, department heads and the project's members whose
        role label is "Project Manager", de-duplicated in that order.
        """
        client = await db.get_client()
        managers, project_managers = await asyncio.gather(
            db.fetch_all(
                client.table("profiles")
                .select("id, role")
                .in_("role", [Role.ADMIN.value, Role.DEPARTMENT_HEAD.value]),
                "fetch managers",
            ),
            db.fetch_all(
                client.table("project_members")
                .select("user_id")
                .eq("project_id", project_id)
                .eq("role", PROJECT_MANAGER_ROLE),
                "fetch project managers",
            ),
        )
        admins = [row["id"] for row in managers if row.get("role") == Role.ADMIN.value]
        heads = [row["id"] for row in managers if row.get("role") == Role.DEPARTMENT_HEAD.value]
        pms = [row["user_id"] for row in project_managers]
        return list(dict.fromkeys(admins + heads + pms))

    @staticmethod
    async def fan_out_report_submitted(db: SupabaseClient, report: dict[str, Any]) -> FanOutResult:
        """
        Notify managers about a newly submitted report.

        Args:
            db: Database handle
            report: The inserted report row (id, project_id, reported_by)

        Returns:
            FanOutResult; never raises
        """
        try:
            project_id = report["project_id"]
            reporter_name, project_title = await NotificationService._display_names(
                db, report["reported_by"], project_id
            )
            recipients = await NotificationService.report_recipients(db, project_id)
            if not recipients:
                return FanOutResult(recipients=0)

            rows = [
                {
                    "user_id": user_id,
                    "project_id": project_id,
                    "notification_type": REPORT_SUBMITTED_TYPE,
                    "title": REPORT_SUBMITTED_TITLE,
                    "message": f"{reporter_name} submitted a report for {project_title}",
                    "related_entity_id": report["id"],
                    "related_entity_type": REPORT_ENTITY_TYPE,
                    "is_read": False,
                    "severity": SEVERITY_INFO,
                    "action_required": False,
                    "action_url": f"/reports/{report['id']}",
                }
                for user_id in recipients
            ]

            client = await db.get_client()
            await db.execute(client.table("notifications").insert(rows), "insert notifications")
            return FanOutResult(recipients=len(rows))

        except Exception as e:
            return FanOutResult(error=str(e))

    # -------------------------------------------------------------------------
    # Recipient Operations
    # -------------------------------------------------------------------------

    @staticmethod
    async def list_notifications(
        db: SupabaseClient,
        caller: Caller,
        unread_only: bool = False,
        limit: int = 50,
    ) -> list[dict[str, Any]]:
        """The caller's notifications with their project, newest first."""
        client = await db.get_client()
        query = (
            client.table("notifications")
            .select("*, project:projects(id, title)")
            .eq("user_id", caller.id)
        )
        if unread_only:
            query = query.eq("is_read", False)
        return await db.fetch_all(
            query.order("created_at", desc=True).limit(limit),
            "list notifications",
        )

    @staticmethod
    async def mark_read(db: SupabaseClient, caller: Caller, notification_id: str) -> dict[str, Any]:
        """
        Mark one of the caller's notifications read.

        Raises:
            ValidationFailedError: If the id is blank
            NotFoundError: If the caller has no such notification
        """
        if not notification_id or not notification_id.strip():
            raise ValidationFailedError("Notification ID is required")

        now = utc_now_iso()
        client = await db.get_client()
        updated = await db.fetch_all(
            client.table("notifications")
            .update({"is_read": True, "read_at": now, "updated_at": now})
            .eq("id", notification_id)
            .eq("user_id", caller.id),
            "mark notification read",
        )
        if not updated:
            raise NotFoundError("Notification", notification_id)
        return {"success": True, "message": "Notification marked as read"}

    @staticmethod
    async def mark_all_read(db: SupabaseClient, caller: Caller) -> dict[str, Any]:
        """Mark every unread notification of the caller read."""
        now = utc_now_iso()
        client = await db.get_client()
        updated = await db.fetch_all(
            client.table("notifications")
            .update({"is_read": True, "read_at": now, "updated_at": now})
            .eq("user_id", caller.id)
            .eq("is_read", False),
            "mark all notifications read",
        )
        logger.info(f"Marked {len(updated)} notifications read for {caller.id}")
        return {"success": True, "message": "All notifications marked as read"}

    @staticmethod
    async def unread_count(db: SupabaseClient, user_id: str) -> int:
        client = await db.get_client()
        rows = await db.fetch_all(
            client.table("notifications").select("id").eq("user_id", user_id).eq("is_read", False),
            "count unread notifications",
        )
        return len(rows)
