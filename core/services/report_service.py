# =============================================================================
# core/services/report_service.py - Reports and Report Comments
# =============================================================================
# Crew members submit reports of completed work; managers read them all and
# comment. Submitting a report fans notifications out to managers (see
# NotificationService); the fan-out result is logged and never fails the
# submission.
#
# Attachments live in the REPORTS_BUCKET under `{user_id}/...`. Replacing or
# deleting a report removes the old attachment on a best-effort basis before
# the row changes; comments go away with the report by cascade.
# =============================================================================

import logging
from typing import Any

from app.config import settings
from app.exceptions import NotFoundError, ValidationFailedError
from core.models.profile import Caller
from core.models.report import (
    CommentCreate,
    CommentUpdate,
    ReportCreate,
    ReportFilters,
    ReportUpdate,
)
from core.services.authorization import (
    AccessTarget,
    Action,
    authorize_project,
    ensure_allowed,
    load_project_target,
)
from core.services.notification_service import NotificationService
from core.services.storage_service import StorageService
from lib.supabase_client import SupabaseClient
from lib.utils import utc_now_iso

logger = logging.getLogger(__name__)

REPORT_WITH_RELATIONS = (
    "*, reporter:profiles!reported_by(id, full_name, email, avatar_url, role), "
    "project:projects(id, title, description), "
    "task:tasks(id, title)"
)
COMMENT_WITH_COMMENTER = "*, commenter:profiles!commenter_id(id, full_name, email, avatar_url, role)"


class ReportService:
    """Service for reports, attachments and comments."""

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    async def _fetch_report(db: SupabaseClient, report_id: str, columns: str = "*") -> dict[str, Any]:
        client = await db.get_client()
        report = await db.fetch_one(
            client.table("reports").select(columns).eq("id", report_id).limit(1),
            "fetch report",
        )
        if report is None:
            raise NotFoundError("Report", report_id)
        return report

    @staticmethod
    async def _ensure_can_view(db: SupabaseClient, caller: Caller, report: dict[str, Any]) -> None:
        """Reporters and managers always see a report; others need project access."""
        if caller.id == report.get("reported_by") or caller.role.is_manager:
            return
        await authorize_project(db, caller, report["project_id"], Action.READ_PROJECT)

    @staticmethod
    def _ensure_can_modify(caller: Caller, report: dict[str, Any]) -> None:
        ensure_allowed(caller, Action.MODIFY_REPORT, AccessTarget(creator_id=report.get("reported_by")))

    @staticmethod
    def _apply_filters(query: Any, filters: ReportFilters) -> Any:
        if filters.user_id:
            query = query.eq("reported_by", filters.user_id)
        if filters.project_id:
            query = query.eq("project_id", filters.project_id)
        if filters.task_id:
            query = query.eq("task_id", filters.task_id)
        if filters.start_date:
            query = query.gte("accomplishment_date", filters.start_date.isoformat())
        if filters.end_date:
            query = query.lte("accomplishment_date", filters.end_date.isoformat())
        return query

    # -------------------------------------------------------------------------
    # Attachments
    # -------------------------------------------------------------------------

    @staticmethod
    async def upload_attachment(
        db: SupabaseClient,
        caller: Caller,
        filename: str,
        content: bytes,
        content_type: str,
    ) -> dict[str, Any]:
        """
        Upload a report attachment for the caller.

        Returns:
            {"url": public_url, "name": filename, "size": bytes}

        Raises:
            ValidationFailedError: Over 5MB or not an image/PDF
        """
        url = await StorageService.upload(
            db, settings.REPORTS_BUCKET, caller.id, filename, content, content_type
        )
        return {"url": url, "name": filename, "size": len(content)}

    @staticmethod
    async def attachment_url(db: SupabaseClient, caller: Caller, report_id: str) -> dict[str, str]:
        """Signed (one hour) URL for a report's attachment."""
        report = await ReportService._fetch_report(db, report_id)
        await ReportService._ensure_can_view(db, caller, report)

        if not report.get("attachment_url"):
            raise NotFoundError("Attachment", report_id)

        url = await StorageService.signed_url(db, settings.REPORTS_BUCKET, report["attachment_url"])
        return {"url": url}

    # -------------------------------------------------------------------------
    # Reports
    # -------------------------------------------------------------------------

    @staticmethod
    async def list_own_reports(
        db: SupabaseClient,
        caller: Caller,
        filters: ReportFilters,
    ) -> list[dict[str, Any]]:
        """The caller's reports, newest first."""
        filters = filters.model_copy(update={"user_id": caller.id})
        client = await db.get_client()
        query = ReportService._apply_filters(
            client.table("reports").select(REPORT_WITH_RELATIONS), filters
        )
        return await db.fetch_all(query.order("created_at", desc=True), "list own reports")

    @staticmethod
    async def list_all_reports(
        db: SupabaseClient,
        caller: Caller,
        filters: ReportFilters,
    ) -> list[dict[str, Any]]:
        """Every report matching the filters (admins and department heads)."""
        ensure_allowed(caller, Action.VIEW_ALL_REPORTS)

        client = await db.get_client()
        query = ReportService._apply_filters(
            client.table("reports").select(REPORT_WITH_RELATIONS), filters
        )
        return await db.fetch_all(query.order("created_at", desc=True), "list all reports")

    @staticmethod
    async def get_report(db: SupabaseClient, caller: Caller, report_id: str) -> dict[str, Any]:
        """A report with reporter, project, task and its comments (oldest first)."""
        report = await ReportService._fetch_report(db, report_id, REPORT_WITH_RELATIONS)
        await ReportService._ensure_can_view(db, caller, report)

        report["comments"] = await ReportService._comments(db, report_id)
        return report

    @staticmethod
    async def create_report(db: SupabaseClient, caller: Caller, body: ReportCreate) -> dict[str, Any]:
        """
        Submit a report and notify managers.

        Raises:
            ForbiddenError: If the caller isn't crew on the project
        """
        target = await load_project_target(db, body.project_id)
        ensure_allowed(caller, Action.CREATE_REPORT, target)

        data = body.model_dump(mode="json", exclude_none=True)
        data["reported_by"] = caller.id

        client = await db.get_client()
        report = await db.fetch_one(client.table("reports").insert(data), "create report")
        if report is None:
            raise ValidationFailedError("Report could not be created")

        logger.info(f"Report {report['id']} submitted by {caller.id} for project {body.project_id}")

        result = await NotificationService.fan_out_report_submitted(db, report)
        if result.ok:
            logger.info(f"Report {report['id']}: notified {result.recipients} recipients")
        else:
            logger.warning(f"Report {report['id']}: notification fan-out failed: {result.error}")

        return report

    @staticmethod
    async def update_report(
        db: SupabaseClient,
        caller: Caller,
        report_id: str,
        body: ReportUpdate,
    ) -> dict[str, Any]:
        """
        Update a report (reporter or admin).

        A changed attachment_url removes the previous object first.
        """
        report = await ReportService._fetch_report(db, report_id)
        ReportService._ensure_can_modify(caller, report)

        updates = body.model_dump(mode="json", exclude_unset=True)
        if not updates:
            raise ValidationFailedError("No fields to update")
        updates["updated_at"] = utc_now_iso()

        old_url = report.get("attachment_url")
        if "attachment_url" in updates and updates["attachment_url"] != old_url and old_url:
            if not await StorageService.delete_object(db, settings.REPORTS_BUCKET, old_url):
                logger.warning(f"Could not remove replaced attachment for report {report_id}")

        client = await db.get_client()
        updated = await db.fetch_one(
            client.table("reports").update(updates).eq("id", report_id),
            "update report",
        )
        if updated is None:
            raise NotFoundError("Report", report_id)
        return updated

    @staticmethod
    async def delete_report(db: SupabaseClient, caller: Caller, report_id: str) -> None:
        """Delete a report, its attachment (best-effort) and, by cascade, its comments."""
        report = await ReportService._fetch_report(db, report_id)
        ReportService._ensure_can_modify(caller, report)

        if report.get("attachment_url"):
            if not await StorageService.delete_object(db, settings.REPORTS_BUCKET, report["attachment_url"]):
                logger.warning(f"Could not remove attachment for report {report_id}; deleting row anyway")

        client = await db.get_client()
        deleted = await db.fetch_all(client.table("reports").delete().eq("id", report_id), "delete report")
        if not deleted:
            raise NotFoundError("Report", report_id)
        logger.info(f"Deleted report {report_id}")

    # -------------------------------------------------------------------------
    # Comments
    # -------------------------------------------------------------------------

    @staticmethod
    async def _comments(db: SupabaseClient, report_id: str) -> list[dict[str, Any]]:
        client = await db.get_client()
        return await db.fetch_all(
            client.table("report_comments")
            .select(COMMENT_WITH_COMMENTER)
            .eq("report_id", report_id)
            .order("created_at"),
            "fetch report comments",
        )

    @staticmethod
    async def _fetch_comment(db: SupabaseClient, report_id: str, comment_id: str) -> dict[str, Any]:
        client = await db.get_client()
        comment = await db.fetch_one(
            client.table("report_comments")
            .select("*")
            .eq("id", comment_id)
            .eq("report_id", report_id)
            .limit(1),
            "fetch report comment",
        )
        if comment is None:
            raise NotFoundError("Comment", comment_id)
        return comment

    @staticmethod
    async def list_comments(db: SupabaseClient, caller: Caller, report_id: str) -> list[dict[str, Any]]:
        report = await ReportService._fetch_report(db, report_id)
        await ReportService._ensure_can_view(db, caller, report)
        return await ReportService._comments(db, report_id)

    @staticmethod
    async def add_comment(
        db: SupabaseClient,
        caller: Caller,
        report_id: str,
        body: CommentCreate,
    ) -> dict[str, Any]:
        """Comment on a report (admins, department heads, the project's Project Managers)."""
        report = await ReportService._fetch_report(db, report_id)
        target = await load_project_target(db, report["project_id"])
        ensure_allowed(caller, Action.COMMENT_ON_REPORT, target)

        client = await db.get_client()
        comment = await db.fetch_one(
            client.table("report_comments").insert({
                "report_id": report_id,
                "commenter_id": caller.id,
                "content": body.content,
            }),
            "add report comment",
        )
        if comment is None:
            raise ValidationFailedError("Comment could not be created")
        return comment

    @staticmethod
    async def update_comment(
        db: SupabaseClient,
        caller: Caller,
        report_id: str,
        comment_id: str,
        body: CommentUpdate,
    ) -> dict[str, Any]:
        comment = await ReportService._fetch_comment(db, report_id, comment_id)
        ensure_allowed(caller, Action.MODIFY_COMMENT, AccessTarget(creator_id=comment.get("commenter_id")))

        client = await db.get_client()
        updated = await db.fetch_one(
            client.table("report_comments")
            .update({"content": body.content, "updated_at": utc_now_iso()})
            .eq("id", comment_id),
            "update report comment",
        )
        if updated is None:
            raise NotFoundError("Comment", comment_id)
        return updated

    @staticmethod
    async def delete_comment(db: SupabaseClient, caller: Caller, report_id: str, comment_id: str) -> None:
        comment = await ReportService._fetch_comment(db, report_id, comment_id)
        ensure_allowed(caller, Action.MODIFY_COMMENT, AccessTarget(creator_id=comment.get("commenter_id")))

        client = await db.get_client()
        deleted = await db.fetch_all(
            client.table("report_comments").delete().eq("id", comment_id),
            "delete report comment",
        )
        if not deleted:
            raise NotFoundError("Comment", comment_id)
