# =============================================================================
# app/routers/reports.py - Daily Report Endpoints
# =============================================================================
# Crew members file daily reports against a project (optionally a task);
# leads review them and discuss them in comments. Submitting a report
# notifies the project's admins and department heads.
# =============================================================================

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, File, Path, Query, UploadFile, status

from app.auth import CallerDep
from app.dependencies import DatabaseDep
from core.models.report import (
    CommentCreate,
    CommentUpdate,
    ReportCreate,
    ReportFilters,
    ReportUpdate,
)
from core.services.report_service import ReportService

router = APIRouter()

ReportId = Annotated[str, Path(description="Report id")]
CommentId = Annotated[str, Path(description="Comment id")]


def report_filters(
    user_id: Annotated[str | None, Query(description="Filter by reporter")] = None,
    project_id: Annotated[str | None, Query(description="Filter by project")] = None,
    task_id: Annotated[str | None, Query(description="Filter by task")] = None,
    start_date: Annotated[date | None, Query(description="Earliest accomplishment date")] = None,
    end_date: Annotated[date | None, Query(description="Latest accomplishment date")] = None,
) -> ReportFilters:
    return ReportFilters(
        user_id=user_id,
        project_id=project_id,
        task_id=task_id,
        start_date=start_date,
        end_date=end_date,
    )


ReportFiltersDep = Annotated[ReportFilters, Depends(report_filters)]


# =============================================================================
# Attachments
# =============================================================================

@router.post("/reports/attachments", status_code=status.HTTP_201_CREATED)
async def upload_attachment(
    caller: CallerDep,
    db: DatabaseDep,
    file: Annotated[UploadFile, File(description="Image or PDF, max 5MB")],
):
    content = await file.read()
    return await ReportService.upload_attachment(
        db,
        caller,
        file.filename or "attachment",
        content,
        file.content_type or "application/octet-stream",
    )


# =============================================================================
# Reports
# =============================================================================

@router.get("/reports")
async def list_own_reports(filters: ReportFiltersDep, caller: CallerDep, db: DatabaseDep):
    """Your own reports, newest first. A user_id filter is always replaced by you."""
    return await ReportService.list_own_reports(db, caller, filters)


@router.get("/reports/all")
async def list_all_reports(filters: ReportFiltersDep, caller: CallerDep, db: DatabaseDep):
    """Every report (admins and department heads)."""
    return await ReportService.list_all_reports(db, caller, filters)


@router.post("/reports", status_code=status.HTTP_201_CREATED)
async def create_report(body: ReportCreate, caller: CallerDep, db: DatabaseDep):
    return await ReportService.create_report(db, caller, body)


@router.get("/reports/{report_id}")
async def get_report(report_id: ReportId, caller: CallerDep, db: DatabaseDep):
    return await ReportService.get_report(db, caller, report_id)


@router.get("/reports/{report_id}/attachment-url")
async def attachment_url(report_id: ReportId, caller: CallerDep, db: DatabaseDep):
    return await ReportService.attachment_url(db, caller, report_id)


@router.patch("/reports/{report_id}")
async def update_report(report_id: ReportId, body: ReportUpdate, caller: CallerDep, db: DatabaseDep):
    return await ReportService.update_report(db, caller, report_id, body)


@router.delete("/reports/{report_id}")
async def delete_report(report_id: ReportId, caller: CallerDep, db: DatabaseDep):
    await ReportService.delete_report(db, caller, report_id)
    return {"success": True, "message": "Report deleted successfully"}


# =============================================================================
# Comments
# =============================================================================

@router.get("/reports/{report_id}/comments")
async def list_comments(report_id: ReportId, caller: CallerDep, db: DatabaseDep):
    return await ReportService.list_comments(db, caller, report_id)


@router.post("/reports/{report_id}/comments", status_code=status.HTTP_201_CREATED)
async def add_comment(report_id: ReportId, body: CommentCreate, caller: CallerDep, db: DatabaseDep):
    return await ReportService.add_comment(db, caller, report_id, body)


@router.patch("/reports/{report_id}/comments/{comment_id}")
async def update_comment(
    report_id: ReportId,
    comment_id: CommentId,
    body: CommentUpdate,
    caller: CallerDep,
    db: DatabaseDep,
):
    return await ReportService.update_comment(db, caller, report_id, comment_id, body)


@router.delete("/reports/{report_id}/comments/{comment_id}")
async def delete_comment(report_id: ReportId, comment_id: CommentId, caller: CallerDep, db: DatabaseDep):
    await ReportService.delete_comment(db, caller, report_id, comment_id)
    return {"success": True, "message": "Comment deleted successfully"}
