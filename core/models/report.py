# =============================================================================
# core/models/report.py - Daily Report Schemas
# =============================================================================
# Crew members file reports of what they accomplished on a project (optionally
# against a task), with an optional image/PDF attachment. Managers comment on
# them. Creating a report notifies admins, department heads and the
# project's Project Managers.
# =============================================================================

from datetime import date, time

from pydantic import BaseModel, Field


class ReportCreate(BaseModel):
    """
    Body for POST /reports.

    The attachment is uploaded first through POST /reports/attachments; the
    returned url/name/size are then passed here.
    """

    project_id: str = Field(..., min_length=1)
    task_id: str | None = None
    content: str = Field(..., min_length=1, description="What was accomplished")
    accomplishment_date: date
    accomplishment_time: time
    attachment_url: str | None = None
    attachment_name: str | None = None
    attachment_size: int | None = Field(default=None, ge=0)
    is_manual: bool = Field(default=False, description="True when not tied to a task")
    manual_description: str | None = None


class ReportUpdate(BaseModel):
    """Body for PATCH /reports/{id}; only provided fields change."""

    task_id: str | None = None
    content: str | None = Field(default=None, min_length=1)
    accomplishment_date: date | None = None
    accomplishment_time: time | None = None
    attachment_url: str | None = None
    attachment_name: str | None = None
    attachment_size: int | None = Field(default=None, ge=0)
    is_manual: bool | None = None
    manual_description: str | None = None


class ReportFilters(BaseModel):
    """Query filters shared by the report listing endpoints."""

    user_id: str | None = None
    project_id: str | None = None
    task_id: str | None = None
    start_date: date | None = Field(default=None, description="Earliest accomplishment_date")
    end_date: date | None = Field(default=None, description="Latest accomplishment_date")


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)


class CommentUpdate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)
