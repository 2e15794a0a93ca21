# =============================================================================
# core/models/project.py - Project and Membership Schemas
# =============================================================================
# A project owns every task, schedule, expense and file. Access to those rows
# follows the project: its creator, its members (project_members rows) and
# admins may read and write them.
# =============================================================================

from datetime import date
from enum import Enum

from pydantic import BaseModel, Field


class ProjectStatus(str, Enum):
    """
    Production phase of a project.

    Flow: pre-production -> production -> post-production -> completed
    """
    PRE_PRODUCTION = "pre-production"
    PRODUCTION = "production"
    POST_PRODUCTION = "post-production"
    COMPLETED = "completed"


# Phases counted as "active" on the dashboard
ACTIVE_PROJECT_STATUSES = (ProjectStatus.PRE_PRODUCTION.value, ProjectStatus.PRODUCTION.value)

# Membership role label whose holders are notified about new reports
PROJECT_MANAGER_ROLE = "Project Manager"

DEFAULT_MEMBER_ROLE = "Crew Member"


class ProjectCreate(BaseModel):
    """
    Body for POST /projects.

    Example:
        {
            "title": "Night Shift",
            "status": "pre-production",
            "budget": 2500000,
            "start_date": "2026-11-01"
        }
    """

    title: str = Field(..., min_length=1, max_length=200, description="Working title")
    description: str | None = Field(default=None, description="Logline or notes")
    status: ProjectStatus = Field(default=ProjectStatus.PRE_PRODUCTION)
    budget: float | None = Field(default=None, ge=0, description="Total budget (KSh)")
    start_date: date | None = None
    end_date: date | None = None


class ProjectUpdate(BaseModel):
    """Body for PATCH /projects/{id}; only provided fields change."""

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    status: ProjectStatus | None = None
    budget: float | None = Field(default=None, ge=0)
    start_date: date | None = None
    end_date: date | None = None


class MemberAdd(BaseModel):
    """Body for POST /projects/{id}/members."""

    user_id: str = Field(..., min_length=1, description="Profile id to add")
    role: str = Field(default=DEFAULT_MEMBER_ROLE, min_length=1, max_length=100,
                      description="Free-form role label, e.g. 'Project Manager'")


class MemberRoleUpdate(BaseModel):
    """Body for PATCH /projects/{id}/members/{user_id}."""

    role: str = Field(..., min_length=1, max_length=100)
