# =============================================================================
# app/routers/projects.py - Project and Crew Endpoints
# =============================================================================
# Projects plus their crew membership. Reads need project access; writes
# need project write access; deleting a project is admin-only.
# =============================================================================

from typing import Annotated, Literal

from fastapi import APIRouter, Path, Query, status

from app.auth import CallerDep
from app.dependencies import DatabaseDep
from core.models.project import MemberAdd, MemberRoleUpdate, ProjectCreate, ProjectUpdate
from core.services.project_service import ProjectService

router = APIRouter()

ProjectId = Annotated[str, Path(description="Project id")]
MemberId = Annotated[str, Path(description="Member's profile id")]


# =============================================================================
# Projects
# =============================================================================

@router.get("/projects")
async def list_projects(
    caller: CallerDep,
    db: DatabaseDep,
    scope: Annotated[Literal["mine", "all"], Query(description="'all' lists every project (admins)")] = "mine",
):
    """List projects you created or belong to, newest first."""
    return await ProjectService.list_projects(db, caller, scope_all=scope == "all")


@router.post("/projects", status_code=status.HTTP_201_CREATED)
async def create_project(body: ProjectCreate, caller: CallerDep, db: DatabaseDep):
    return await ProjectService.create_project(db, caller, body)


@router.get("/projects/{project_id}")
async def get_project(project_id: ProjectId, caller: CallerDep, db: DatabaseDep):
    """A project with its creator and members."""
    return await ProjectService.get_project(db, caller, project_id)


@router.patch("/projects/{project_id}")
async def update_project(project_id: ProjectId, body: ProjectUpdate, caller: CallerDep, db: DatabaseDep):
    return await ProjectService.update_project(db, caller, project_id, body)


@router.delete("/projects/{project_id}")
async def delete_project(project_id: ProjectId, caller: CallerDep, db: DatabaseDep):
    await ProjectService.delete_project(db, caller, project_id)
    return {"success": True, "message": "Project deleted successfully"}


# =============================================================================
# Crew
# =============================================================================

@router.get("/projects/{project_id}/members")
async def list_members(project_id: ProjectId, caller: CallerDep, db: DatabaseDep):
    return await ProjectService.list_members(db, caller, project_id)


@router.post("/projects/{project_id}/members", status_code=status.HTTP_201_CREATED)
async def add_member(project_id: ProjectId, body: MemberAdd, caller: CallerDep, db: DatabaseDep):
    """Add a user to the crew with a free-form role label."""
    return await ProjectService.add_member(db, caller, project_id, body)


@router.patch("/projects/{project_id}/members/{user_id}")
async def update_member_role(
    project_id: ProjectId,
    user_id: MemberId,
    body: MemberRoleUpdate,
    caller: CallerDep,
    db: DatabaseDep,
):
    return await ProjectService.update_member_role(db, caller, project_id, user_id, body)


@router.delete("/projects/{project_id}/members/{user_id}")
async def remove_member(project_id: ProjectId, user_id: MemberId, caller: CallerDep, db: DatabaseDep):
    await ProjectService.remove_member(db, caller, project_id, user_id)
    return {"success": True, "message": "Member removed successfully"}


@router.get("/projects/{project_id}/crew-stats")
async def crew_stats(project_id: ProjectId, caller: CallerDep, db: DatabaseDep):
    """Member count per role label."""
    return await ProjectService.crew_stats(db, caller, project_id)
