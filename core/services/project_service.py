# =============================================================================
# core/services/project_service.py - Projects and Crew Membership
# =============================================================================
# Handles project CRUD and the project_members join rows (the crew list of a
# project, each with a free-form role label such as "Project Manager").
# =============================================================================

import asyncio
import logging
from typing import Any

from app.exceptions import InvalidOperationError, NotFoundError, ValidationFailedError
from core.models.profile import Caller
from core.models.project import MemberAdd, MemberRoleUpdate, ProjectCreate, ProjectUpdate
from core.services.authorization import (
    Action,
    accessible_project_ids,
    authorize_project,
    ensure_allowed,
)
from lib.aggregations import count_by
from lib.supabase_client import SupabaseClient
from lib.utils import utc_now_iso

logger = logging.getLogger(__name__)

PROJECT_WITH_CREATOR = "*, creator:profiles!created_by(id, full_name, email)"
MEMBER_WITH_PROFILE = "*, profile:profiles!user_id(id, full_name, email, role, department, avatar_url)"


class ProjectService:
    """Service for project and membership operations."""

    # -------------------------------------------------------------------------
    # Projects
    # -------------------------------------------------------------------------

    @staticmethod
    async def list_projects(
        db: SupabaseClient,
        caller: Caller,
        scope_all: bool = False,
    ) -> list[dict[str, Any]]:
        """
        List projects the caller created or is a member of, newest first.

        Args:
            scope_all: List every project instead (admins only)
        """
        client = await db.get_client()

        if scope_all:
            ensure_allowed(caller, Action.VIEW_ALL_PROJECTS)
            return await db.fetch_all(
                client.table("projects").select(PROJECT_WITH_CREATOR).order("created_at", desc=True),
                "list all projects",
            )

        project_ids = await accessible_project_ids(db, caller.id)
        if not project_ids:
            return []

        return await db.fetch_all(
            client.table("projects")
            .select(PROJECT_WITH_CREATOR)
            .in_("id", project_ids)
            .order("created_at", desc=True),
            "list projects",
        )

    @staticmethod
    async def get_project(db: SupabaseClient, caller: Caller, project_id: str) -> dict[str, Any]:
        """
        Get a project with its creator and members.

        Raises:
            NotFoundError: If the project doesn't exist
            ForbiddenError: If the caller has no access
        """
        await authorize_project(db, caller, project_id, Action.READ_PROJECT)

        client = await db.get_client()
        project, members = await asyncio.gather(
            db.fetch_one(
                client.table("projects").select(PROJECT_WITH_CREATOR).eq("id", project_id).limit(1),
                "fetch project",
            ),
            db.fetch_all(
                client.table("project_members").select(MEMBER_WITH_PROFILE).eq("project_id", project_id),
                "fetch project members",
            ),
        )
        if project is None:
            raise NotFoundError("Project", project_id)

        project["members"] = members
        return project

    @staticmethod
    async def create_project(db: SupabaseClient, caller: Caller, body: ProjectCreate) -> dict[str, Any]:
        """Create a project owned by the caller."""
        data = body.model_dump(mode="json", exclude_none=True)
        data["created_by"] = caller.id

        client = await db.get_client()
        project = await db.fetch_one(client.table("projects").insert(data), "create project")
        if project is None:
            raise ValidationFailedError("Project could not be created")

        logger.info(f"Created project {project['id']} for user {caller.id}")
        return project

    @staticmethod
    async def update_project(
        db: SupabaseClient,
        caller: Caller,
        project_id: str,
        body: ProjectUpdate,
    ) -> dict[str, Any]:
        """
        Update a project's fields.

        Raises:
            ValidationFailedError: If no field is provided
        """
        await authorize_project(db, caller, project_id, Action.MANAGE_PROJECT)

        updates = body.model_dump(mode="json", exclude_unset=True)
        if not updates:
            raise ValidationFailedError("No fields to update")
        updates["updated_at"] = utc_now_iso()

        client = await db.get_client()
        project = await db.fetch_one(
            client.table("projects").update(updates).eq("id", project_id),
            "update project",
        )
        if project is None:
            raise NotFoundError("Project", project_id)
        return project

    @staticmethod
    async def delete_project(db: SupabaseClient, caller: Caller, project_id: str) -> None:
        """
        Delete a project (admins only). Owned rows cascade in the database.
        """
        ensure_allowed(caller, Action.DELETE_PROJECT)

        client = await db.get_client()
        deleted = await db.fetch_all(
            client.table("projects").delete().eq("id", project_id),
            "delete project",
        )
        if not deleted:
            raise NotFoundError("Project", project_id)
        logger.info(f"Admin {caller.id} deleted project {project_id}")

    # -------------------------------------------------------------------------
    # Members
    # -------------------------------------------------------------------------

    @staticmethod
    async def list_members(db: SupabaseClient, caller: Caller, project_id: str) -> list[dict[str, Any]]:
        """List a project's members with their profiles, oldest membership first."""
        await authorize_project(db, caller, project_id, Action.READ_PROJECT)

        client = await db.get_client()
        return await db.fetch_all(
            client.table("project_members")
            .select(MEMBER_WITH_PROFILE)
            .eq("project_id", project_id)
            .order("created_at"),
            "list project members",
        )

    @staticmethod
    async def add_member(
        db: SupabaseClient,
        caller: Caller,
        project_id: str,
        body: MemberAdd,
    ) -> dict[str, Any]:
        """
        Add a user to a project's crew.

        Raises:
            NotFoundError: If the user doesn't exist
            InvalidOperationError: If the user is already a member
        """
        target = await authorize_project(db, caller, project_id, Action.MANAGE_PROJECT)
        if body.user_id in target.member_ids:
            raise InvalidOperationError("User is already a member of this project")

        client = await db.get_client()
        profile = await db.fetch_one(
            client.table("profiles").select("id").eq("id", body.user_id).limit(1),
            "fetch profile",
        )
        if profile is None:
            raise NotFoundError("User", body.user_id)

        member = await db.fetch_one(
            client.table("project_members").insert({
                "project_id": project_id,
                "user_id": body.user_id,
                "role": body.role,
            }),
            "add project member",
        )
        logger.info(f"Added user {body.user_id} to project {project_id} as '{body.role}'")
        return member or {}

    @staticmethod
    async def update_member_role(
        db: SupabaseClient,
        caller: Caller,
        project_id: str,
        user_id: str,
        body: MemberRoleUpdate,
    ) -> dict[str, Any]:
        """Change a member's role label."""
        await authorize_project(db, caller, project_id, Action.MANAGE_PROJECT)

        client = await db.get_client()
        member = await db.fetch_one(
            client.table("project_members")
            .update({"role": body.role})
            .eq("project_id", project_id)
            .eq("user_id", user_id),
            "update member role",
        )
        if member is None:
            raise NotFoundError("Project member", user_id)
        return member

    @staticmethod
    async def remove_member(db: SupabaseClient, caller: Caller, project_id: str, user_id: str) -> None:
        """Remove a user from a project's crew."""
        await authorize_project(db, caller, project_id, Action.MANAGE_PROJECT)

        client = await db.get_client()
        deleted = await db.fetch_all(
            client.table("project_members")
            .delete()
            .eq("project_id", project_id)
            .eq("user_id", user_id),
            "remove project member",
        )
        if not deleted:
            raise NotFoundError("Project member", user_id)
        logger.info(f"Removed user {user_id} from project {project_id}")

    @staticmethod
    async def crew_stats(db: SupabaseClient, caller: Caller, project_id: str) -> dict[str, Any]:
        """Member count per role label; members without a label count as Unassigned."""
        members = await ProjectService.list_members(db, caller, project_id)
        return {
            "total": len(members),
            "by_role": count_by(members, "role", "Unassigned"),
        }
