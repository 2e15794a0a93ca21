# =============================================================================
# core/services/authorization.py - Authorization Guard
# =============================================================================
# Every permission decision in the API goes through `authorize()`.
#
# `authorize(caller, action, target)` is a pure function: it looks only at the
# caller (id + role), the action, and an AccessTarget describing the row being
# touched, and returns a Decision. Rules are checked in this order:
#
#   1. No caller                                  -> Unauthenticated (401)
#   2. Admin-only action by a non-admin           -> Forbidden (403)
#   3. Deleting your own account                  -> InvalidOperation (400)
#   4. Deleting the only remaining admin          -> InvalidOperation (400)
#   5. Project-scoped action without access       -> Forbidden (403)
#      (access = admin, project creator, project member, or task assignee)
#   6. Role / ownership rules for the remaining actions
#
# The async loaders below build AccessTargets by querying current rows on
# every call; nothing is cached between requests, so role and membership
# changes take effect immediately.
#
# Usage:
#   target = await load_project_target(db, project_id)
#   ensure_allowed(caller, Action.WRITE_PROJECT, target)
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum

from app.exceptions import (
    CrewDeskException,
    ForbiddenError,
    InvalidOperationError,
    NotFoundError,
    UnauthenticatedError,
)
from core.models.profile import Caller, Role
from core.models.project import PROJECT_MANAGER_ROLE
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)


ADMIN_REQUIRED_MESSAGE = "Forbidden - Admin access required"
SELF_DELETE_MESSAGE = (
    "Cannot delete your own account. Please have another admin remove your account."
)
LAST_ADMIN_MESSAGE = (
    "Cannot delete the last admin account. Please promote another user to admin first."
)
NO_PROJECT_ACCESS_MESSAGE = "You do not have access to this project"


# =============================================================================
# Actions
# =============================================================================

class Action(str, Enum):
    """Every action the guard knows how to decide."""

    # User administration
    CREATE_USER = "create_user"
    UPDATE_USER = "update_user"
    DELETE_USER = "delete_user"

    # Cross-project visibility
    VIEW_ALL_PROJECTS = "view_all_projects"
    VIEW_ALL_REPORTS = "view_all_reports"
    EXPORT_DATA = "export_data"

    # Project scope
    READ_PROJECT = "read_project"
    WRITE_PROJECT = "write_project"
    MANAGE_PROJECT = "manage_project"
    DELETE_PROJECT = "delete_project"

    # Tasks
    READ_TASK = "read_task"
    UPDATE_TASK = "update_task"
    CREATE_TASK = "create_task"
    DELETE_TASK = "delete_task"

    # Reports
    CREATE_REPORT = "create_report"
    MODIFY_REPORT = "modify_report"
    COMMENT_ON_REPORT = "comment_on_report"
    MODIFY_COMMENT = "modify_comment"

    # Messaging
    READ_CONVERSATION = "read_conversation"


ADMIN_ONLY_ACTIONS = frozenset({
    Action.CREATE_USER,
    Action.UPDATE_USER,
    Action.DELETE_USER,
    Action.VIEW_ALL_PROJECTS,
    Action.DELETE_PROJECT,
})

MANAGER_ACTIONS = frozenset({
    Action.VIEW_ALL_REPORTS,
    Action.EXPORT_DATA,
})

# Actions decided by rule 5 (project access)
PROJECT_SCOPED_ACTIONS = frozenset({
    Action.READ_PROJECT,
    Action.WRITE_PROJECT,
    Action.READ_TASK,
    Action.UPDATE_TASK,
})

# Project-scoped actions where the task assignee also counts as having access
ASSIGNEE_ACTIONS = frozenset({Action.READ_TASK, Action.UPDATE_TASK})


# =============================================================================
# Targets and Decisions
# =============================================================================

@dataclass(frozen=True)
class AccessTarget:
    """
    Facts about the row an action touches.

    Only the fields relevant to the action need to be filled in.

    Attributes:
        user_id: Target profile for user administration
        admin_ids: Ids of every profile whose role is admin
        project_id: Project the row belongs to
        project_owner_id: `projects.created_by`
        member_ids: User ids in project_members for the project
        project_manager_ids: Members whose role label is "Project Manager"
        assignee_id: `tasks.assigned_to`
        creator_id: Creator of the row (task creator, reporter, commenter)
        participant_ids: Conversation participants
    """

    user_id: str | None = None
    admin_ids: frozenset[str] = field(default_factory=frozenset)
    project_id: str | None = None
    project_owner_id: str | None = None
    member_ids: frozenset[str] = field(default_factory=frozenset)
    project_manager_ids: frozenset[str] = field(default_factory=frozenset)
    assignee_id: str | None = None
    creator_id: str | None = None
    participant_ids: frozenset[str] = field(default_factory=frozenset)

    def has_project_access(self, user_id: str) -> bool:
        """Creator or member of the target's project."""
        return user_id == self.project_owner_id or user_id in self.member_ids


@dataclass(frozen=True)
class Decision:
    """
    Result of an authorization check.

    A denied decision carries the exact error the API should answer with.
    """

    allowed: bool
    error: CrewDeskException | None = None

    @classmethod
    def allow(cls) -> Decision:
        return cls(allowed=True)

    @classmethod
    def deny(cls, error: CrewDeskException) -> Decision:
        return cls(allowed=False, error=error)

    def raise_for_denial(self) -> None:
        """Raise the carried error when the decision is a denial."""
        if not self.allowed and self.error is not None:
            raise self.error


# =============================================================================
# The Guard
# =============================================================================

def authorize(
    caller: Caller | None,
    action: Action,
    target: AccessTarget | None = None,
) -> Decision:
    """
    Decide whether `caller` may perform `action` on `target`.

    Args:
        caller: Resolved caller, or None when the request has no session
        action: What is being attempted
        target: Facts about the row being touched (defaults to empty)

    Returns:
        Decision.allow() or Decision.deny(error)
    """
    target = target or AccessTarget()

    # Rule 1: must be authenticated with a resolved profile
    if caller is None:
        return Decision.deny(UnauthenticatedError())

    # Rule 2: admin-only actions
    if action in ADMIN_ONLY_ACTIONS and not caller.is_admin:
        return Decision.deny(ForbiddenError(ADMIN_REQUIRED_MESSAGE))

    if action == Action.DELETE_USER:
        # Rule 3: never delete yourself
        if target.user_id == caller.id:
            return Decision.deny(InvalidOperationError(SELF_DELETE_MESSAGE))
        # Rule 4: never delete the only admin
        if len(target.admin_ids) == 1 and target.user_id in target.admin_ids:
            return Decision.deny(InvalidOperationError(LAST_ADMIN_MESSAGE))
        return Decision.allow()

    if action in ADMIN_ONLY_ACTIONS:
        return Decision.allow()

    # Rule 5: project scope
    if action in PROJECT_SCOPED_ACTIONS:
        if caller.is_admin or target.has_project_access(caller.id):
            return Decision.allow()
        if action in ASSIGNEE_ACTIONS and target.assignee_id == caller.id:
            return Decision.allow()
        return Decision.deny(ForbiddenError(NO_PROJECT_ACCESS_MESSAGE))

    # Rule 6: role and ownership rules
    return _authorize_by_role(caller, action, target)


def _authorize_by_role(caller: Caller, action: Action, target: AccessTarget) -> Decision:
    if action in MANAGER_ACTIONS:
        if caller.role.is_manager:
            return Decision.allow()
        return Decision.deny(ForbiddenError("Forbidden - Manager access required"))

    if action == Action.MANAGE_PROJECT:
        if caller.is_admin or caller.id == target.project_owner_id:
            return Decision.allow()
        return Decision.deny(ForbiddenError("Only the project owner or an admin can manage this project"))

    if action == Action.CREATE_TASK:
        if caller.is_admin or caller.id == target.project_owner_id:
            return Decision.allow()
        if caller.role == Role.DEPARTMENT_HEAD and caller.id in target.member_ids:
            return Decision.allow()
        return Decision.deny(ForbiddenError("Only project owners and department heads can create tasks"))

    if action == Action.DELETE_TASK:
        if caller.is_admin or caller.id == target.creator_id:
            return Decision.allow()
        return Decision.deny(ForbiddenError("Only the task creator or an admin can delete this task"))

    if action == Action.CREATE_REPORT:
        if caller.role != Role.CREW:
            return Decision.deny(ForbiddenError("Only crew members can submit reports"))
        if not target.has_project_access(caller.id):
            return Decision.deny(ForbiddenError(NO_PROJECT_ACCESS_MESSAGE))
        return Decision.allow()

    if action == Action.MODIFY_REPORT:
        if caller.is_admin or caller.id == target.creator_id:
            return Decision.allow()
        return Decision.deny(ForbiddenError("Only the reporter or an admin can change this report"))

    if action == Action.COMMENT_ON_REPORT:
        if caller.role.is_manager or caller.id in target.project_manager_ids:
            return Decision.allow()
        return Decision.deny(ForbiddenError("Only managers can comment on reports"))

    if action == Action.MODIFY_COMMENT:
        if caller.id == target.creator_id:
            return Decision.allow()
        return Decision.deny(ForbiddenError("Only the commenter can change this comment"))

    if action == Action.READ_CONVERSATION:
        if caller.is_admin or caller.id in target.participant_ids:
            return Decision.allow()
        return Decision.deny(ForbiddenError("You are not a participant in this conversation"))

    logger.warning(f"No authorization rule for action {action}; denying")
    return Decision.deny(ForbiddenError())


def ensure_allowed(
    caller: Caller | None,
    action: Action,
    target: AccessTarget | None = None,
) -> None:
    """Run the guard and raise the denial error, if any."""
    authorize(caller, action, target).raise_for_denial()


# =============================================================================
# Target Loaders (query current state on every call)
# =============================================================================

async def accessible_project_ids(db: SupabaseClient, user_id: str) -> list[str]:
    """
    Ids of projects the user created or is a member of.

    Both lookups run concurrently; the result keeps owned projects first and
    contains no duplicates.
    """
    client = await db.get_client()
    owned, memberships = await asyncio.gather(
        db.fetch_all(
            client.table("projects").select("id").eq("created_by", user_id),
            "fetch owned projects",
        ),
        db.fetch_all(
            client.table("project_members").select("project_id").eq("user_id", user_id),
            "fetch project memberships",
        ),
    )
    ids = [row["id"] for row in owned] + [row["project_id"] for row in memberships]
    return list(dict.fromkeys(ids))


async def load_project_target(db: SupabaseClient, project_id: str) -> AccessTarget:
    """
    Build the access facts for a project.

    Raises:
        NotFoundError: If the project doesn't exist
    """
    client = await db.get_client()
    project, members = await asyncio.gather(
        db.fetch_one(
            client.table("projects").select("id, created_by").eq("id", project_id).limit(1),
            "fetch project",
        ),
        db.fetch_all(
            client.table("project_members").select("user_id, role").eq("project_id", project_id),
            "fetch project members",
        ),
    )
    if project is None:
        raise NotFoundError("Project", project_id)

    return AccessTarget(
        project_id=project_id,
        project_owner_id=project.get("created_by"),
        member_ids=frozenset(m["user_id"] for m in members),
        project_manager_ids=frozenset(
            m["user_id"] for m in members if m.get("role") == PROJECT_MANAGER_ROLE
        ),
    )


async def load_user_target(db: SupabaseClient, user_id: str) -> AccessTarget:
    """Build the access facts for administering a user account."""
    client = await db.get_client()
    admins = await db.fetch_all(
        client.table("profiles").select("id").eq("role", Role.ADMIN.value),
        "fetch admin profiles",
    )
    return AccessTarget(user_id=user_id, admin_ids=frozenset(row["id"] for row in admins))


async def authorize_project(
    db: SupabaseClient,
    caller: Caller,
    project_id: str,
    action: Action = Action.READ_PROJECT,
) -> AccessTarget:
    """
    Load a project's access facts and check `action` against them.

    Returns:
        The loaded AccessTarget, for callers that need further checks

    Raises:
        NotFoundError: If the project doesn't exist
        ForbiddenError: If the caller lacks access
    """
    target = await load_project_target(db, project_id)
    ensure_allowed(caller, action, target)
    return target
