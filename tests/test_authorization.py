# =============================================================================
# tests/test_authorization.py - Access Guard Tests
# =============================================================================
# This module contains tests for:
# - Rule ordering (unauthenticated, admin-only, self/last-admin deletion)
# - Project-scoped access for owners, members and assignees
# - Role and ownership rules for tasks, reports, comments and conversations
# - Target loaders against the in-memory database
# =============================================================================

import pytest

from app.exceptions import ForbiddenError, InvalidOperationError, NotFoundError, UnauthenticatedError
from core.services.authorization import (
    AccessTarget,
    Action,
    accessible_project_ids,
    authorize,
    authorize_project,
    ensure_allowed,
    load_project_target,
    load_user_target,
)
from tests.conftest import ADMIN_ID, CREW_ID, HEAD_ID, OTHER_CREW_ID, PROJECT_ID


def project_target(**overrides) -> AccessTarget:
    values = {
        "project_id": PROJECT_ID,
        "project_owner_id": HEAD_ID,
        "member_ids": frozenset({CREW_ID}),
    }
    values.update(overrides)
    return AccessTarget(**values)


# =============================================================================
# Authentication and Admin Rules
# =============================================================================

class TestAdminRules:
    """Test the rules decided before project scope."""

    def test_missing_caller_is_unauthenticated(self):
        decision = authorize(None, Action.READ_PROJECT, project_target())

        assert not decision.allowed
        assert isinstance(decision.error, UnauthenticatedError)

    @pytest.mark.parametrize("action", [Action.CREATE_USER, Action.VIEW_ALL_PROJECTS, Action.DELETE_PROJECT])
    def test_admin_only_actions_reject_department_heads(self, head, action):
        decision = authorize(head, action)

        assert not decision.allowed
        assert isinstance(decision.error, ForbiddenError)
        assert decision.error.message == "Forbidden - Admin access required"

    def test_admin_cannot_delete_self(self, admin):
        target = AccessTarget(user_id=ADMIN_ID, admin_ids=frozenset({ADMIN_ID, "another-admin"}))

        with pytest.raises(InvalidOperationError):
            ensure_allowed(admin, Action.DELETE_USER, target)

    def test_last_admin_cannot_be_deleted(self, admin):
        target = AccessTarget(user_id="the-only-admin", admin_ids=frozenset({"the-only-admin"}))

        decision = authorize(admin, Action.DELETE_USER, target)

        assert isinstance(decision.error, InvalidOperationError)
        assert decision.error.status_code == 400

    def test_admin_can_delete_crew(self, admin):
        target = AccessTarget(user_id=CREW_ID, admin_ids=frozenset({ADMIN_ID}))

        assert authorize(admin, Action.DELETE_USER, target).allowed

    def test_admin_can_be_deleted_once_a_second_admin_exists(self, admin):
        target = AccessTarget(user_id="admin-b", admin_ids=frozenset({ADMIN_ID, "admin-b"}))

        assert authorize(admin, Action.DELETE_USER, target).allowed

    def test_crew_cannot_delete_users_even_self(self, crew):
        target = AccessTarget(user_id=CREW_ID, admin_ids=frozenset({ADMIN_ID}))

        decision = authorize(crew, Action.DELETE_USER, target)

        assert isinstance(decision.error, ForbiddenError)


# =============================================================================
# Project Scope
# =============================================================================

class TestProjectScope:
    """Test project access for owners, members, assignees and outsiders."""

    def test_owner_and_member_can_read(self, head, crew):
        assert authorize(head, Action.READ_PROJECT, project_target()).allowed
        assert authorize(crew, Action.WRITE_PROJECT, project_target()).allowed

    def test_outsider_is_forbidden(self, outsider):
        decision = authorize(outsider, Action.READ_PROJECT, project_target())

        assert isinstance(decision.error, ForbiddenError)
        assert decision.error.message == "You do not have access to this project"

    def test_admin_reads_any_project(self, admin):
        assert authorize(admin, Action.READ_PROJECT, project_target(member_ids=frozenset())).allowed

    def test_assignee_can_update_task_without_membership(self, outsider):
        target = project_target(assignee_id=OTHER_CREW_ID)

        assert authorize(outsider, Action.UPDATE_TASK, target).allowed
        assert not authorize(outsider, Action.WRITE_PROJECT, target).allowed

    def test_only_owner_or_admin_manages_project(self, admin, head, crew):
        target = project_target()

        assert authorize(head, Action.MANAGE_PROJECT, target).allowed
        assert authorize(admin, Action.MANAGE_PROJECT, project_target(member_ids=frozenset())).allowed

        decision = authorize(crew, Action.MANAGE_PROJECT, target)
        assert isinstance(decision.error, ForbiddenError)
        assert decision.error.message == "Only the project owner or an admin can manage this project"

    def test_member_department_head_cannot_manage_someone_elses_project(self, head):
        target = project_target(project_owner_id="someone-else", member_ids=frozenset({HEAD_ID}))

        assert authorize(head, Action.WRITE_PROJECT, target).allowed
        assert not authorize(head, Action.MANAGE_PROJECT, target).allowed


# =============================================================================
# Role and Ownership Rules
# =============================================================================

class TestRoleRules:
    """Test rules that depend on role, ownership or participation."""

    def test_crew_member_cannot_create_tasks(self, crew):
        assert not authorize(crew, Action.CREATE_TASK, project_target()).allowed

    def test_department_head_on_crew_can_create_tasks(self, head):
        target = project_target(project_owner_id="someone-else", member_ids=frozenset({HEAD_ID}))

        assert authorize(head, Action.CREATE_TASK, target).allowed

    def test_only_creator_or_admin_deletes_task(self, admin, crew, head):
        target = project_target(creator_id=HEAD_ID)

        assert authorize(head, Action.DELETE_TASK, target).allowed
        assert authorize(admin, Action.DELETE_TASK, target).allowed
        assert not authorize(crew, Action.DELETE_TASK, target).allowed

    def test_only_crew_submit_reports(self, head, crew, outsider):
        assert authorize(crew, Action.CREATE_REPORT, project_target()).allowed
        assert not authorize(head, Action.CREATE_REPORT, project_target()).allowed
        assert not authorize(outsider, Action.CREATE_REPORT, project_target()).allowed

    def test_project_manager_label_allows_comments(self, crew):
        plain = project_target()
        labelled = project_target(project_manager_ids=frozenset({CREW_ID}))

        assert not authorize(crew, Action.COMMENT_ON_REPORT, plain).allowed
        assert authorize(crew, Action.COMMENT_ON_REPORT, labelled).allowed

    def test_comments_are_modified_by_their_author_only(self, admin, crew):
        target = AccessTarget(creator_id=CREW_ID)

        assert authorize(crew, Action.MODIFY_COMMENT, target).allowed
        assert not authorize(admin, Action.MODIFY_COMMENT, target).allowed

    def test_conversation_requires_participation(self, crew, outsider):
        target = AccessTarget(participant_ids=frozenset({CREW_ID, HEAD_ID}))

        assert authorize(crew, Action.READ_CONVERSATION, target).allowed
        assert not authorize(outsider, Action.READ_CONVERSATION, target).allowed

    def test_export_needs_a_manager(self, head, crew):
        assert authorize(head, Action.EXPORT_DATA).allowed
        assert not authorize(crew, Action.EXPORT_DATA).allowed


# =============================================================================
# Target Loaders
# =============================================================================

class TestTargetLoaders:
    """Test loaders that read current access facts from the database."""

    @pytest.mark.asyncio
    async def test_accessible_project_ids_merges_owned_and_member(self, db, fake_supabase):
        fake_supabase.add("projects", {"id": "owned-2", "title": "Short", "created_by": CREW_ID})

        ids = await accessible_project_ids(db, CREW_ID)

        assert ids == ["owned-2", PROJECT_ID]

    @pytest.mark.asyncio
    async def test_load_project_target(self, db, fake_supabase):
        fake_supabase.add("project_members", {"project_id": PROJECT_ID, "user_id": OTHER_CREW_ID, "role": "Project Manager"})

        target = await load_project_target(db, PROJECT_ID)

        assert target.project_owner_id == HEAD_ID
        assert target.member_ids == {CREW_ID, OTHER_CREW_ID}
        assert target.project_manager_ids == {OTHER_CREW_ID}

    @pytest.mark.asyncio
    async def test_missing_project_is_not_found(self, db, crew):
        with pytest.raises(NotFoundError):
            await authorize_project(db, crew, "missing-project")

    @pytest.mark.asyncio
    async def test_load_user_target_lists_admins(self, db):
        target = await load_user_target(db, CREW_ID)

        assert target.admin_ids == {ADMIN_ID}
