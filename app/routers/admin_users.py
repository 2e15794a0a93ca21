# =============================================================================
# app/routers/admin_users.py - Admin User Management Endpoints
# =============================================================================
# Account creation, update and deletion through the identity provider.
# Every endpoint is admin-only; the guard runs before any field validation.
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Path

from app.auth import CallerDep
from app.dependencies import DatabaseDep
from core.models.profile import AdminUserCreate, AdminUserUpdate
from core.services.user_service import UserService

router = APIRouter()


@router.post("/admin/users")
async def create_user(body: AdminUserCreate, caller: CallerDep, db: DatabaseDep):
    """
    Create a pre-confirmed account and its profile.

    Body: {"email", "password", "fullName", "role"}; all four are required
    and role must be admin, department_head or crew.
    """
    return await UserService.create_user(db, caller, body)


@router.patch("/admin/users/{user_id}")
async def update_user(
    user_id: Annotated[str, Path(description="Profile id")],
    body: AdminUserUpdate,
    caller: CallerDep,
    db: DatabaseDep,
):
    """
    Update another user's full_name, role or email.

    An email change that the identity provider rejects still returns 200,
    with a `warning` next to the updated profile.
    """
    return await UserService.update_user(db, caller, user_id, body)


@router.delete("/admin/users/{user_id}")
async def delete_user(
    user_id: Annotated[str, Path(description="Profile id")],
    caller: CallerDep,
    db: DatabaseDep,
):
    """
    Delete a user account.

    Admins can't delete themselves or the only remaining admin.
    """
    return await UserService.delete_user(db, caller, user_id)
