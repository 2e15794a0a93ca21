# =============================================================================
# app/routers/users.py - Profile Endpoints
# =============================================================================
# Profile listing, search and self-service updates, plus the department list.
# All endpoints require authentication.
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Path, Query

from app.auth import CallerDep
from app.dependencies import DatabaseDep
from core.models.profile import Department, ProfileUpdate, Role
from core.services.user_service import UserService

router = APIRouter()


@router.get("/users")
async def list_users(
    caller: CallerDep,
    db: DatabaseDep,
    role: Annotated[Role | None, Query(description="Filter by role")] = None,
):
    """List profiles, newest first."""
    return await UserService.list_users(db, role)


@router.get("/users/search")
async def search_users(
    caller: CallerDep,
    db: DatabaseDep,
    q: Annotated[str, Query(min_length=1, description="Name or email fragment")],
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
):
    """Case-insensitive search on full name or email."""
    return await UserService.search_users(db, q, limit)


@router.get("/users/stats")
async def user_stats(caller: CallerDep, db: DatabaseDep):
    """Profile counts: total, admins, department_heads, crew."""
    return await UserService.user_stats(db)


@router.patch("/users/me")
async def update_own_profile(body: ProfileUpdate, caller: CallerDep, db: DatabaseDep):
    """Update your own full_name, department or avatar_url."""
    return await UserService.update_own_profile(db, caller, body)


@router.get("/users/{user_id}")
async def get_user(
    user_id: Annotated[str, Path(description="Profile id")],
    caller: CallerDep,
    db: DatabaseDep,
):
    return await UserService.get_user(db, user_id)


@router.get("/departments")
async def list_departments(caller: CallerDep):
    """The twelve production departments with display labels."""
    return [{"value": d.value, "label": d.label} for d in Department]
