# =============================================================================
# core/services/user_service.py - Profiles and User Administration
# =============================================================================
# Handles profile reads, self-service profile edits and the admin-only
# account operations (create / update / delete), which also call the
# Supabase Auth admin API.
#
# Account deletion goes through the identity provider; the profile row is
# removed by the database cascade from auth.users.
# =============================================================================

import asyncio
import logging
from typing import Any

from app.exceptions import NotFoundError, UpstreamFailureError, ValidationFailedError
from core.models.profile import (
    AdminUserCreate,
    AdminUserUpdate,
    Caller,
    ProfileUpdate,
    Role,
)
from core.services.authorization import Action, ensure_allowed, load_user_target
from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import utc_now_iso

logger = logging.getLogger(__name__)

MISSING_FIELDS_MESSAGE = "Missing required fields: email, password, fullName, role"
INVALID_ROLE_MESSAGE = "Invalid role. Must be: admin, department_head, or crew"
NO_FIELDS_MESSAGE = "At least one field must be provided: full_name, role, or email"
EMAIL_CHANGE_WARNING = "Profile updated but email change failed. User may need to re-verify."

PROFILE_COLUMNS = "id, email, full_name, role, department, avatar_url, created_at, updated_at"


class UserService:
    """
    Service for profile and account operations.

    Reads are open to any authenticated caller; account administration is
    checked against the guard before any write.
    """

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @staticmethod
    async def get_profile(db: SupabaseClient, user_id: str) -> dict[str, Any] | None:
        """Fetch one profile row, or None if it doesn't exist."""
        client = await db.get_client()
        return await db.fetch_one(
            client.table("profiles").select(PROFILE_COLUMNS).eq("id", user_id).limit(1),
            "fetch profile",
        )

    @staticmethod
    async def get_user(db: SupabaseClient, user_id: str) -> dict[str, Any]:
        """
        Fetch one profile.

        Raises:
            NotFoundError: If the profile doesn't exist
        """
        profile = await UserService.get_profile(db, user_id)
        if profile is None:
            raise NotFoundError("User", user_id)
        return profile

    @staticmethod
    async def list_users(db: SupabaseClient, role: Role | None = None) -> list[dict[str, Any]]:
        """List profiles, newest first, optionally filtered by role."""
        client = await db.get_client()
        query = client.table("profiles").select(PROFILE_COLUMNS)
        if role is not None:
            query = query.eq("role", role.value)
        return await db.fetch_all(query.order("created_at", desc=True), "list profiles")

    @staticmethod
    async def search_users(db: SupabaseClient, term: str, limit: int = 20) -> list[dict[str, Any]]:
        """
        Case-insensitive search on full name or email.

        Characters that carry meaning in a PostgREST filter list are removed
        from the term first.
        """
        cleaned = "".join(ch for ch in term if ch not in ",()*%").strip()
        if not cleaned:
            return []

        client = await db.get_client()
        pattern = f"%{cleaned}%"
        return await db.fetch_all(
            client.table("profiles")
            .select(PROFILE_COLUMNS)
            .or_(f"full_name.ilike.{pattern},email.ilike.{pattern}")
            .order("full_name")
            .limit(limit),
            "search profiles",
        )

    @staticmethod
    async def user_stats(db: SupabaseClient) -> dict[str, int]:
        """Count profiles per role."""
        client = await db.get_client()
        rows = await db.fetch_all(client.table("profiles").select("role"), "fetch profile roles")
        roles = [row.get("role") for row in rows]
        return {
            "total": len(roles),
            "admins": roles.count(Role.ADMIN.value),
            "department_heads": roles.count(Role.DEPARTMENT_HEAD.value),
            "crew": roles.count(Role.CREW.value),
        }

    # -------------------------------------------------------------------------
    # Self-service
    # -------------------------------------------------------------------------

    @staticmethod
    async def update_own_profile(
        db: SupabaseClient,
        caller: Caller,
        body: ProfileUpdate,
    ) -> dict[str, Any]:
        """
        Update the caller's own profile (never the role).

        Raises:
            ValidationFailedError: If no field is provided
        """
        updates = body.model_dump(mode="json", exclude_unset=True)
        if not updates:
            raise ValidationFailedError("No fields to update")
        updates["updated_at"] = utc_now_iso()

        client = await db.get_client()
        profile = await db.fetch_one(
            client.table("profiles").update(updates).eq("id", caller.id),
            "update own profile",
        )
        if profile is None:
            raise NotFoundError("User", caller.id)

        logger.info(f"Profile {caller.id} updated fields: {sorted(updates)}")
        return profile

    # -------------------------------------------------------------------------
    # Administration
    # -------------------------------------------------------------------------

    @staticmethod
    async def create_user(
        db: SupabaseClient,
        caller: Caller,
        body: AdminUserCreate,
    ) -> dict[str, Any]:
        """
        Create an auth identity and its profile.

        The identity is created pre-confirmed with the name and role in its
        metadata. If the follow-up profile upsert fails the account still
        exists, so a profile-shaped dict built from the request is returned.

        Returns:
            {"user": profile}

        Raises:
            ForbiddenError: If the caller isn't an admin
            ValidationFailedError: If fields are missing or the role is invalid
            UpstreamFailureError: If the identity provider call fails
        """
        ensure_allowed(caller, Action.CREATE_USER)

        if not (body.email and body.password and body.fullName and body.role):
            raise ValidationFailedError(MISSING_FIELDS_MESSAGE)
        role = Role.parse(body.role)
        if role is None:
            raise ValidationFailedError(INVALID_ROLE_MESSAGE)

        client = await db.get_client()
        try:
            response = await client.auth.admin.create_user({
                "email": body.email,
                "password": body.password,
                "email_confirm": True,
                "user_metadata": {"full_name": body.fullName, "role": role.value},
            })
        except Exception as e:
            logger.error(f"Identity provider rejected user creation for {body.email}: {e}")
            raise UpstreamFailureError("Failed to create user")

        auth_user = getattr(response, "user", None)
        if auth_user is None:
            logger.error(f"Identity provider returned no user for {body.email}")
            raise UpstreamFailureError("Failed to create user")

        user_id = str(auth_user.id)
        profile_data = {
            "id": user_id,
            "email": body.email,
            "full_name": body.fullName,
            "role": role.value,
        }

        try:
            profile = await db.fetch_one(
                client.table("profiles").upsert(profile_data),
                "upsert profile",
            )
        except SupabaseClientError as e:
            logger.warning(f"User {user_id} created but profile upsert failed: {e}")
            profile = None

        if profile is None:
            created_at = getattr(auth_user, "created_at", None)
            profile = {**profile_data, "created_at": str(created_at) if created_at else None}

        logger.info(f"Admin {caller.id} created user {user_id} with role {role.value}")
        return {"user": profile}

    @staticmethod
    async def update_user(
        db: SupabaseClient,
        caller: Caller,
        user_id: str,
        body: AdminUserUpdate,
    ) -> dict[str, Any]:
        """
        Update another user's name, role or email.

        An email change is pushed to the identity provider after the profile
        write; if that second step fails the profile change stands and the
        response carries a `warning` instead of failing.

        Returns:
            {"user": profile} or {"user": profile, "warning": str}
        """
        ensure_allowed(caller, Action.UPDATE_USER)

        if not (body.full_name or body.role or body.email):
            raise ValidationFailedError(NO_FIELDS_MESSAGE)
        if body.role and Role.parse(body.role) is None:
            raise ValidationFailedError(INVALID_ROLE_MESSAGE)

        updates: dict[str, Any] = {"updated_at": utc_now_iso()}
        if body.full_name:
            updates["full_name"] = body.full_name
        if body.role:
            updates["role"] = body.role
        if body.email:
            updates["email"] = body.email

        client = await db.get_client()
        profile = await db.fetch_one(
            client.table("profiles").update(updates).eq("id", user_id),
            "update profile",
        )
        if profile is None:
            raise NotFoundError("User", user_id)

        if body.email:
            try:
                await client.auth.admin.update_user_by_id(user_id, {"email": body.email})
            except Exception as e:
                logger.warning(f"Profile {user_id} updated but email change failed: {e}")
                return {"user": profile, "warning": EMAIL_CHANGE_WARNING}

        logger.info(f"Admin {caller.id} updated user {user_id}: {sorted(updates)}")
        return {"user": profile}

    @staticmethod
    async def delete_user(db: SupabaseClient, caller: Caller, user_id: str) -> dict[str, Any]:
        """
        Delete a user account through the identity provider.

        Raises:
            ForbiddenError: If the caller isn't an admin
            InvalidOperationError: Self-delete, or deleting the last admin
            NotFoundError: If the profile doesn't exist
            UpstreamFailureError: If the identity provider call fails
        """
        target, profile = await asyncio.gather(
            load_user_target(db, user_id),
            UserService.get_profile(db, user_id),
        )
        ensure_allowed(caller, Action.DELETE_USER, target)

        if profile is None:
            raise NotFoundError("User", user_id)

        client = await db.get_client()
        try:
            await client.auth.admin.delete_user(user_id)
        except Exception as e:
            logger.error(f"Identity provider failed to delete user {user_id}: {e}")
            raise UpstreamFailureError("Failed to delete user")

        logger.info(f"Admin {caller.id} deleted user {user_id}")
        return {"success": True, "message": "User deleted successfully"}
