# =============================================================================
# app/auth/routes.py - Authentication Routes
# =============================================================================
# API endpoints for authentication-related operations.
#
# Note: Actual signup/login is handled by Supabase Auth client-side.
# These routes are for getting the caller's profile after authentication.
# =============================================================================

import logging

from fastapi import APIRouter

from app.auth.dependencies import CallerDep
from app.auth.models import TokenVerification
from app.dependencies import DatabaseDep
from core.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.get("/me")
async def get_current_user_info(caller: CallerDep, db: DatabaseDep) -> dict:
    """
    Get the current caller's profile row.

    Raises:
        401: If not authenticated or no profile exists
    """
    return await UserService.get_user(db, caller.id)


@router.get("/verify", response_model=TokenVerification)
async def verify_token(caller: CallerDep) -> TokenVerification:
    """
    Verify that the current token is valid and resolves to a profile.

    Useful for checking if a stored token is still valid.
    """
    return TokenVerification(valid=True, user_id=caller.id, role=caller.role.value)
