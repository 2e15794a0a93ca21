# =============================================================================
# app/auth/__init__.py - Authentication Module
# =============================================================================
# Provides JWT-based authentication using Supabase Auth, resolved to the
# caller's profile.
#
# Usage:
#   from app.auth import CallerDep
#
#   @router.get("/protected")
#   async def protected(caller: CallerDep):
#       return {"user_id": caller.id}
# =============================================================================

from app.auth.dependencies import CallerDep, get_caller, get_current_user
from app.auth.models import AuthUser, TokenVerification

__all__ = [
    "CallerDep",
    "get_caller",
    "get_current_user",
    "AuthUser",
    "TokenVerification",
]
