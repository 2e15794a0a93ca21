# =============================================================================
# app/auth/models.py - Authentication Models
# =============================================================================
# Pydantic models for authentication data.
# =============================================================================

from pydantic import BaseModel, ConfigDict


class AuthUser(BaseModel):
    """
    Authenticated user extracted from a Supabase JWT.

    This is the minimal user info available from the token itself, without
    querying the database. Routes use the resolved Caller instead.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    email: str | None = None


class TokenVerification(BaseModel):
    """Response for GET /auth/verify."""

    valid: bool
    user_id: str
    role: str
