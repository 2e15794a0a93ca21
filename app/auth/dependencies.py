# =============================================================================
# app/auth/dependencies.py - FastAPI Auth Dependencies
# =============================================================================
# Resolves the caller of every request.
#
# The Supabase access token is taken from the Authorization: Bearer header,
# falling back to the auth cookie. It is verified with:
# - ES256 / RS256 (Supabase JWT signing keys) via JWKS
# - HS256 (legacy Supabase JWT secret)
#
# The token's user id is then looked up in `profiles` on every request, so a
# role change applies to the very next call. A valid token without a profile
# row is treated as unauthenticated.
#
# Usage:
#   from app.auth import CallerDep
#
#   @router.get("/protected")
#   async def protected(caller: CallerDep):
#       return {"user_id": caller.id, "role": caller.role}
# =============================================================================

import logging
import time
from typing import Annotated, Any

import httpx
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt

from app.auth.models import AuthUser
from app.config import settings
from app.dependencies import DatabaseDep
from app.exceptions import UnauthenticatedError
from core.models.profile import Caller, Role
from core.services.user_service import UserService

logger = logging.getLogger(__name__)

# HTTP Bearer token extractor; missing headers fall through to the cookie
security = HTTPBearer(auto_error=False)

TOKEN_AUDIENCE = "authenticated"
ASYMMETRIC_ALGORITHMS = {"ES256", "RS256"}


# =============================================================================
# JWKS
# =============================================================================

class JWKSCache:
    """Signing keys fetched from the Supabase JWKS endpoint, reused for a TTL."""

    def __init__(self, ttl_seconds: int):
        self.ttl_seconds = ttl_seconds
        self.keys: list[dict[str, Any]] = []
        self.fetched_at: float = 0

    def is_fresh(self) -> bool:
        return bool(self.keys) and (time.time() - self.fetched_at) < self.ttl_seconds

    async def get_keys(self) -> list[dict[str, Any]]:
        """Return cached keys, refreshing them when stale."""
        if self.is_fresh():
            return self.keys

        try:
            async with httpx.AsyncClient(timeout=10) as client:
                response = await client.get(settings.jwks_url)
                response.raise_for_status()
            self.keys = response.json().get("keys", [])
            self.fetched_at = time.time()
            logger.debug(f"Fetched {len(self.keys)} JWKS keys from {settings.jwks_url}")
        except (httpx.HTTPError, ValueError) as e:
            # Stale keys are still better than none
            logger.warning(f"Failed to fetch JWKS: {e}")

        return self.keys

    def clear(self) -> None:
        self.keys = []
        self.fetched_at = 0


_jwks_cache = JWKSCache(ttl_seconds=settings.JWKS_CACHE_TTL_SECONDS)


async def _get_signing_key(token: str) -> tuple[Any, str]:
    """
    Get the key and algorithm to verify a token with.

    Raises:
        UnauthenticatedError: If no usable key exists for the token
    """
    try:
        header = jwt.get_unverified_header(token)
    except JWTError:
        raise UnauthenticatedError()

    alg = header.get("alg", "HS256")
    kid = header.get("kid")

    if alg == "HS256":
        if not settings.SUPABASE_JWT_SECRET:
            logger.warning("HS256 token received but SUPABASE_JWT_SECRET is not set")
            raise UnauthenticatedError()
        return settings.SUPABASE_JWT_SECRET, alg

    if alg in ASYMMETRIC_ALGORITHMS and kid:
        for key in await _jwks_cache.get_keys():
            if key.get("kid") == kid:
                return key, alg

    logger.warning(f"No signing key for alg={alg}, kid={kid}")
    raise UnauthenticatedError()


# =============================================================================
# Dependencies
# =============================================================================

def extract_token(request: Request, credentials: HTTPAuthorizationCredentials | None) -> str | None:
    """Bearer token from the header, else the auth cookie."""
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.AUTH_COOKIE_NAME) or None


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> AuthUser:
    """
    Extract and validate the user from a Supabase JWT.

    Returns:
        AuthUser with the token's subject and email

    Raises:
        UnauthenticatedError: Missing, invalid or expired token
    """
    token = extract_token(request, credentials)
    if not token:
        raise UnauthenticatedError()

    signing_key, algorithm = await _get_signing_key(token)

    try:
        payload = jwt.decode(token, signing_key, algorithms=[algorithm], audience=TOKEN_AUDIENCE)
    except ExpiredSignatureError:
        logger.info("JWT token has expired")
        raise UnauthenticatedError()
    except JWTError as e:
        logger.warning(f"JWT validation failed: {e}")
        raise UnauthenticatedError()

    user_id = payload.get("sub")
    if not user_id:
        logger.warning("JWT token missing 'sub' claim")
        raise UnauthenticatedError()

    return AuthUser(id=user_id, email=payload.get("email"))


async def get_caller(
    db: DatabaseDep,
    user: AuthUser = Depends(get_current_user),
) -> Caller:
    """
    Resolve the authenticated user to their profile.

    Raises:
        UnauthenticatedError: No profile row, or a profile with an unknown role
    """
    profile = await UserService.get_profile(db, user.id)
    if profile is None:
        logger.warning(f"Authenticated user {user.id} has no profile")
        raise UnauthenticatedError()

    role = Role.parse(profile.get("role"))
    if role is None:
        logger.warning(f"Profile {user.id} has unknown role {profile.get('role')!r}")
        raise UnauthenticatedError()

    return Caller(
        id=profile["id"],
        email=profile.get("email") or user.email,
        full_name=profile.get("full_name"),
        role=role,
        department=profile.get("department"),
    )


# Type alias for dependency injection
CallerDep = Annotated[Caller, Depends(get_caller)]
