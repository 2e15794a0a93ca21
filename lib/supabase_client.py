# =============================================================================
# lib/supabase_client.py - Supabase Client Handle
# =============================================================================
# This module provides the one database handle the API shares across requests.
#
# A SupabaseClient is a plain value built from configuration (project URL and
# key). It lazily creates the async supabase client the first time a query
# runs and reuses it afterwards; it holds no other state. The FastAPI
# lifespan builds one and every route receives it through a dependency, so
# services always get their handle as a parameter.
#
# Query execution goes through `fetch_all` / `fetch_one` / `execute` so every
# failing call is logged with context and re-raised as SupabaseClientError.
#
# Usage:
#   db = SupabaseClient.from_settings(settings)
#   client = await db.get_client()
#   rows = await db.fetch_all(
#       client.table("tasks").select("*").eq("project_id", project_id),
#       "fetch project tasks",
#   )
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from supabase import AsyncClient, acreate_client

from lib.utils import ApplicationError

if TYPE_CHECKING:
    from app.config import Settings

# Set up logging for this module
logger = logging.getLogger(__name__)


class SupabaseClientError(ApplicationError):
    """
    Error during Supabase operations.

    Carries the failed action for logs. API handlers turn it into a generic
    500 without exposing the underlying message.
    """

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code=code, details=details)


class SupabaseClient:
    """
    Configuration-bearing handle for the Supabase project.

    Example:
        db = SupabaseClient(url="https://xxx.supabase.co", key="service-key")
        client = await db.get_client()
        profile = await db.fetch_one(
            client.table("profiles").select("*").eq("id", user_id).limit(1),
            "fetch profile",
        )

    Attributes:
        url: Supabase project URL
        key: API key used for every call (service role on the server)
    """

    def __init__(self, url: str, key: str, client: AsyncClient | None = None):
        self.url = url
        self.key = key
        self._client = client
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> SupabaseClient:
        """
        Build the handle from application settings.

        Uses the service_role key: authorization is enforced by the API's own
        guard, and the admin identity calls need it.
        """
        return cls(url=settings.SUPABASE_URL, key=settings.SUPABASE_SERVICE_KEY)

    async def get_client(self) -> AsyncClient:
        """
        Get or create the underlying async client.

        Returns:
            AsyncClient: Supabase client instance

        Raises:
            SupabaseClientError: If client creation fails
        """
        if self._client is None:
            async with self._lock:
                if self._client is None:
                    try:
                        self._client = await acreate_client(self.url, self.key)
                        logger.info("Supabase client initialized successfully")
                    except Exception as e:
                        raise SupabaseClientError(
                            message=f"Failed to create Supabase client: {e}",
                            code="CLIENT_INIT_FAILED",
                        )
        return self._client

    # -------------------------------------------------------------------------
    # Query Execution
    # -------------------------------------------------------------------------

    async def execute(self, query: Any, action: str) -> Any:
        """
        Execute a prepared query builder.

        Args:
            query: A postgrest request builder (select/insert/update/delete)
            action: Short description for logs, e.g. "fetch project tasks"

        Returns:
            The postgrest response (may be None for maybe_single queries)

        Raises:
            SupabaseClientError: If the call fails
        """
        try:
            return await query.execute()
        except Exception as e:
            logger.error(f"Supabase call failed ({action}): {e}")
            raise SupabaseClientError(
                message=f"Failed to {action}",
                code="QUERY_FAILED",
                details={"error": str(e)},
            )

    async def fetch_all(self, query: Any, action: str) -> list[dict[str, Any]]:
        """Execute a query and return its rows (empty list when none)."""
        response = await self.execute(query, action)
        if response is None:
            return []
        return list(response.data or [])

    async def fetch_one(self, query: Any, action: str) -> dict[str, Any] | None:
        """
        Execute a query and return its first row, or None.

        Callers add `.limit(1)` rather than `.single()` so a missing row is a
        normal result and not an error.
        """
        rows = await self.fetch_all(query, action)
        return rows[0] if rows else None
