# =============================================================================
# app/dependencies.py - Shared Dependencies
# =============================================================================
# FastAPI dependency injection for shared resources.
# These are injected into route handlers using Depends().
# =============================================================================

from typing import Annotated

from fastapi import Depends, Request

from lib.supabase_client import SupabaseClient


def get_db(request: Request) -> SupabaseClient:
    """
    Get the Supabase handle for this request.

    The handle is built once in the app lifespan and stored on app.state;
    tests swap it for one wrapping an in-memory client.
    """
    return request.app.state.db


# Type alias for dependency injection
DatabaseDep = Annotated[SupabaseClient, Depends(get_db)]
