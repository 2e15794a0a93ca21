# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable utilities:
# - supabase_client.py: Async Supabase handle with logged query execution
# - aggregations.py: Pure summaries over entity rows (tasks, expenses, files)
# - utils.py: Shared utilities (error base class, UUIDs, storage paths)
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import ApplicationError, build_object_path, normalize_uuid, object_path_from_url

__all__ = [
    # Supabase
    "SupabaseClient",
    "SupabaseClientError",
    # Utils
    "ApplicationError",
    "build_object_path",
    "normalize_uuid",
    "object_path_from_url",
]
