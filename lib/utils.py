# =============================================================================
# lib/utils.py - Shared Utilities
# =============================================================================
# Common utilities used across the application.
# =============================================================================

import secrets
import time
from datetime import datetime, timezone
from typing import Any
from uuid import UUID


# =============================================================================
# UUID Utilities
# =============================================================================

def normalize_uuid(value: str | UUID) -> str:
    """
    Normalize a UUID to string format.

    Handles both string and UUID objects, ensuring consistent string output.

    Args:
        value: UUID as string or UUID object

    Returns:
        String representation of the UUID

    Example:
        project_id = normalize_uuid(uuid_obj)  # "550e8400-..."
        project_id = normalize_uuid("550e8400-...")  # "550e8400-..."
    """
    return str(value) if isinstance(value, UUID) else value


# =============================================================================
# Time Utilities
# =============================================================================

def utc_now_iso() -> str:
    """Current UTC instant as an ISO-8601 string, the format stored in updated_at."""
    return datetime.now(timezone.utc).isoformat()


# =============================================================================
# Storage Paths
# =============================================================================

def build_object_path(prefix: str, filename: str) -> str:
    """
    Build a collision-resistant object path inside a storage bucket.

    The path is `{prefix}/{unix_millis}-{random}.{ext}`; the original
    filename only contributes its extension.

    Example:
        build_object_path("user-1", "call sheet.pdf")  # "user-1/1760000000000-k3j9x2.pdf"
    """
    extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else "bin"
    token = secrets.token_hex(4)
    return f"{prefix}/{int(time.time() * 1000)}-{token}.{extension}"


def object_path_from_url(url: str | None, bucket: str) -> str | None:
    """
    Recover an object path inside `bucket` from a stored reference.

    Accepts a full public URL, a partial reference containing "{bucket}/",
    or a bare object path.

    Args:
        url: e.g. https://x.supabase.co/storage/v1/object/public/reports/u/1.png
        bucket: The bucket the reference should point into

    Returns:
        "u/1.png" for the example above, or None when nothing usable remains
        (empty input, or an http URL into some other location).
    """
    if not url:
        return None

    public_marker = f"/storage/v1/object/public/{bucket}/"
    if public_marker in url:
        path = url.split(public_marker, 1)[1]
    elif f"{bucket}/" in url:
        path = url.split(f"{bucket}/", 1)[1]
    elif url.startswith(("http://", "https://")):
        return None
    else:
        path = url

    path = path.split("?", 1)[0].lstrip("/")
    return path or None


# =============================================================================
# Base Error Class
# =============================================================================

class ApplicationError(Exception):
    """
    Base error class for errors raised by lib/ and agents/.

    Attributes:
        code: Error code for categorization
        message: Human-readable error message
        details: Additional context for debugging (logged, never returned to callers)

    Example:
        class MyServiceError(ApplicationError):
            def __init__(self, message: str, **kwargs):
                super().__init__(message, code="MY_SERVICE_ERROR", **kwargs)
    """

    def __init__(
        self,
        message: str,
        code: str = "APPLICATION_ERROR",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.details:
            result += f" {self.details}"
        return result
