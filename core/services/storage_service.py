# =============================================================================
# core/services/storage_service.py - Supabase Storage Operations
# =============================================================================
# Handles object uploads, public/signed URLs and deletions in Supabase
# Storage, plus the upload validation shared by project files and report
# attachments.
#
# Deletion is best-effort: `delete_object` reports success as a bool and
# never raises, so callers can log the outcome and carry on with the row
# change it belongs to.
# =============================================================================

import logging

from app.config import settings
from app.exceptions import UpstreamFailureError, ValidationFailedError
from lib.supabase_client import SupabaseClient
from lib.utils import build_object_path, object_path_from_url

logger = logging.getLogger(__name__)


class StorageService:
    """
    Service for Supabase Storage operations.

    All methods take the database handle explicitly; bucket names come from
    settings (REPORTS_BUCKET, FILES_BUCKET).
    """

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    @staticmethod
    def validate_upload(content_type: str | None, size: int) -> None:
        """
        Check an upload before anything is written.

        Args:
            content_type: MIME type reported by the client
            size: Size in bytes

        Raises:
            ValidationFailedError: If the file is too large or of a disallowed type
        """
        max_mb = settings.MAX_ATTACHMENT_SIZE_MB
        if size > settings.max_attachment_size_bytes:
            raise ValidationFailedError(
                f"File size must be less than {max_mb}MB",
                details={"size": size, "max_bytes": settings.max_attachment_size_bytes},
            )

        if (content_type or "").lower() not in settings.allowed_attachment_types_list:
            raise ValidationFailedError(
                "File must be an image (JPEG, PNG, GIF, WebP) or PDF",
                details={"content_type": content_type},
            )

    # -------------------------------------------------------------------------
    # Upload
    # -------------------------------------------------------------------------

    @staticmethod
    async def upload(
        db: SupabaseClient,
        bucket: str,
        prefix: str,
        filename: str,
        content: bytes,
        content_type: str,
    ) -> str:
        """
        Validate and upload a file, returning its public URL.

        The object lands at `{prefix}/{timestamp}-{random}.{ext}`.

        Args:
            db: Database handle
            bucket: Target bucket
            prefix: First path segment (user id or project id)
            filename: Original filename (only its extension is kept)
            content: File bytes
            content_type: MIME type

        Returns:
            Public URL of the stored object

        Raises:
            ValidationFailedError: If validation fails (nothing is written)
            UpstreamFailureError: If the upload fails
        """
        StorageService.validate_upload(content_type, len(content))

        client = await db.get_client()
        path = build_object_path(prefix, filename)

        try:
            bucket_api = client.storage.from_(bucket)
            await bucket_api.upload(
                path=path,
                file=content,
                file_options={"content-type": content_type, "upsert": "false"},
            )
            public_url = await bucket_api.get_public_url(path)
        except Exception as e:
            logger.error(f"Storage upload failed ({bucket}/{path}): {e}")
            raise UpstreamFailureError("Failed to upload file")

        logger.info(f"Uploaded file to storage: {bucket}/{path} ({len(content)} bytes)")
        return public_url

    # -------------------------------------------------------------------------
    # URLs
    # -------------------------------------------------------------------------

    @staticmethod
    async def signed_url(db: SupabaseClient, bucket: str, stored_url: str) -> str:
        """
        Get a time-limited URL for a stored object.

        Falls back to the stored URL when no object path can be derived from
        it or when signing fails, so private and public buckets both work.
        """
        path = object_path_from_url(stored_url, bucket)
        if path is None:
            return stored_url

        try:
            client = await db.get_client()
            result = await client.storage.from_(bucket).create_signed_url(
                path, settings.SIGNED_URL_TTL_SECONDS
            )
        except Exception as e:
            logger.warning(f"Signed URL failed for {bucket}/{path}, using stored URL: {e}")
            return stored_url

        signed = None
        if isinstance(result, dict):
            signed = result.get("signedURL") or result.get("signedUrl")
        return signed or stored_url

    # -------------------------------------------------------------------------
    # Delete
    # -------------------------------------------------------------------------

    @staticmethod
    async def delete_object(db: SupabaseClient, bucket: str, stored_url: str | None) -> bool:
        """
        Best-effort removal of a stored object.

        Args:
            db: Database handle
            bucket: Bucket the object lives in
            stored_url: Public URL (or path) saved on the row

        Returns:
            True if the object was removed (or there was nothing to remove),
            False if removal failed. Never raises.
        """
        path = object_path_from_url(stored_url, bucket)
        if path is None:
            return True

        try:
            client = await db.get_client()
            await client.storage.from_(bucket).remove([path])
            logger.info(f"Deleted file from storage: {bucket}/{path}")
            return True
        except Exception as e:
            logger.error(f"Storage delete failed ({bucket}/{path}): {e}")
            return False
