# =============================================================================
# core/services/file_service.py - Project Document Logic
# =============================================================================
# A project file is a metadata row in `files` pointing at an object in the
# FILES_BUCKET storage bucket.
#
# Upload:  validate -> store object -> insert row
# Replace: best-effort delete of the old object -> update row
# Delete:  best-effort delete of the object -> delete row
#
# Storage cleanup never blocks the row change; a failed cleanup is logged
# and leaves an orphaned object behind.
# =============================================================================

import logging
from typing import Any

from app.config import settings
from app.exceptions import NotFoundError, ValidationFailedError
from core.models.file import FileType, FileUpdate
from core.models.profile import Caller
from core.services.authorization import Action, accessible_project_ids, authorize_project
from core.services.storage_service import StorageService
from lib.aggregations import file_stats
from lib.supabase_client import SupabaseClient, SupabaseClientError

logger = logging.getLogger(__name__)

FILE_WITH_UPLOADER = "*, uploader:profiles!uploaded_by(id, full_name, email)"


class FileService:
    """Service for project file metadata and stored objects."""

    @staticmethod
    async def _fetch_file(db: SupabaseClient, file_id: str, columns: str = "*") -> dict[str, Any]:
        client = await db.get_client()
        row = await db.fetch_one(
            client.table("files").select(columns).eq("id", file_id).limit(1),
            "fetch file",
        )
        if row is None:
            raise NotFoundError("File", file_id)
        return row

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @staticmethod
    async def list_files(db: SupabaseClient, caller: Caller) -> list[dict[str, Any]]:
        """Files across the caller's projects, newest first."""
        project_ids = await accessible_project_ids(db, caller.id)
        if not project_ids:
            return []

        client = await db.get_client()
        return await db.fetch_all(
            client.table("files")
            .select(f"{FILE_WITH_UPLOADER}, project:projects(id, title)")
            .in_("project_id", project_ids)
            .order("created_at", desc=True),
            "list files",
        )

    @staticmethod
    async def list_project_files(db: SupabaseClient, caller: Caller, project_id: str) -> list[dict[str, Any]]:
        await authorize_project(db, caller, project_id, Action.READ_PROJECT)

        client = await db.get_client()
        return await db.fetch_all(
            client.table("files")
            .select(FILE_WITH_UPLOADER)
            .eq("project_id", project_id)
            .order("created_at", desc=True),
            "list project files",
        )

    @staticmethod
    async def get_file(db: SupabaseClient, caller: Caller, file_id: str) -> dict[str, Any]:
        row = await FileService._fetch_file(db, file_id, FILE_WITH_UPLOADER)
        await authorize_project(db, caller, row["project_id"], Action.READ_PROJECT)
        return row

    @staticmethod
    async def file_stats(db: SupabaseClient, caller: Caller, project_id: str) -> dict[str, Any]:
        """Count, total size and per-type tally of a project's files."""
        files = await FileService.list_project_files(db, caller, project_id)
        return file_stats(files)

    @staticmethod
    async def download_url(db: SupabaseClient, caller: Caller, file_id: str) -> dict[str, str]:
        """Time-limited URL for a file's stored object."""
        row = await FileService.get_file(db, caller, file_id)
        url = await StorageService.signed_url(db, settings.FILES_BUCKET, row["file_url"])
        return {"url": url}

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    @staticmethod
    async def upload_file(
        db: SupabaseClient,
        caller: Caller,
        project_id: str,
        file_type: FileType,
        filename: str,
        content: bytes,
        content_type: str,
    ) -> dict[str, Any]:
        """
        Store a document and record its metadata row.

        Validation happens before anything is written. If the row insert
        fails after the upload, the just-stored object is removed again
        (best-effort) and the error propagates.

        Raises:
            ValidationFailedError: Oversized or disallowed file
            ForbiddenError: No write access to the project
        """
        await authorize_project(db, caller, project_id, Action.WRITE_PROJECT)
        StorageService.validate_upload(content_type, len(content))

        file_url = await StorageService.upload(
            db, settings.FILES_BUCKET, project_id, filename, content, content_type
        )

        client = await db.get_client()
        try:
            row = await db.fetch_one(
                client.table("files").insert({
                    "project_id": project_id,
                    "file_name": filename,
                    "file_type": file_type.value,
                    "file_url": file_url,
                    "file_size": len(content),
                    "uploaded_by": caller.id,
                }),
                "create file record",
            )
        except SupabaseClientError:
            if not await StorageService.delete_object(db, settings.FILES_BUCKET, file_url):
                logger.warning(f"Orphaned upload left in storage: {file_url}")
            raise

        logger.info(f"Uploaded {file_type.value} '{filename}' to project {project_id}")
        return row or {}

    @staticmethod
    async def update_file(
        db: SupabaseClient,
        caller: Caller,
        file_id: str,
        body: FileUpdate,
    ) -> dict[str, Any]:
        """
        Update file metadata; replacing `file_url` first removes the old object.
        """
        row = await FileService._fetch_file(db, file_id)
        await authorize_project(db, caller, row["project_id"], Action.WRITE_PROJECT)

        updates = body.model_dump(mode="json", exclude_unset=True)
        if not updates:
            raise ValidationFailedError("No fields to update")

        old_url = row.get("file_url")
        if "file_url" in updates and updates["file_url"] != old_url and old_url:
            if not await StorageService.delete_object(db, settings.FILES_BUCKET, old_url):
                logger.warning(f"Could not remove replaced object for file {file_id}: {old_url}")

        client = await db.get_client()
        updated = await db.fetch_one(
            client.table("files").update(updates).eq("id", file_id),
            "update file",
        )
        if updated is None:
            raise NotFoundError("File", file_id)
        return updated

    @staticmethod
    async def delete_file(db: SupabaseClient, caller: Caller, file_id: str) -> None:
        """Remove the stored object (best-effort) and then the row."""
        row = await FileService._fetch_file(db, file_id)
        await authorize_project(db, caller, row["project_id"], Action.WRITE_PROJECT)

        if not await StorageService.delete_object(db, settings.FILES_BUCKET, row.get("file_url")):
            logger.warning(f"Could not remove stored object for file {file_id}; deleting row anyway")

        client = await db.get_client()
        deleted = await db.fetch_all(client.table("files").delete().eq("id", file_id), "delete file")
        if not deleted:
            raise NotFoundError("File", file_id)
        logger.info(f"Deleted file {file_id}")
