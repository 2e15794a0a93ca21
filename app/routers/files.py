# =============================================================================
# app/routers/files.py - Project Document Endpoints
# =============================================================================
# Uploads go to object storage first, then a metadata row is written.
# Downloads hand out short-lived signed URLs.
# =============================================================================

import logging
from typing import Annotated

from fastapi import APIRouter, File, Form, Path, UploadFile, status

from app.auth import CallerDep
from app.config import settings
from app.dependencies import DatabaseDep
from core.models.file import FileType, FileUpdate
from core.services.file_service import FileService

logger = logging.getLogger(__name__)

router = APIRouter()

FileId = Annotated[str, Path(description="File id")]
ProjectId = Annotated[str, Path(description="Project id")]

UPLOAD_DESCRIPTION = f"Document to upload (image or PDF, max {settings.MAX_ATTACHMENT_SIZE_MB}MB)"


@router.get("/files")
async def list_files(caller: CallerDep, db: DatabaseDep):
    """Files across your projects, newest first."""
    return await FileService.list_files(db, caller)


@router.post("/files", status_code=status.HTTP_201_CREATED)
async def upload_file(
    caller: CallerDep,
    db: DatabaseDep,
    file: Annotated[UploadFile, File(description=UPLOAD_DESCRIPTION)],
    project_id: Annotated[str, Form(description="Project the document belongs to")],
    file_type: Annotated[FileType, Form(description="script, contract, call_sheet or other")] = FileType.OTHER,
):
    content = await file.read()
    logger.info(f"Upload of {file.filename} ({len(content)} bytes) to project {project_id}")
    return await FileService.upload_file(
        db,
        caller,
        project_id,
        file_type,
        file.filename or "upload",
        content,
        file.content_type or "application/octet-stream",
    )


@router.get("/files/{file_id}")
async def get_file(file_id: FileId, caller: CallerDep, db: DatabaseDep):
    return await FileService.get_file(db, caller, file_id)


@router.get("/files/{file_id}/download-url")
async def download_url(file_id: FileId, caller: CallerDep, db: DatabaseDep):
    """Signed URL valid for one hour."""
    return await FileService.download_url(db, caller, file_id)


@router.patch("/files/{file_id}")
async def update_file(file_id: FileId, body: FileUpdate, caller: CallerDep, db: DatabaseDep):
    return await FileService.update_file(db, caller, file_id, body)


@router.delete("/files/{file_id}")
async def delete_file(file_id: FileId, caller: CallerDep, db: DatabaseDep):
    await FileService.delete_file(db, caller, file_id)
    return {"success": True, "message": "File deleted successfully"}


@router.get("/projects/{project_id}/files")
async def list_project_files(project_id: ProjectId, caller: CallerDep, db: DatabaseDep):
    return await FileService.list_project_files(db, caller, project_id)


@router.get("/projects/{project_id}/files/stats")
async def file_stats(project_id: ProjectId, caller: CallerDep, db: DatabaseDep):
    """File count and total size per file type."""
    return await FileService.file_stats(db, caller, project_id)
