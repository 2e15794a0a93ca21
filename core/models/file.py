# =============================================================================
# core/models/file.py - Project File Schemas
# =============================================================================
# A `files` row is metadata only; the bytes live in object storage and the
# row points at them through `file_url`.
# =============================================================================

from enum import Enum

from pydantic import BaseModel, Field


class FileType(str, Enum):
    """Kind of production document."""
    SCRIPT = "script"
    CONTRACT = "contract"
    CALL_SHEET = "call_sheet"
    OTHER = "other"


FILE_TYPES = tuple(file_type.value for file_type in FileType)


class FileUpdate(BaseModel):
    """
    Body for PATCH /files/{id}.

    Setting `file_url` replaces the stored object reference; the previous
    object is removed from storage on a best-effort basis.
    """

    file_name: str | None = Field(default=None, min_length=1, max_length=255)
    file_type: FileType | None = None
    file_url: str | None = None
    file_size: int | None = Field(default=None, ge=0)
