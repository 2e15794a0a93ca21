# =============================================================================
# tests/test_storage_service.py - Storage and File Upload Tests
# =============================================================================
# This module contains tests for:
# - Upload validation (size and MIME type) before anything is written
# - Object path derivation from stored URLs
# - Compensating object removal when the metadata insert fails
# - Best-effort deletion
# - Old objects removed before a report or file row is rewritten or deleted
# =============================================================================

import pytest

from app.config import settings
from app.exceptions import ForbiddenError, ValidationFailedError
from core.models.file import FileType, FileUpdate
from core.models.report import ReportUpdate
from core.services.file_service import FileService
from core.services.report_service import ReportService
from core.services.storage_service import StorageService
from lib.supabase_client import SupabaseClientError
from lib.utils import build_object_path, object_path_from_url
from tests.conftest import CREW_ID, PROJECT_ID


# =============================================================================
# Validation
# =============================================================================

class TestUploadValidation:
    """Test the checks shared by files and report attachments."""

    def test_accepts_pdf_within_limit(self):
        StorageService.validate_upload("application/pdf", 1024)

    def test_mime_type_is_case_insensitive(self):
        StorageService.validate_upload("IMAGE/PNG", 10)

    def test_rejects_oversized(self):
        with pytest.raises(ValidationFailedError) as exc_info:
            StorageService.validate_upload("image/png", settings.max_attachment_size_bytes + 1)

        assert exc_info.value.message == "File size must be less than 5MB"

    @pytest.mark.parametrize("content_type", ["text/plain", "application/zip", None])
    def test_rejects_disallowed_types(self, content_type):
        with pytest.raises(ValidationFailedError):
            StorageService.validate_upload(content_type, 10)


# =============================================================================
# Paths
# =============================================================================

class TestObjectPaths:
    """Test object path building and recovery from stored URLs."""

    def test_build_object_path_keeps_extension_only(self):
        path = build_object_path("user-1", "Call Sheet.PDF")

        assert path.startswith("user-1/")
        assert path.endswith(".pdf")
        assert "Call" not in path

    def test_path_from_public_url(self):
        url = "https://x.supabase.co/storage/v1/object/public/reports/user-1/171-abc.png"

        assert object_path_from_url(url, "reports") == "user-1/171-abc.png"

    def test_path_from_empty_url(self):
        assert object_path_from_url(None, "reports") is None


# =============================================================================
# File Uploads
# =============================================================================

class TestFileUpload:
    """Test project document uploads against the fake storage."""

    @pytest.mark.asyncio
    async def test_upload_stores_object_and_row(self, db, crew, fake_supabase):
        row = await FileService.upload_file(
            db, crew, PROJECT_ID, FileType.SCRIPT, "draft.pdf", b"%PDF-1.7", "application/pdf"
        )

        assert row["file_type"] == "script"
        assert row["file_size"] == 8
        assert row["uploaded_by"] == crew.id
        assert row["file_url"].startswith(
            f"https://test-project.supabase.co/storage/v1/object/public/{settings.FILES_BUCKET}/{PROJECT_ID}/"
        )
        assert len(fake_supabase.storage.objects) == 1

    @pytest.mark.asyncio
    async def test_invalid_upload_writes_nothing(self, db, crew, fake_supabase):
        with pytest.raises(ValidationFailedError):
            await FileService.upload_file(
                db, crew, PROJECT_ID, FileType.OTHER, "notes.txt", b"hello", "text/plain"
            )

        assert fake_supabase.storage.objects == {}
        assert fake_supabase.rows("files") == []

    @pytest.mark.asyncio
    async def test_outsider_cannot_upload(self, db, outsider, fake_supabase):
        with pytest.raises(ForbiddenError):
            await FileService.upload_file(
                db, outsider, PROJECT_ID, FileType.OTHER, "a.pdf", b"x", "application/pdf"
            )

        assert fake_supabase.storage.objects == {}

    @pytest.mark.asyncio
    async def test_failed_insert_removes_uploaded_object(self, db, crew, fake_supabase):
        fake_supabase.fail("files", "insert")

        with pytest.raises(SupabaseClientError):
            await FileService.upload_file(
                db, crew, PROJECT_ID, FileType.CONTRACT, "deal.pdf", b"x", "application/pdf"
            )

        assert fake_supabase.storage.objects == {}
        assert len(fake_supabase.storage.removed) == 1

    @pytest.mark.asyncio
    async def test_delete_removes_object_then_row(self, db, crew, fake_supabase):
        row = await FileService.upload_file(
            db, crew, PROJECT_ID, FileType.CALL_SHEET, "day1.png", b"png", "image/png"
        )

        await FileService.delete_file(db, crew, row["id"])

        assert fake_supabase.storage.objects == {}
        assert fake_supabase.rows("files") == []

    @pytest.mark.asyncio
    async def test_delete_object_never_raises(self, db, monkeypatch, fake_supabase):
        async def broken_remove(self, paths):
            raise RuntimeError("storage down")

        monkeypatch.setattr("tests.fakes.FakeBucket.remove", broken_remove)

        removed = await StorageService.delete_object(
            db, "reports", "https://x.supabase.co/storage/v1/object/public/reports/u/1.png"
        )

        assert removed is False


# =============================================================================
# Replaced and Deleted Attachments
# =============================================================================

BASE = "https://test-project.supabase.co/storage/v1/object/public"
OLD_ATTACHMENT = f"{BASE}/reports/{CREW_ID}/1-old.png"
NEW_ATTACHMENT = f"{BASE}/reports/{CREW_ID}/2-new.png"


@pytest.fixture
def report(fake_supabase):
    fake_supabase.storage.objects[("reports", f"{CREW_ID}/1-old.png")] = b"old"
    return fake_supabase.add("reports", {
        "id": "report-1",
        "project_id": PROJECT_ID,
        "reported_by": CREW_ID,
        "content": "Lit the night exterior",
        "attachment_url": OLD_ATTACHMENT,
    })


def _position(calls, call) -> int:
    return calls.index(call)


class TestReportAttachmentCleanup:
    """Test object removal when a report's attachment goes away."""

    @pytest.mark.asyncio
    async def test_replacing_attachment_removes_old_object_first(self, db, crew, report, fake_supabase):
        updated = await ReportService.update_report(
            db, crew, "report-1", ReportUpdate(attachment_url=NEW_ATTACHMENT)
        )

        assert updated["attachment_url"] == NEW_ATTACHMENT
        assert fake_supabase.storage.removed == [("reports", f"{CREW_ID}/1-old.png")]
        calls = fake_supabase.calls
        assert _position(calls, ("storage:reports", "remove")) < _position(calls, ("reports", "update"))

    @pytest.mark.asyncio
    async def test_same_attachment_is_left_alone(self, db, crew, report, fake_supabase):
        await ReportService.update_report(db, crew, "report-1", ReportUpdate(attachment_url=OLD_ATTACHMENT))

        assert fake_supabase.storage.removed == []

    @pytest.mark.asyncio
    async def test_failed_removal_still_updates(self, db, crew, report, fake_supabase):
        fake_supabase.storage.fail_removals = True

        updated = await ReportService.update_report(
            db, crew, "report-1", ReportUpdate(attachment_url=NEW_ATTACHMENT)
        )

        assert updated["attachment_url"] == NEW_ATTACHMENT
        assert ("reports", f"{CREW_ID}/1-old.png") in fake_supabase.storage.objects

    @pytest.mark.asyncio
    async def test_delete_removes_object_then_row(self, db, crew, report, fake_supabase):
        await ReportService.delete_report(db, crew, "report-1")

        assert fake_supabase.rows("reports") == []
        assert fake_supabase.storage.objects == {}
        calls = fake_supabase.calls
        assert _position(calls, ("storage:reports", "remove")) < _position(calls, ("reports", "delete"))

    @pytest.mark.asyncio
    async def test_failed_removal_still_deletes(self, db, crew, report, fake_supabase):
        fake_supabase.storage.fail_removals = True

        await ReportService.delete_report(db, crew, "report-1")

        assert fake_supabase.rows("reports") == []


class TestFileReplacement:
    """Test object removal when a file row points at a new object."""

    @pytest.mark.asyncio
    async def test_replacing_file_url_removes_old_object_first(self, db, crew, fake_supabase):
        row = await FileService.upload_file(
            db, crew, PROJECT_ID, FileType.SCRIPT, "draft.pdf", b"%PDF", "application/pdf"
        )
        new_url = f"{BASE}/{settings.FILES_BUCKET}/{PROJECT_ID}/2-final.pdf"

        updated = await FileService.update_file(db, crew, row["id"], FileUpdate(file_url=new_url))

        assert updated["file_url"] == new_url
        assert fake_supabase.storage.objects == {}
        calls = fake_supabase.calls
        assert _position(calls, (f"storage:{settings.FILES_BUCKET}", "remove")) < _position(calls, ("files", "update"))

    @pytest.mark.asyncio
    async def test_failed_removal_still_updates(self, db, crew, fake_supabase):
        row = await FileService.upload_file(
            db, crew, PROJECT_ID, FileType.SCRIPT, "draft.pdf", b"%PDF", "application/pdf"
        )
        fake_supabase.storage.fail_removals = True
        new_url = f"{BASE}/{settings.FILES_BUCKET}/{PROJECT_ID}/2-final.pdf"

        updated = await FileService.update_file(db, crew, row["id"], FileUpdate(file_url=new_url))

        assert updated["file_url"] == new_url
        assert len(fake_supabase.storage.objects) == 1
