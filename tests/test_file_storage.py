"""
Tests for local attachment storage and task file operations
"""
from datetime import timedelta
from urllib.parse import parse_qs, urlparse

import pytest

from app.domain.errors import (
    FileSizeLimitExceededError,
    InvalidFileTypeError,
    StorageError,
    UnauthorizedError,
    ValidationError,
)
from app.models.task import TaskFile
from app.models.user import UserRole
from app.schemas.task import TaskCreate
from app.services.task_service import TaskService
from app.utils.dates import utcnow


def _query(url):
    params = parse_qs(urlparse(url).query)
    return params["path"][0], int(params["expires"][0]), params["signature"][0]


class TestFileStorageService:
    def test_validate_file(self, storage):
        storage.validate_file("report.pdf", 1024, "application/pdf")

        with pytest.raises(ValidationError, match="filename"):
            storage.validate_file("", 10, "application/pdf")
        with pytest.raises(ValidationError, match="exceeds 10MB"):
            storage.validate_file("big.pdf", 11 * 1024 * 1024, "application/pdf")
        with pytest.raises(InvalidFileTypeError, match="not allowed"):
            storage.validate_file("run.exe", 10, "application/x-msdownload")

    def test_task_total_limit(self, storage):
        storage.validate_task_file_limit(40 * 1024 * 1024, 10 * 1024 * 1024)
        with pytest.raises(FileSizeLimitExceededError):
            storage.validate_task_file_limit(45 * 1024 * 1024, 6 * 1024 * 1024)

    def test_sanitize_filename(self, storage):
        assert storage.sanitize_filename("my report (v2).pdf") == "my_report__v2_.pdf"

    def test_upload_and_delete(self, storage):
        path, size = storage.upload_file(7, b"hello", "notes.txt", "text/plain")

        assert path.startswith("7/")
        assert path.endswith("-notes.txt")
        assert size == 5
        assert storage.resolve_path(path).read_bytes() == b"hello"

        storage.delete_file(path)
        assert not storage.resolve_path(path).exists()
        # Deleting twice only warns
        storage.delete_file(path)

    def test_rejects_paths_outside_upload_dir(self, storage):
        with pytest.raises(StorageError):
            storage.resolve_path("../outside.txt")

    def test_signed_urls(self, storage):
        url = storage.get_file_download_url("1/abc-notes.txt", now=1000)
        path, expires, signature = _query(url)

        assert url.startswith("/files/download?")
        assert path == "1/abc-notes.txt"
        assert expires == 1000 + storage.url_ttl_seconds
        assert storage.verify_signature(path, expires, signature, now=1000)
        assert not storage.verify_signature(path, expires, signature, now=expires + 1)
        assert not storage.verify_signature("1/other.txt", expires, signature, now=1000)


class TestTaskFiles:
    @pytest.fixture
    def setup(self, db, make_department, make_user):
        department = make_department("Design")
        return {
            "owner": make_user("Owner", department=department),
            "assignee": make_user("Assignee", department=department),
            "staff": make_user("Staff", department=department),
            "manager": make_user("Manager", role=UserRole.MANAGER, department=department),
        }

    async def _task(self, service, setup):
        return await service.create_task(
            TaskCreate(title="Mockups", due_date=utcnow() + timedelta(days=3),
                       assignee_ids=[setup["assignee"].id]),
            setup["owner"],
        )

    @pytest.mark.asyncio
    async def test_upload_download_and_delete(self, db, storage, setup):
        service = TaskService(db, storage=storage)
        task = await self._task(service, setup)

        record = service.upload_file(task.id, b"%PDF-1.4", "brief.pdf", "application/pdf", setup["assignee"])
        assert record.file_size == 8
        assert [f.id for f in service.get_task_files(task.id, setup["owner"])] == [record.id]

        url = service.get_file_download_url(record.id, setup["manager"])
        full_path, found = service.open_file(*_query(url))
        assert found.id == record.id
        assert full_path.read_bytes() == b"%PDF-1.4"

        with pytest.raises(UnauthorizedError, match="uploader or task owner"):
            service.delete_file(record.id, setup["manager"])

        service.delete_file(record.id, setup["owner"])
        assert db.query(TaskFile).count() == 0
        assert not full_path.exists()

    @pytest.mark.asyncio
    async def test_unrelated_staff_cannot_upload(self, db, storage, setup):
        service = TaskService(db, storage=storage)
        task = await self._task(service, setup)

        with pytest.raises(UnauthorizedError, match="upload files"):
            service.upload_file(task.id, b"x", "a.txt", "text/plain", setup["staff"])
        with pytest.raises(UnauthorizedError, match="view files"):
            service.get_task_files(task.id, setup["staff"])

    @pytest.mark.asyncio
    async def test_tampered_link_is_rejected(self, db, storage, setup):
        service = TaskService(db, storage=storage)
        task = await self._task(service, setup)
        record = service.upload_file(task.id, b"x", "a.txt", "text/plain", setup["owner"])

        path, expires, _ = _query(service.get_file_download_url(record.id, setup["owner"]))
        with pytest.raises(UnauthorizedError, match="Invalid or expired"):
            service.open_file(path, expires, "0" * 64)

    @pytest.mark.asyncio
    async def test_deleting_task_removes_stored_files(self, db, storage, setup):
        service = TaskService(db, storage=storage)
        task = await self._task(service, setup)
        record = service.upload_file(task.id, b"x", "a.txt", "text/plain", setup["owner"])
        stored = storage.resolve_path(record.storage_path)

        service.delete_task(task.id, setup["owner"])
        assert not stored.exists()

    @pytest.mark.asyncio
    async def test_failed_commit_keeps_stored_file(self, db, storage, setup, monkeypatch):
        service = TaskService(db, storage=storage)
        task = await self._task(service, setup)
        record = service.upload_file(task.id, b"x", "a.txt", "text/plain", setup["owner"])
        stored = storage.resolve_path(record.storage_path)

        def failing_commit():
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(db, "commit", failing_commit)
        with pytest.raises(RuntimeError, match="database unavailable"):
            service.delete_file(record.id, setup["owner"])
        db.rollback()

        assert stored.exists()
