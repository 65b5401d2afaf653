# app/services/file_storage.py
import hashlib
import hmac
import logging
import re
import time
import uuid
from pathlib import Path
from typing import Optional, Tuple
from urllib.parse import urlencode

from app.config.security import SecurityConfig
from app.config.settings import settings
from app.domain.errors import FileSizeLimitExceededError, InvalidFileTypeError, StorageError, ValidationError

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9._-]")


class FileStorageService:
    """
    Local disk storage for task attachments.

    Files live under ``{upload_dir}/{task_id}/{uuid}-{sanitized_name}``.
    Downloads go through short-lived HMAC-signed URLs.
    """

    def __init__(self, upload_dir: Optional[str] = None, secret_key: Optional[str] = None,
                 url_ttl_seconds: Optional[int] = None):
        self.upload_dir = Path(upload_dir or settings.UPLOAD_DIR)
        self.secret_key = (secret_key or settings.SECRET_KEY).encode("utf-8")
        self.url_ttl_seconds = url_ttl_seconds or settings.FILE_URL_TTL_SECONDS
        self.max_file_size = SecurityConfig.FILE_UPLOAD['max_file_size']
        self.max_total_size = SecurityConfig.FILE_UPLOAD['max_total_size_per_task']

    def validate_file(self, file_name: str, file_size: int, file_type: str):
        """
        Validate a single upload

        Raises:
            ValidationError: file is too large or has no name
            InvalidFileTypeError: MIME type is not on the allow list
        """
        if not file_name:
            raise ValidationError("File must have a filename")

        if file_size > self.max_file_size:
            raise ValidationError(
                f"File size exceeds {SecurityConfig.max_file_size_mb()}MB limit. "
                f"Current size: {file_size / (1024 * 1024):.2f}MB"
            )

        if not SecurityConfig.is_mime_type_allowed(file_type):
            raise InvalidFileTypeError(
                f"File type '{file_type}' is not allowed. "
                f"Allowed types: {SecurityConfig.describe_allowed_types()}"
            )

    def validate_task_file_limit(self, current_total_size: int, new_file_size: int):
        if current_total_size + new_file_size > self.max_total_size:
            raise FileSizeLimitExceededError(
                f"Task file limit exceeded. Current total: {current_total_size / (1024 * 1024):.2f}MB, "
                f"New file: {new_file_size / (1024 * 1024):.2f}MB, "
                f"Maximum allowed per task: {SecurityConfig.max_total_size_mb()}MB"
            )

    @staticmethod
    def sanitize_filename(file_name: str) -> str:
        return _UNSAFE_CHARS.sub("_", file_name)

    def resolve_path(self, storage_path: str) -> Path:
        """Absolute path for a storage path, refusing anything outside upload_dir"""
        root = self.upload_dir.resolve()
        full_path = (root / storage_path).resolve()
        if root not in full_path.parents:
            raise StorageError(f"Invalid storage path: {storage_path}")
        return full_path

    def upload_file(self, task_id: int, data: bytes, file_name: str, file_type: str) -> Tuple[str, int]:
        """Write the file and return (storage_path, size)"""
        storage_path = f"{task_id}/{uuid.uuid4()}-{self.sanitize_filename(file_name)}"
        full_path = self.resolve_path(storage_path)
        full_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            # "x" mode never overwrites an existing file
            with open(full_path, "xb") as buffer:
                buffer.write(data)
        except OSError as e:
            logger.error(f"Error saving file {file_name} for task {task_id}: {e}")
            raise StorageError(f"File upload failed: {e}") from e

        logger.info(f"Stored {file_type} file {storage_path} ({len(data)} bytes)")
        return storage_path, len(data)

    def _sign(self, storage_path: str, expires: int) -> str:
        message = f"{storage_path}:{expires}".encode("utf-8")
        return hmac.new(self.secret_key, message, hashlib.sha256).hexdigest()

    def get_file_download_url(self, storage_path: str, now: Optional[float] = None) -> str:
        expires = int((now if now is not None else time.time()) + self.url_ttl_seconds)
        query = urlencode({
            "path": storage_path,
            "expires": expires,
            "signature": self._sign(storage_path, expires),
        })
        return f"/files/download?{query}"

    def verify_signature(self, storage_path: str, expires: int, signature: str,
                         now: Optional[float] = None) -> bool:
        if expires < (now if now is not None else time.time()):
            return False
        return hmac.compare_digest(self._sign(storage_path, expires), signature)

    def delete_file(self, storage_path: str):
        full_path = self.resolve_path(storage_path)
        try:
            full_path.unlink()
        except FileNotFoundError:
            logger.warning(f"File already removed from storage: {storage_path}")
        except OSError as e:
            logger.error(f"Error deleting file {storage_path}: {e}")
            raise StorageError(f"File deletion failed: {e}") from e
        logger.info(f"Deleted file {storage_path}")


# Global instance
file_storage = FileStorageService()


def get_file_storage() -> FileStorageService:
    """FastAPI dependency, overridden in tests"""
    return file_storage
