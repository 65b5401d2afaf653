# app/config/security.py
# Upload policy for task attachments

from typing import Dict, Set


class SecurityConfig:
    """Limits and allowed types for task file attachments"""

    FILE_UPLOAD = {
        'max_file_size': 10 * 1024 * 1024,         # 10MB per file
        'max_total_size_per_task': 50 * 1024 * 1024,  # 50MB per task
    }

    # MIME type -> extensions
    ALLOWED_TYPES: Dict[str, Set[str]] = {
        'application/pdf': {'.pdf'},
        'image/png': {'.png'},
        'image/jpeg': {'.jpg', '.jpeg'},
        'image/gif': {'.gif'},
        'application/msword': {'.doc'},
        'application/vnd.openxmlformats-officedocument.wordprocessingml.document': {'.docx'},
        'application/vnd.ms-excel': {'.xls'},
        'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet': {'.xlsx'},
        'text/plain': {'.txt'},
        'application/zip': {'.zip'},
    }

    @classmethod
    def is_mime_type_allowed(cls, mime_type: str) -> bool:
        """Check if a MIME type may be attached to a task"""
        return mime_type in cls.ALLOWED_TYPES

    @classmethod
    def describe_allowed_types(cls) -> str:
        return "PDF, images, Word docs, Excel sheets, text files, ZIP"

    @classmethod
    def max_file_size_mb(cls) -> int:
        return cls.FILE_UPLOAD['max_file_size'] // (1024 * 1024)

    @classmethod
    def max_total_size_mb(cls) -> int:
        return cls.FILE_UPLOAD['max_total_size_per_task'] // (1024 * 1024)
