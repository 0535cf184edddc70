"""Service layer for business logic."""

from server.services.file_service import FileService

__all__ = [
    "FileService",
]
