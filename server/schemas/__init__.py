"""Pydantic schemas for API responses and notification events."""

from server.schemas.common import ErrorResponse
from server.schemas.events import (
    ConnectionAckPayload,
    ErrorPayload,
    FilesUpdatedPayload,
    NotificationEvent
)
from server.schemas.files import (
    ListFilesResponse,
    StoredFileDescriptor,
    UploadResponse
)

__all__ = [
    "ErrorResponse",
    "ConnectionAckPayload",
    "ErrorPayload",
    "FilesUpdatedPayload",
    "NotificationEvent",
    "ListFilesResponse",
    "StoredFileDescriptor",
    "UploadResponse"
]
