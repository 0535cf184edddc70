"""Pydantic schemas for file endpoints."""

from typing import List

from server.schemas.common import CamelModel


class StoredFileDescriptor(CamelModel):
    """Metadata of one stored file as returned to clients."""
    filename: str
    display_name: str
    size: int
    size_readable: str
    mime_type: str
    mtime: str
    mtime_ms: float
    download_url: str
    relative_download_url: str


class UploadResponse(CamelModel):
    """Response envelope for file upload."""
    code: int = 200
    msg: str
    data: StoredFileDescriptor


class ListFilesResponse(CamelModel):
    """Response envelope for file listing."""
    code: int = 200
    msg: str = "ok"
    data: List[StoredFileDescriptor]
