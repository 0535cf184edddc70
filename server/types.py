"""Server-specific data type definitions."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class StoredFile:
    """
    Metadata for one entry of the storage directory, read from disk.
    """
    stored_name: str
    display_name: str
    size: int
    mime_type: str
    mtime: datetime
    mtime_ms: float
