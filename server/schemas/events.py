"""Pydantic schemas for notification channel events."""

from typing import Literal, Optional, Union

from server.schemas.common import CamelModel
from server.schemas.files import StoredFileDescriptor


class ConnectionAckPayload(CamelModel):
    message: str
    connected_at: str


class FilesUpdatedPayload(CamelModel):
    latest: Optional[StoredFileDescriptor] = None
    refreshed_at: str


class ErrorPayload(CamelModel):
    message: str


class NotificationEvent(CamelModel):
    """Envelope of every server to client frame."""
    type: Literal["connection:ack", "files:updated", "error"]
    payload: Union[ConnectionAckPayload, FilesUpdatedPayload, ErrorPayload]

    def to_text(self) -> str:
        return self.model_dump_json(by_alias=True)
