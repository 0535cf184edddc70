"""FastAPI dependencies resolving application-owned components."""

from fastapi import Request

from server.notifications import NotificationHub
from server.services.file_service import FileService
from server.storage import StorageDirectory


def get_storage(request: Request) -> StorageDirectory:
    return request.app.state.storage


def get_notification_hub(request: Request) -> NotificationHub:
    return request.app.state.notifications


def get_file_service(request: Request) -> FileService:
    """
    Build a FileService bound to the storage directory and notification hub
    owned by the running application.
    """
    return FileService(get_storage(request), get_notification_hub(request))
