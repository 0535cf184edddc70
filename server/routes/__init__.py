"""API routes package."""

from server.routes.download_routes import router as download_router
from server.routes.file_routes import router as file_router
from server.routes.notification_routes import router as notification_router

__all__ = ["download_router", "file_router", "notification_router"]
