"""Entry point for the FileShelf server."""

import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from common.logging_config import setup_logging
from server.config import (
    CORS_ALLOW_METHODS,
    INDEX_PAGE,
    NOTIFICATION_SEND_TIMEOUT,
    RELOAD,
    SERVER_HOST,
    SERVER_PORT,
    STORAGE_DIR,
    UPLOAD_CHUNK_SIZE
)
from server.exceptions import (
    FileShelfError,
    MissingUploadError,
    StorageUnavailableError,
    StoredFileNotFoundError,
    UploadWriteError
)
from server.notifications import NotificationHub
from server.routes.download_routes import router as download_router
from server.routes.file_routes import router as file_router
from server.routes.notification_routes import router as notification_router
from server.storage import StorageDirectory

logger = setup_logging('server')


def _envelope(status_code: int, msg: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"code": status_code, "msg": msg, **extra})


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Create the storage directory on startup.
    """
    logger.info("FileShelf server starting up...")
    app.state.storage.ensure_exists()
    logger.info(f"Storage directory ready: {app.state.storage.root.resolve()}")

    yield

    logger.info(f"FileShelf server shutting down ({len(app.state.notifications)} notification clients open)")


async def cors_and_log_requests(request: Request, call_next):
    """
    Middleware adding permissive CORS headers and logging every request.
    Pre-flight OPTIONS requests are answered immediately.
    """
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()

    logger.info(f"Request started: {request.method} {request.url.path} [request_id={request_id}]")

    if request.method == "OPTIONS":
        response = Response(content="OK", status_code=status.HTTP_200_OK, media_type="text/plain")
    else:
        response = await call_next(request)

    duration = time.time() - start_time

    logger.info(
        f"Request completed: {request.method} {request.url.path} "
        f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
    )

    response.headers["Access-Control-Allow-Origin"] = "*"
    response.headers["Access-Control-Allow-Headers"] = "*"
    response.headers["Access-Control-Allow-Methods"] = CORS_ALLOW_METHODS
    response.headers["X-Request-ID"] = request_id

    return response


async def missing_upload_handler(request: Request, exc: MissingUploadError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(f"Missing upload: {exc} [request_id={request_id}] path={request.url.path}")
    return _envelope(status.HTTP_400_BAD_REQUEST, "No file was uploaded")


async def storage_unavailable_handler(request: Request, exc: StorageUnavailableError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(f"Storage unavailable: {exc} [request_id={request_id}] path={request.url.path}")
    return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to read the file list", data=[])


async def stored_file_not_found_handler(request: Request, exc: StoredFileNotFoundError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(f"File not found: {exc} [request_id={request_id}] path={request.url.path}")
    return _envelope(status.HTTP_404_NOT_FOUND, "File not found")


async def upload_write_handler(request: Request, exc: UploadWriteError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(f"Upload write error: {exc} [request_id={request_id}] path={request.url.path}", exc_info=True)
    return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to store the uploaded file")


async def fileshelf_error_handler(request: Request, exc: FileShelfError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(f"FileShelf error: {exc} [request_id={request_id}] path={request.url.path}", exc_info=True)
    return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


async def validation_error_handler(request: Request, exc: RequestValidationError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(f"Validation error: {exc.errors()} [request_id={request_id}] path={request.url.path}")
    return _envelope(status.HTTP_400_BAD_REQUEST, "Invalid request")


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"HTTP error {exc.status_code}: {exc.detail} [request_id={request_id}] path={request.url.path}"
    )
    return _envelope(exc.status_code, str(exc.detail))


def create_app(
    storage_dir: Optional[Path] = None,
    index_page: Optional[Path] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        storage_dir: Directory holding uploads (defaults to FILESHELF_STORAGE_DIR)
        index_page: Landing page served at '/' (defaults to FILESHELF_INDEX_PAGE)

    Returns:
        Configured FastAPI application owning its storage directory and
        notification hub
    """
    app = FastAPI(
        title="FileShelf",
        description="Minimal file-sharing server with live change notifications",
        version="1.0.0",
        lifespan=lifespan
    )

    app.state.storage = StorageDirectory(storage_dir or STORAGE_DIR, chunk_size=UPLOAD_CHUNK_SIZE)
    app.state.notifications = NotificationHub(send_timeout=NOTIFICATION_SEND_TIMEOUT)
    app.state.index_page = Path(index_page or INDEX_PAGE)

    app.middleware("http")(cors_and_log_requests)

    app.add_exception_handler(MissingUploadError, missing_upload_handler)
    app.add_exception_handler(StorageUnavailableError, storage_unavailable_handler)
    app.add_exception_handler(StoredFileNotFoundError, stored_file_not_found_handler)
    app.add_exception_handler(UploadWriteError, upload_write_handler)
    app.add_exception_handler(FileShelfError, fileshelf_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    @app.get("/", include_in_schema=False)
    async def landing_page(request: Request):
        """
        Static landing page.
        """
        page = request.app.state.index_page
        if not page.is_file():
            return {"message": "FileShelf API", "status": "running"}
        return FileResponse(page, media_type="text/html")

    @app.get("/health")
    async def health_check():
        """
        Health check endpoint.
        Returns 200 if service is alive.
        """
        return {"status": "healthy", "service": "fileshelf"}

    app.include_router(file_router)
    app.include_router(download_router)
    app.include_router(notification_router)

    return app


app = create_app()


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "server.main:app",
        host=SERVER_HOST,
        port=SERVER_PORT,
        reload=RELOAD
    )


if __name__ == "__main__":
    main()
