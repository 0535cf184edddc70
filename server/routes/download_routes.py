"""Static download route for stored files."""

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from common.constants import DOWNLOAD_ROUTE_PREFIX
from common.formatting import encode_rfc5987_value
from server.schemas.common import ErrorResponse
from server.services.file_service import FileService
from server.dependencies import get_file_service

router = APIRouter(prefix=DOWNLOAD_ROUTE_PREFIX, tags=["Download"])


def content_disposition(display_name: str) -> str:
    """Inline disposition advertising the display name, RFC 5987 encoded."""
    return f"inline; filename*=UTF-8''{encode_rfc5987_value(display_name)}"


@router.get("/{stored_name}", responses={404: {"model": ErrorResponse}})
async def download_file(
    stored_name: str,
    file_service: FileService = Depends(get_file_service)
):
    """
    Serve a stored file.

    Parameters:
        - stored_name: Name of the file on disk (including its unique prefix)

    Returns:
        - File bytes, Content-Type from the extension table and a
          Content-Disposition carrying the original display name

    Raises:
        - 404: No such file
    """
    stored = await file_service.resolve_download(stored_name)

    return FileResponse(
        file_service.path_for(stored),
        media_type=stored.mime_type,
        headers={"Content-Disposition": content_disposition(stored.display_name)},
    )
