"""File API routes: upload and listing."""

from fastapi import APIRouter, Depends, Request
from starlette.datastructures import UploadFile

from server.schemas.common import ErrorResponse
from server.schemas.files import ListFilesResponse, UploadResponse
from server.services.file_service import FileService
from server.dependencies import get_file_service

router = APIRouter(prefix="/api", tags=["Files"])

UPLOAD_FIELD = "file"


@router.post(
    "/upload",
    response_model=UploadResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}
)
async def upload_file(
    request: Request,
    file_service: FileService = Depends(get_file_service)
):
    """
    Upload a single file.

    Parameters:
        - file: File to upload (multipart/form-data); only the first 'file' part is used

    Returns:
        - code, msg, data: descriptor of the stored file

    Raises:
        - 400: No file attached
        - 500: File could not be written
    """
    async with request.form() as form:
        upload = next(
            (item for item in form.getlist(UPLOAD_FIELD) if isinstance(item, UploadFile)),
            None
        )
        descriptor = await file_service.upload_file(
            original_name=upload.filename if upload is not None else None,
            source=upload,
            base_url=str(request.base_url),
        )

    return UploadResponse(msg="upload succeeded", data=descriptor)


@router.get("/files", response_model=ListFilesResponse)
async def list_files(
    request: Request,
    file_service: FileService = Depends(get_file_service)
):
    """
    List every stored file, most recently modified first.

    Returns:
        - code, msg, data: list of stored file descriptors

    Raises:
        - 500: Storage directory cannot be read (data is an empty list)
    """
    files = await file_service.list_files(base_url=str(request.base_url))
    return ListFilesResponse(data=files)
