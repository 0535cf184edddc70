"""File service: upload, listing and download resolution."""

from pathlib import Path
from typing import List, Optional

from common.constants import DOWNLOAD_ROUTE_PREFIX
from common.formatting import encode_uri_component, format_bytes, format_utc_iso
from common.logging_config import get_logger
from server.exceptions import MissingUploadError, StoredFileNotFoundError
from server.naming import sanitize_filename
from server.notifications import NotificationHub
from server.schemas.files import StoredFileDescriptor
from server.storage import AsyncReadable, StorageDirectory
from server.types import StoredFile

logger = get_logger(__name__)


class FileService:
    def __init__(self, storage: StorageDirectory, notifications: NotificationHub):
        self.storage = storage
        self.notifications = notifications

    def build_descriptor(self, stored: StoredFile, base_url: str) -> StoredFileDescriptor:
        """
        Build the client-facing descriptor of a stored file.

        Args:
            stored: Metadata read from disk
            base_url: Absolute base URL of the current request (e.g. "http://host:3000/")

        Returns:
            StoredFileDescriptor with absolute and relative download URLs
        """
        relative_url = f"{DOWNLOAD_ROUTE_PREFIX}/{encode_uri_component(stored.stored_name)}"
        return StoredFileDescriptor(
            filename=stored.stored_name,
            display_name=stored.display_name,
            size=stored.size,
            size_readable=format_bytes(stored.size),
            mime_type=stored.mime_type,
            mtime=format_utc_iso(stored.mtime),
            mtime_ms=stored.mtime_ms,
            download_url=base_url.rstrip("/") + relative_url,
            relative_download_url=relative_url,
        )

    async def describe(self, stored_name: str, base_url: str) -> Optional[StoredFileDescriptor]:
        stored = await self.storage.describe(stored_name)
        if stored is None:
            return None
        return self.build_descriptor(stored, base_url)

    async def upload_file(
        self,
        original_name: Optional[str],
        source: Optional[AsyncReadable],
        base_url: str,
    ) -> StoredFileDescriptor:
        """
        Persist one uploaded file and notify connected clients.

        Args:
            original_name: Client-supplied filename
            source: Readable upload body
            base_url: Absolute base URL of the current request

        Returns:
            Descriptor of the stored file

        Raises:
            MissingUploadError: If no file was supplied
            UploadWriteError: If the file could not be written
        """
        if source is None or not original_name:
            raise MissingUploadError("No file found in the upload request")

        safe_name = sanitize_filename(original_name)
        stored_name = await self.storage.write_upload(safe_name, source)
        logger.info(f"Stored upload {safe_name} as {stored_name}")

        descriptor = await self.describe(stored_name, base_url)
        if descriptor is None:
            # removed between write and stat; nothing to announce
            raise StoredFileNotFoundError(f"Uploaded file disappeared: {stored_name}")

        await self.notifications.broadcast_files_updated(descriptor)
        return descriptor

    async def list_files(self, base_url: str) -> List[StoredFileDescriptor]:
        """
        Describe every visible stored file, newest first.

        Entries that cannot be stat'ed are skipped. Entries with equal
        modification times keep directory enumeration order.

        Raises:
            StorageUnavailableError: If the directory cannot be enumerated
        """
        names = await self.storage.list_names()

        descriptors = []
        for name in names:
            descriptor = await self.describe(name, base_url)
            if descriptor is not None:
                descriptors.append(descriptor)

        descriptors.sort(key=lambda d: d.mtime_ms, reverse=True)
        return descriptors

    async def resolve_download(self, stored_name: str) -> StoredFile:
        """
        Locate a stored file for download.

        Raises:
            StoredFileNotFoundError: If the name is invalid or no such regular file exists
        """
        self.storage.path_for(stored_name)
        stored = await self.storage.describe(stored_name)
        if stored is None:
            raise StoredFileNotFoundError(f"File not found: {stored_name}")
        return stored

    def path_for(self, stored: StoredFile) -> Path:
        return self.storage.path_for(stored.stored_name)
