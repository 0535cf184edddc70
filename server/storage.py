"""Manages the storage directory: exclusive writes, enumeration and stats."""

import os
import stat
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Protocol

import aiofiles
import aiofiles.os

from common.constants import UPLOAD_CHUNK_SIZE_BYTES
from common.logging_config import get_logger
from common.mime import get_mime_type
from server.exceptions import StorageUnavailableError, StoredFileNotFoundError, UploadWriteError
from server.naming import build_stored_name, display_name_from_stored
from server.types import StoredFile

logger = get_logger(__name__)

MAX_NAME_ATTEMPTS = 5


class AsyncReadable(Protocol):
    async def read(self, size: int = -1) -> bytes: ...


class StorageDirectory:
    """Flat directory holding every uploaded file under its stored name."""

    def __init__(self, root: Path, chunk_size: int = UPLOAD_CHUNK_SIZE_BYTES):
        self.root = Path(root)
        self.chunk_size = chunk_size

    def ensure_exists(self) -> None:
        """Create the storage directory if it is missing."""
        self.root.mkdir(parents=True, exist_ok=True)

    def path_for(self, stored_name: str) -> Path:
        """
        Resolve a stored name to a path inside the storage directory.

        Args:
            stored_name: Name of the entry as it appears on disk

        Returns:
            Path to the entry

        Raises:
            StoredFileNotFoundError: If the name is hidden or escapes the directory
        """
        if (
            not stored_name
            or stored_name.startswith(".")
            or any(sep in stored_name for sep in ("/", "\\", "\x00"))
        ):
            raise StoredFileNotFoundError(f"File not found: {stored_name!r}")

        path = self.root / stored_name
        try:
            resolved = path.resolve()
        except (OSError, ValueError) as e:
            raise StoredFileNotFoundError(f"File not found: {stored_name!r}") from e
        if resolved.parent != self.root.resolve():
            raise StoredFileNotFoundError(f"File not found: {stored_name!r}")
        return path

    async def write_upload(self, safe_name: str, source: AsyncReadable) -> str:
        """
        Stream an upload into a new, uniquely named file.

        The file is created with exclusive-create semantics; if the generated
        name is already taken a new prefix is drawn.

        Args:
            safe_name: Sanitized original filename
            source: Object exposing an async read(size) method (e.g. UploadFile)

        Returns:
            The stored name of the written file

        Raises:
            UploadWriteError: If the file cannot be created or written
        """
        self.ensure_exists()

        for attempt in range(MAX_NAME_ATTEMPTS):
            stored_name = build_stored_name(safe_name)
            path = self.root / stored_name
            try:
                out = await aiofiles.open(path, "xb")
            except FileExistsError:
                logger.warning(f"Stored name collision on {stored_name}, retrying (attempt {attempt + 1})")
                continue
            except OSError as e:
                raise UploadWriteError(f"Failed to create {stored_name}: {e}") from e

            try:
                try:
                    while True:
                        chunk = await source.read(self.chunk_size)
                        if not chunk:
                            break
                        await out.write(chunk)
                finally:
                    await out.close()
            except OSError as e:
                self._discard(path)
                raise UploadWriteError(f"Failed to write {stored_name}: {e}") from e
            except BaseException:
                self._discard(path)
                raise

            return stored_name

        raise UploadWriteError(f"Could not allocate a unique name for {safe_name}")

    async def list_names(self) -> List[str]:
        """
        List visible entry names (names starting with '.' are skipped).

        Raises:
            StorageUnavailableError: If the directory cannot be enumerated
        """
        try:
            names = await aiofiles.os.listdir(self.root)
        except OSError as e:
            raise StorageUnavailableError(f"Cannot read storage directory {self.root}: {e}") from e
        return [name for name in names if not name.startswith(".")]

    async def describe(self, stored_name: str) -> Optional[StoredFile]:
        """
        Read live metadata for one entry.

        Returns:
            StoredFile, or None if the entry vanished, cannot be stat'ed or is not a regular file
        """
        try:
            st = await aiofiles.os.stat(self.root / stored_name)
        except (OSError, ValueError):
            return None

        if not stat.S_ISREG(st.st_mode):
            return None

        return StoredFile(
            stored_name=stored_name,
            display_name=display_name_from_stored(stored_name),
            size=st.st_size,
            mime_type=get_mime_type(stored_name),
            mtime=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
            mtime_ms=st.st_mtime_ns / 1_000_000,
        )

    def _discard(self, path: Path) -> None:
        """Remove a partially written file."""
        try:
            os.unlink(path)
            logger.info(f"Removed partial upload {path.name}")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error(f"Failed to remove partial upload {path.name}: {e}")
