"""Configuration settings for the FileShelf server."""

import os
from pathlib import Path

from common.constants import (
    DEFAULT_SERVER_PORT,
    DEFAULT_STORAGE_DIR,
    NOTIFICATION_SEND_TIMEOUT_SECONDS,
    UPLOAD_CHUNK_SIZE_BYTES
)


SERVER_HOST = os.environ.get("FILESHELF_HOST", "0.0.0.0")

SERVER_PORT = int(os.environ.get("FILESHELF_PORT", str(DEFAULT_SERVER_PORT)))

STORAGE_DIR = Path(os.environ.get("FILESHELF_STORAGE_DIR", DEFAULT_STORAGE_DIR))

INDEX_PAGE = Path(
    os.environ.get("FILESHELF_INDEX_PAGE", str(Path(__file__).parent / "static" / "index.html"))
)

UPLOAD_CHUNK_SIZE = int(os.environ.get("FILESHELF_UPLOAD_CHUNK_SIZE", str(UPLOAD_CHUNK_SIZE_BYTES)))

RELOAD = os.environ.get("FILESHELF_RELOAD", "false").lower() in ("1", "true", "yes")

CORS_ALLOW_METHODS = "DELETE,PUT,POST,GET,OPTIONS"

NOTIFICATION_SEND_TIMEOUT = float(os.environ.get("FILESHELF_SEND_TIMEOUT", str(NOTIFICATION_SEND_TIMEOUT_SECONDS)))
