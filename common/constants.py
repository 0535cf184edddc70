"""Project-wide constants (naming scheme, default ports, event types)."""

STORED_NAME_SEPARATOR: str = "__"
FALLBACK_FILENAME: str = "untitled"
UNIQUE_KEY_RANDOM_MAX: int = 1_000_000
# leaves room for the "<millis>-<rand>__" prefix under a 255-byte NAME_MAX
MAX_SAFE_NAME_BYTES: int = 200

DEFAULT_SERVER_PORT: int = 3000
DEFAULT_STORAGE_DIR: str = "fileList"
DOWNLOAD_ROUTE_PREFIX: str = "/fileList"

UPLOAD_CHUNK_SIZE_BYTES: int = 1024 * 1024  # 1 MiB read/write window
NOTIFICATION_SEND_TIMEOUT_SECONDS: float = 5.0  # upper bound for one send to one connection

EVENT_CONNECTION_ACK: str = "connection:ack"
EVENT_FILES_UPDATED: str = "files:updated"
EVENT_FILES_REFRESH: str = "files:refresh"
EVENT_ERROR: str = "error"
