"""Command request data types for CLI."""

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class UploadCommand:
    """Upload local files."""

    file_list: tuple[str, ...]
    command: Literal["upload"] = "upload"


@dataclass(frozen=True)
class ListCommand:
    """List every stored file."""

    command: Literal["list"] = "list"


@dataclass(frozen=True)
class DownloadCommand:
    """Download file by stored name."""

    filename: str
    output_path: str | None = None
    command: Literal["download"] = "download"


@dataclass(frozen=True)
class RefreshCommand:
    """Request a refresh broadcast to every connected client."""

    command: Literal["refresh"] = "refresh"


@dataclass(frozen=True)
class ServerCommand:
    """Change the server the CLI talks to."""

    host: str
    port: int
    command: Literal["server"] = "server"


CommandRequest = (
    UploadCommand
    | ListCommand
    | DownloadCommand
    | RefreshCommand
    | ServerCommand
)
