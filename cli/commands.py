"""Command handler functions for CLI operations."""

from pathlib import Path
from typing import Optional

from common.logging_config import get_logger
from cli.config import Config
from cli.models import (
    DownloadCommand,
    ListCommand,
    RefreshCommand,
    ServerCommand,
    UploadCommand,
)
from cli.shelf_client import ShelfClient

logger = get_logger(__name__)


_client: Optional[ShelfClient] = None


def get_client() -> ShelfClient:
    """
    Get or create global ShelfClient instance.

    Returns:
        ShelfClient instance
    """
    global _client
    if _client is None:
        logger.debug("Creating new ShelfClient instance")
        config = Config(Path.home() / '.fileshelf' / 'config.json')
        _client = ShelfClient(config)
    return _client


def handle_upload(cmd: UploadCommand, client: Optional[ShelfClient] = None) -> str:
    """
    Handle 'upload' command.

    Args:
        cmd: UploadCommand with file_list
        client: Optional ShelfClient for dependency injection (testing)

    Returns:
        Success or error message with upload results
    """
    logger.info(f"Executing upload command: {len(cmd.file_list)} files")
    if client is None:
        client = get_client()
    result = client.upload_files(list(cmd.file_list))
    logger.debug("Upload command completed")
    return result


def handle_list(cmd: ListCommand, client: Optional[ShelfClient] = None) -> str:
    """
    Handle 'list' command.

    Args:
        cmd: ListCommand
        client: Optional ShelfClient for dependency injection (testing)

    Returns:
        Formatted list of files
    """
    if client is None:
        client = get_client()
    return client.list_files()


def handle_download(cmd: DownloadCommand, client: Optional[ShelfClient] = None) -> str:
    """
    Handle 'download' command.

    Args:
        cmd: DownloadCommand with filename and optional output_path
        client: Optional ShelfClient for dependency injection (testing)

    Returns:
        Success or error message with download results
    """
    logger.info(f"Executing download command: filename={cmd.filename} output_path={cmd.output_path}")
    if client is None:
        client = get_client()
    result = client.download(cmd.filename, cmd.output_path)
    logger.debug("Download command completed")
    return result


def handle_refresh(cmd: RefreshCommand, client: Optional[ShelfClient] = None) -> str:
    """Handle 'refresh' command."""
    if client is None:
        client = get_client()
    return client.request_refresh()


def handle_server(cmd: ServerCommand, client: Optional[ShelfClient] = None) -> str:
    """
    Handle 'server' command.

    Args:
        cmd: ServerCommand with host and port
        client: Optional ShelfClient for dependency injection (testing)

    Returns:
        Confirmation message
    """
    if client is None:
        client = get_client()
    client.config.set_server(cmd.host, cmd.port)
    client.reconfigure()
    return f"Server set to {client.config.get_base_url()}"
