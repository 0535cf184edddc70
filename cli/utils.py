"""Utility functions for CLI operations."""

import re
import sys
from typing import Optional
from urllib.parse import unquote

from common.formatting import format_bytes
from cli.constants import GREEN, RESET

_EXTENDED_FILENAME = re.compile(r"filename\*\s*=\s*([^']*)'[^']*'([^;]+)", re.IGNORECASE)
_PLAIN_FILENAME = re.compile(r'filename\s*=\s*"?([^";]+)"?', re.IGNORECASE)


class ProgressFileWrapper:
    """File-like wrapper that displays upload progress to stdout."""

    def __init__(self, file_path: str, file_size: int, filename: str):
        """
        Initialize the progress file wrapper.

        Args:
            file_path: Absolute path to the file to read
            file_size: Total size of the file in bytes
            filename: Display name for the file
        """
        self.file_path = file_path
        self.file_size = file_size
        self.filename = filename
        self._file = open(file_path, 'rb')
        self._uploaded = 0
        self._finished = False

    def read(self, size: int = -1) -> bytes:
        """
        Read bytes from the file and update progress display.

        Args:
            size: Number of bytes to read (-1 or 0 for default chunk size)

        Returns:
            Bytes read from the file
        """
        chunk = self._file.read(size if size > 0 else 8192)
        if chunk:
            self._uploaded += len(chunk)
            self._display_progress()
        elif not self._finished:
            self._finish_progress()
        return chunk

    def _display_progress(self) -> None:
        """Display current upload progress to stdout."""
        progress = (self._uploaded / self.file_size) * 100 if self.file_size else 100.0
        sys.stdout.write(
            f"\rUploading {self.filename}: {format_bytes(self._uploaded)} / "
            f"{format_bytes(self.file_size)} ({GREEN}{progress:.1f}%{RESET})"
        )
        sys.stdout.flush()

    def _finish_progress(self) -> None:
        """Finalize progress display with newline."""
        self._finished = True
        sys.stdout.write('\n')
        sys.stdout.flush()

    def close(self) -> None:
        """Close the underlying file."""
        if self._file:
            self._file.close()

    def __enter__(self) -> 'ProgressFileWrapper':
        """Enter context manager."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit context manager and ensure file is closed."""
        self.close()


def filename_from_content_disposition(header: Optional[str]) -> Optional[str]:
    """
    Extract the filename advertised by a Content-Disposition header.

    The RFC 5987 'filename*' form wins over a plain 'filename'.

    Args:
        header: Raw header value, or None

    Returns:
        Decoded filename, or None if the header carries none
    """
    if not header:
        return None

    match = _EXTENDED_FILENAME.search(header)
    if match:
        charset = match.group(1) or 'utf-8'
        try:
            return unquote(match.group(2).strip(), encoding=charset)
        except LookupError:
            return unquote(match.group(2).strip())

    match = _PLAIN_FILENAME.search(header)
    if match:
        return match.group(1).strip()
    return None
