"""HTTP and WebSocket client for communicating with the FileShelf server."""

import json
import os
import sys
import time
import uuid
from pathlib import Path
from typing import Optional
from urllib.parse import quote

import httpx
from websockets.exceptions import WebSocketException
from websockets.sync.client import connect

from common.constants import EVENT_ERROR, EVENT_FILES_REFRESH, EVENT_FILES_UPDATED
from common.formatting import format_bytes
from common.logging_config import get_logger
from cli.config import Config
from cli.constants import GREEN, RESET
from cli.utils import ProgressFileWrapper, filename_from_content_disposition

logger = get_logger(__name__)


class ShelfClient:
    """HTTP client for the FileShelf API with retry logic and error handling."""

    def __init__(self, config: Config):
        """
        Initialize the client.

        Args:
            config: Configuration instance
        """
        self.config = config
        self.session = httpx.Client(
            base_url=config.get_base_url(),
            timeout=config.get_timeout()
        )
        self.request_id = None
        logger.info(f"Initialized ShelfClient [base_url={config.get_base_url()}]")

    def reconfigure(self) -> None:
        """Rebuild the HTTP session after the server address changed."""
        self.session.close()
        self.session = httpx.Client(
            base_url=self.config.get_base_url(),
            timeout=self.config.get_timeout()
        )
        logger.info(f"Reconfigured ShelfClient [base_url={self.config.get_base_url()}]")

    def _calculate_upload_timeout(self, file_size: int) -> float:
        """
        Calculate timeout for upload based on file size.

        Args:
            file_size: File size in bytes

        Returns:
            Timeout in seconds (30s base + 0.1s per MB)
        """
        base_timeout = 30.0
        size_mb = file_size / (1024 * 1024)
        return base_timeout + size_mb * 0.1

    def _resolve_download_path(self, output_path: Optional[str], display_name: str) -> Path:
        """
        Work out where a download is written.

        Args:
            output_path: Path given by the user, possibly an existing directory
            display_name: Name advertised by the server

        Returns:
            Target file path (parent directories are created)
        """
        # never let a server-supplied name escape the target directory
        display_name = Path(display_name.replace('\\', '/')).name or 'download'

        if output_path:
            output_file = Path(output_path)
            if output_file.is_dir():
                output_file = output_file / display_name
        else:
            output_file = self.config.get_download_dir() / display_name

        output_file.parent.mkdir(parents=True, exist_ok=True)
        return output_file

    def _request_with_retry(
        self,
        method: str,
        endpoint: str,
        max_retries: Optional[int] = None,
        **kwargs
    ) -> httpx.Response:
        """
        Make HTTP request with retry logic on 5xx errors and network failures.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint path
            max_retries: Max retry attempts (uses config default if None)
            **kwargs: Additional arguments to pass to httpx request

        Returns:
            HTTP response object

        Raises:
            ConnectionError: If max retries exceeded or connection fails
        """
        retry_config = self.config.get_retry_config()
        max_retries = max_retries if max_retries is not None else retry_config['max_retries']
        backoff = retry_config['retry_backoff_multiplier']

        last_exception = None

        self.request_id = str(uuid.uuid4())
        kwargs.setdefault('headers', {})
        kwargs['headers']['X-Request-ID'] = self.request_id

        logger.debug(f"Making request: {method} {endpoint} [request_id={self.request_id}]")

        for attempt in range(max_retries + 1):
            try:
                response = self.session.request(method, endpoint, **kwargs)

                logger.debug(
                    f"Response received: {method} {endpoint} status={response.status_code} [request_id={self.request_id}]"
                )

                if 400 <= response.status_code < 500:
                    logger.warning(
                        f"Client error: {method} {endpoint} status={response.status_code} [request_id={self.request_id}]"
                    )
                    return response

                if response.status_code >= 500 and attempt < max_retries:
                    delay = backoff ** attempt
                    logger.warning(
                        f"Server error (attempt {attempt + 1}/{max_retries + 1}): "
                        f"{method} {endpoint} status={response.status_code}, retrying in {delay}s [request_id={self.request_id}]"
                    )
                    time.sleep(delay)
                    continue

                return response

            except (httpx.ConnectError, httpx.TimeoutException) as e:
                last_exception = e
                if attempt < max_retries:
                    delay = backoff ** attempt
                    logger.warning(
                        f"Network error (attempt {attempt + 1}/{max_retries + 1}): "
                        f"{method} {endpoint} error={type(e).__name__}, retrying in {delay}s [request_id={self.request_id}]"
                    )
                    time.sleep(delay)
                    continue
                logger.error(
                    f"Network error (max retries exceeded): {method} {endpoint} error={e} [request_id={self.request_id}]"
                )

        if isinstance(last_exception, httpx.TimeoutException):
            raise ConnectionError("Request timed out. Server may be overloaded.")
        raise ConnectionError("Cannot connect to FileShelf server. Is it running?")

    def _format_error(self, response: httpx.Response) -> str:
        """
        Map an error envelope to a user-friendly message.

        Args:
            response: HTTP response object

        Returns:
            User-friendly error message
        """
        try:
            msg = response.json().get('msg')
        except ValueError:
            msg = None

        status_messages = {
            400: 'Bad request',
            404: 'File not found on server',
            413: 'File too large',
            500: 'Server error',
            503: 'Service unavailable',
        }

        message = status_messages.get(response.status_code, f"HTTP {response.status_code}")
        return f"{message}: {msg}" if msg else message

    def upload_files(self, file_paths: list[str]) -> str:
        """
        Upload local files, one request per file.

        Args:
            file_paths: Local paths (relative or absolute)

        Returns:
            Formatted result message with upload status for each file
        """
        results = []

        for file_path in file_paths:
            path = Path(file_path).expanduser()

            if not path.exists():
                results.append(f"Error: File not found: {file_path}")
                continue
            if not path.is_file():
                results.append(f"Error: Not a file: {file_path}")
                continue

            file_size = os.path.getsize(path)
            upload_timeout = self._calculate_upload_timeout(file_size)
            logger.info(f"Uploading {path.name} ({file_size} bytes)")

            try:
                with ProgressFileWrapper(str(path), file_size, path.name) as stream:
                    response = self.session.post(
                        '/api/upload',
                        files={'file': (path.name, stream)},
                        headers={'X-Request-ID': str(uuid.uuid4())},
                        timeout=upload_timeout,
                    )

                if response.status_code == 200:
                    data = response.json()['data']
                    results.append(
                        f"Uploaded: {data['displayName']} "
                        f"(Stored as: {data['filename']}, Size: {data['sizeReadable']})"
                    )
                else:
                    results.append(f"Error uploading {file_path}: {self._format_error(response)}")

            except httpx.ConnectError:
                results.append(f"Error uploading {file_path}: Cannot connect to FileShelf server")
            except httpx.TimeoutException:
                results.append(
                    f"Error uploading {file_path}: Upload timed out "
                    f"(file size: {format_bytes(file_size)}, timeout: {upload_timeout:.1f}s)"
                )
            except OSError as e:
                results.append(f"Error reading {file_path}: {e}")

        return '\n'.join(results) if results else "No files uploaded."

    def list_files(self) -> str:
        """
        List every stored file, newest first.

        Returns:
            Formatted list of files
        """
        try:
            response = self._request_with_retry('GET', '/api/files')
        except ConnectionError as e:
            return f"Error: {e}"

        if response.status_code != 200:
            return f"Error: {self._format_error(response)}"

        files = response.json()['data']
        if not files:
            return "No files shared yet."

        output = [f"Found {len(files)} file(s):\n"]
        for file_meta in files:
            output.append(
                f"  - {file_meta['displayName']}\n"
                f"    Stored as: {file_meta['filename']}\n"
                f"    Size: {file_meta['sizeReadable']}  Type: {file_meta['mimeType']}\n"
                f"    Modified: {file_meta['mtime']}"
            )
        return '\n'.join(output)

    def download(self, filename: str, output_path: Optional[str] = None) -> str:
        """
        Download a file by stored name with progress feedback.

        Args:
            filename: Stored name of the file (as shown by 'list')
            output_path: Optional output file or directory

        Returns:
            Success message with download details
        """
        url = f"/fileList/{quote(filename, safe='')}"

        try:
            with self.session.stream('GET', url) as response:
                if response.status_code != 200:
                    response.read()
                    return f"Error: {self._format_error(response)}"

                display_name = filename_from_content_disposition(
                    response.headers.get('Content-Disposition')
                ) or filename
                output_file = self._resolve_download_path(output_path, display_name)

                total_size = int(response.headers.get('Content-Length', 0))
                downloaded = 0

                with open(output_file, 'wb') as f:
                    for chunk in response.iter_bytes(chunk_size=8192):
                        f.write(chunk)
                        downloaded += len(chunk)

                        if total_size > 0:
                            progress = (downloaded / total_size) * 100
                            sys.stdout.write(
                                f"\rDownloading {display_name}: {format_bytes(downloaded)} / "
                                f"{format_bytes(total_size)} ({GREEN}{progress:.1f}%{RESET})"
                            )
                        else:
                            sys.stdout.write(f"\rDownloading {display_name}: {format_bytes(downloaded)}")
                        sys.stdout.flush()

                sys.stdout.write('\n')
                sys.stdout.flush()

                return f"Downloaded: {display_name} ({format_bytes(downloaded)})\nSaved to: {output_file.absolute()}"

        except httpx.ConnectError:
            return "Error: Cannot connect to FileShelf server. Is it running?"
        except httpx.TimeoutException:
            return "Error: Request timed out. Server may be overloaded."
        except OSError as e:
            return f"Error writing file: {e}"

    def request_refresh(self) -> str:
        """
        Ask the server to broadcast 'files:updated' to every connected client.

        Returns:
            Result message
        """
        timeout = self.config.get_timeout()
        ws_url = self.config.get_ws_url()
        logger.info(f"Requesting refresh broadcast via {ws_url}")

        try:
            with connect(ws_url, open_timeout=timeout) as ws:
                ack = json.loads(ws.recv(timeout=timeout))
                logger.debug(f"Notification channel ack: {ack}")

                ws.send(json.dumps({'type': EVENT_FILES_REFRESH}))

                while True:
                    event = json.loads(ws.recv(timeout=timeout))
                    event_type = event.get('type')
                    if event_type == EVENT_FILES_UPDATED:
                        refreshed_at = (event.get('payload') or {}).get('refreshedAt', 'unknown time')
                        return f"Refresh broadcast sent to all clients at {refreshed_at}"
                    if event_type == EVENT_ERROR:
                        return f"Error: {(event.get('payload') or {}).get('message', 'unknown error')}"

        except TimeoutError:
            return "Error: Timed out waiting for the notification channel."
        except (OSError, WebSocketException) as e:
            logger.error(f"Notification channel error: {e}")
            return f"Error: Cannot reach notification channel at {ws_url}: {e}"
        except ValueError as e:
            return f"Error: Unexpected message from server: {e}"

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()
