"""Shared pytest fixtures for all tests."""

import io

import pytest
from fastapi.testclient import TestClient

from cli.config import Config
from server.main import create_app


class BytesSource:
    """Minimal async readable standing in for an UploadFile."""

    def __init__(self, data: bytes):
        self._buffer = io.BytesIO(data)

    async def read(self, size: int = -1) -> bytes:
        return self._buffer.read(size)


@pytest.fixture
def storage_dir(tmp_path):
    """
    Create temporary storage directory.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to an empty storage directory
    """
    directory = tmp_path / 'fileList'
    directory.mkdir()
    return directory


@pytest.fixture
def app(storage_dir):
    """Create a FileShelf application bound to the temporary storage directory."""
    return create_app(storage_dir=storage_dir)


@pytest.fixture
def client(app):
    """Create FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def temp_config_dir(tmp_path):
    """
    Create temporary config directory.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to temporary .fileshelf directory
    """
    config_dir = tmp_path / '.fileshelf'
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def temp_config(temp_config_dir):
    """
    Create temporary config instance.

    Args:
        temp_config_dir: Temporary config directory fixture

    Returns:
        Config instance with temp config file
    """
    config = Config(temp_config_dir / 'config.json')
    config.data['server_host'] = 'localhost'
    config.data['server_port'] = 3000
    config.data['download_dir'] = str(temp_config_dir.parent / 'downloads')
    return config


@pytest.fixture
def sample_file(tmp_path):
    """
    Create a sample file for testing file uploads.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to sample text file
    """
    file_path = tmp_path / 'test.txt'
    file_path.write_text('Sample content for testing')
    return file_path


@pytest.fixture
def multiple_sample_files(tmp_path):
    """
    Create multiple sample files for testing bulk operations.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        List of Paths to sample files
    """
    files = []
    for i in range(3):
        file_path = tmp_path / f'test{i}.txt'
        file_path.write_text(f'Sample content {i}')
        files.append(file_path)
    return files


@pytest.fixture
def make_source():
    """Factory building async readable upload bodies from bytes."""
    return BytesSource
