"""
Centralized test configuration and fixtures for the file service.

This module provides shared test fixtures that:
1. Make the project packages importable without installation
2. Build file descriptors and temporary files for negotiation tests
3. Provide a FastAPI TestClient bound to a temporary files root
"""

import pytest
import os
import sys
import logging
from pathlib import Path
from typing import Optional
from unittest.mock import patch
from fastapi.testclient import TestClient

# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Project root first so tests import the same packages as the service
_project_root = Path(__file__).resolve().parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from shared.models.file_descriptor import FileDescriptor, NANOS_PER_SECOND  # noqa: E402

# 2023-11-14T22:13:20Z
FIXED_MTIME_SECONDS = 1_700_000_000
FIXED_MTIME_NANOS = 123_456_789


@pytest.fixture
def make_descriptor():
    """Factory for FileDescriptor snapshots with a fixed modification time."""
    def _make(
        size: int = 1000,
        modified_ns: Optional[int] = FIXED_MTIME_SECONDS * NANOS_PER_SECOND + FIXED_MTIME_NANOS,
        inode: int = 42,
    ) -> FileDescriptor:
        return FileDescriptor(size=size, modified_ns=modified_ns, inode=inode)

    return _make


@pytest.fixture
def make_file(tmp_path):
    """Factory writing a file under tmp_path with a fixed modification time."""
    def _make(name: str = "data.bin", content: bytes = b"", mtime: int = FIXED_MTIME_SECONDS) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        os.utime(path, (mtime, mtime))
        return path

    return _make


@pytest.fixture
def files_root(tmp_path):
    """Temporary FILES_ROOT containing an empty 'test-bucket'."""
    root = tmp_path / "files"
    (root / "test-bucket").mkdir(parents=True)
    return root


@pytest.fixture
def test_environment(files_root, tmp_path):
    """Environment variables for the file service, isolated from the host."""
    env_vars = {
        'ENV': 'dev',
        'FILES_ROOT': str(files_root),
        'FILES_PORT': '8001',
        'LOG_LEVEL': 'DEBUG',
    }
    with patch.dict(os.environ, env_vars, clear=True):
        yield env_vars


@pytest.fixture
def api_client(test_environment, tmp_path):
    """FastAPI TestClient for the file service application."""
    from shared.config.config_manager import ConfigManager
    from fileserve.main import create_app

    config_dir = tmp_path / "config"
    config_dir.mkdir(exist_ok=True)
    app = create_app(ConfigManager(config_dir=str(config_dir)))

    with TestClient(app) as client:
        yield client
