"""Shared test fixtures."""
import pytest
import structlog
from unittest.mock import AsyncMock
from picture_sync.config import Settings
from picture_sync.storage.local import LocalObjectStore
from picture_sync.storage.metadata import MetadataRecorder
from tests.factories import make_image_bytes


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Keep structlog's global config from leaking closed capture streams across tests."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def mock_settings(tmp_path):
    """Create test settings with dummy values."""
    return Settings(
        storage_backend="local",
        local_storage_path=str(tmp_path),
        public_url="http://testserver/files",
        recorder_backend="sql",
        database_url=f"sqlite+aiosqlite:///{tmp_path}/test.db",
        hash_window_size=64,
        hash_algorithm="md5",
        log_level="WARNING",
    )


@pytest.fixture
def local_store(tmp_path):
    return LocalObjectStore(tmp_path, "http://testserver/files")


@pytest.fixture
def mock_recorder():
    """Create a mock metadata recorder."""
    recorder = AsyncMock(spec=MetadataRecorder)
    recorder.insert.return_value = {"last_row_id": 1, "changes": 1}
    recorder.list_by_owner.return_value = []
    return recorder


@pytest.fixture
def png_bytes():
    return make_image_bytes()
