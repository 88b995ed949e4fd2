import io
import tempfile
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from image_resize_pipeline import ArchiveBuilder, BatchCoordinator, ProcessingConfig
from PIL import Image
from tortoise import Tortoise

from src.resize_service.app.api.public import router as public_router
from src.resize_service.app.core.config import Settings
from src.resize_service.app.core.dependencies import (
    get_resize_orchestrator,
    get_settings_dependency,
)
from src.resize_service.app.db.database import MODEL_MODULES
from src.resize_service.app.services.archive_storage import ArchiveStorageService
from src.resize_service.app.services.resize_orchestrator import ResizeOrchestrator


@pytest.fixture
def temp_storage_dir():
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def test_settings(temp_storage_dir):
    return Settings(
        ARCHIVES_DIR=str(Path(temp_storage_dir) / "archives"),
        LOG_FILE=str(Path(temp_storage_dir) / "logs" / "resize_service.log"),
        DATABASE_URL="sqlite://:memory:",
        DEFAULT_MAX_WIDTH=100,
        DEFAULT_QUALITY=80,
        DEFAULT_FORMAT="JPEG",
        MAX_BATCH_SIZE=5,
        MAX_FILE_SIZE=1024 * 1024,
        CONCURRENT_PROCESSING_LIMIT=2,
    )


@pytest.fixture
async def db():
    await Tortoise.init(db_url="sqlite://:memory:", modules={"models": MODEL_MODULES})
    await Tortoise.generate_schemas()
    yield
    await Tortoise.close_connections()


@pytest.fixture
def archive_storage(test_settings):
    return ArchiveStorageService(settings=test_settings)


@pytest.fixture
def resize_orchestrator(test_settings, archive_storage):
    return ResizeOrchestrator(
        archive_storage=archive_storage,
        coordinator=BatchCoordinator(
            concurrency_limit=test_settings.CONCURRENT_PROCESSING_LIMIT
        ),
        archive_builder=ArchiveBuilder(),
        settings=test_settings,
    )


@pytest.fixture
def mock_resize_orchestrator():
    mock = Mock(spec=ResizeOrchestrator)
    mock.build_config = Mock(
        return_value=ProcessingConfig(max_width=100, quality=80, format="JPEG").validate()
    )
    mock.process_batch = AsyncMock()
    mock.get_batch = AsyncMock(return_value=None)
    mock.list_batches = AsyncMock(return_value=([], 0))
    mock.get_archive_path = AsyncMock()
    mock.delete_batch = AsyncMock(return_value=False)
    mock.remove_item = AsyncMock(return_value=None)
    return mock


@pytest.fixture
def test_client(mock_resize_orchestrator, test_settings):
    app = FastAPI()

    app.dependency_overrides[get_resize_orchestrator] = lambda: mock_resize_orchestrator
    app.dependency_overrides[get_settings_dependency] = lambda: test_settings

    app.include_router(public_router, prefix="/api")

    return TestClient(app)


@pytest.fixture
def image_bytes():
    def _image_bytes(
        width: int = 50,
        height: int = 50,
        pil_format: str = "PNG",
        color: str = "blue",
    ) -> bytes:
        image = Image.new("RGB", (width, height), color=color)
        buffer = io.BytesIO()
        image.save(buffer, format=pil_format)
        return buffer.getvalue()

    return _image_bytes
