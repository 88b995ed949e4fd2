from functools import lru_cache

from image_resize_pipeline import ArchiveBuilder, BatchCoordinator

from ..core.config import Settings, get_settings
from ..services.archive_storage import ArchiveStorageService
from ..services.resize_orchestrator import ResizeOrchestrator


@lru_cache()
def get_settings_dependency() -> Settings:
    return get_settings()


@lru_cache()
def get_archive_storage() -> ArchiveStorageService:
    return ArchiveStorageService(get_settings())


@lru_cache()
def get_batch_coordinator() -> BatchCoordinator:
    settings = get_settings()
    return BatchCoordinator(concurrency_limit=settings.CONCURRENT_PROCESSING_LIMIT)


def get_resize_orchestrator() -> ResizeOrchestrator:
    return ResizeOrchestrator(
        archive_storage=get_archive_storage(),
        coordinator=get_batch_coordinator(),
        archive_builder=ArchiveBuilder(),
        settings=get_settings(),
    )
