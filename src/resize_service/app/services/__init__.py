from .archive_storage import ArchiveStorageService
from .resize_orchestrator import ResizeOrchestrator

__all__ = ["ArchiveStorageService", "ResizeOrchestrator"]
