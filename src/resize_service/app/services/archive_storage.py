import asyncio
import uuid
from pathlib import Path

import aiofiles
from loguru import logger

from ..core.config import Settings


class ArchiveStorageService:
    def __init__(self, settings: Settings | None = None):
        from ..core.config import get_settings

        self.settings = settings or get_settings()
        self._ensure_directories()

    def _ensure_directories(self) -> None:
        Path(self.settings.absolute_archives_dir).mkdir(parents=True, exist_ok=True)

    def generate_archive_path(self, batch_id: str) -> str:
        return str(Path(self.settings.absolute_archives_dir) / f"{batch_id}.zip")

    async def save_archive(self, batch_id: str, archive_data: bytes) -> str:
        storage_path = self.generate_archive_path(batch_id)
        temp_path = f"{storage_path}.{uuid.uuid4().hex}.tmp"

        logger.info(f"Saving archive for batch {batch_id} ({len(archive_data)} bytes)")

        try:
            async with aiofiles.open(temp_path, "wb") as f:
                await f.write(archive_data)

            await asyncio.to_thread(Path(temp_path).replace, storage_path)

            return storage_path

        except Exception as e:
            await self._safe_delete_file(temp_path)
            raise IOError(f"Failed to save archive: {str(e)}")

    async def load_archive(self, archive_path: str) -> bytes:
        try:
            async with aiofiles.open(archive_path, "rb") as f:
                return await f.read()
        except OSError as e:
            raise IOError(f"Failed to load archive: {str(e)}")

    async def delete_archive(self, archive_path: str) -> bool:
        return await self._safe_delete_file(archive_path)

    async def file_exists(self, file_path: str) -> bool:
        try:
            return Path(file_path).exists()
        except OSError:
            return False

    async def _safe_delete_file(self, file_path: str) -> bool:
        try:
            path = Path(file_path)
            if path.exists():
                path.unlink()
                return True
            return False
        except OSError as e:
            logger.warning(f"Failed to delete {file_path}: {e}")
            return False
