import asyncio
import uuid
from collections.abc import Sequence

from image_resize_pipeline import (
    Archive,
    ArchiveBuilder,
    ArchiveError,
    Batch,
    BatchCoordinator,
    EmptyArchiveError,
    ItemFailure,
    ItemSuccess,
    ProcessingConfig,
    SourceImage,
    drop_entries,
    report_batch,
)
from loguru import logger

from ..core.config import Settings
from ..models import ItemStatus, ResizeBatch, ResizeItem
from .archive_storage import ArchiveStorageService
from .domain import BatchDetails, BatchNotFoundError, batch_status


class ResizeOrchestrator:
    def __init__(
        self,
        archive_storage: ArchiveStorageService | None = None,
        coordinator: BatchCoordinator | None = None,
        archive_builder: ArchiveBuilder | None = None,
        settings: Settings | None = None,
    ):
        from ..core.config import get_settings

        self.settings = settings or get_settings()
        self.archive_storage = archive_storage or ArchiveStorageService(self.settings)
        self.coordinator = coordinator or BatchCoordinator(
            concurrency_limit=self.settings.CONCURRENT_PROCESSING_LIMIT
        )
        self.archive_builder = archive_builder or ArchiveBuilder()

    def build_config(
        self,
        max_width: int | None = None,
        quality: int | None = None,
        output_format: str | None = None,
    ) -> ProcessingConfig:
        """Fill unset options from settings and validate; raises ConfigError."""
        config = ProcessingConfig(
            max_width=self.settings.DEFAULT_MAX_WIDTH if max_width is None else max_width,
            quality=self.settings.DEFAULT_QUALITY if quality is None else quality,
            format=self.settings.DEFAULT_FORMAT if output_format is None else output_format,
        )
        return config.validate()

    async def process_batch(
        self, sources: Sequence[SourceImage], config: ProcessingConfig
    ) -> BatchDetails:
        batch_id = str(uuid.uuid4())
        logger.info(f"Processing batch {batch_id} with {len(sources)} images")

        batch = await self.coordinator.run(sources, config)

        archive, archive_path = await self._store_archive(batch_id, batch)

        try:
            details = await self._persist(batch_id, batch, archive, archive_path)
        except Exception as e:
            logger.error(f"Failed to persist batch {batch_id}: {e}")
            await self._cleanup_batch_and_records(batch_id, archive_path)
            raise

        logger.info(
            f"Batch {batch_id}: {batch.succeeded} of {len(batch)} images processed"
        )
        return details

    async def _store_archive(
        self, batch_id: str, batch: Batch
    ) -> tuple[Archive | None, str | None]:
        if batch.succeeded == 0:
            logger.warning(f"Batch {batch_id} has no successful items, skipping archive")
            return None, None

        try:
            archive = self.archive_builder.build(batch)
            archive_data = await asyncio.to_thread(archive.to_zip)
            archive_path = await self.archive_storage.save_archive(
                batch_id, archive_data
            )
            return archive, archive_path

        except (ArchiveError, IOError) as e:
            logger.error(f"Failed to build archive for batch {batch_id}: {e}")
            return None, None

    async def _persist(
        self,
        batch_id: str,
        batch: Batch,
        archive: Archive | None,
        archive_path: str | None,
    ) -> BatchDetails:
        config = batch.config

        batch_record = await ResizeBatch.create(
            id=batch_id,
            status=batch_status(len(batch), batch.succeeded),
            max_width=config.max_width,
            quality=config.quality,
            output_format=config.output_format.value,
            total_items=len(batch),
            succeeded_items=batch.succeeded,
            archive_path=archive_path,
        )

        entry_names = archive.names_by_position if archive else {}

        item_records = []
        for (position, source, result), size_report in zip(
            batch.items(), report_batch(batch)
        ):
            fields = {
                "batch": batch_record,
                "position": position,
                "original_filename": source.filename,
                "original_bytes": size_report.original_bytes,
            }

            if isinstance(result, ItemSuccess):
                fields.update(
                    status=ItemStatus.SUCCEEDED,
                    processed_bytes=size_report.processed_bytes,
                    reduction_percent=size_report.reduction_percent,
                    width=result.processed.dimensions.width,
                    height=result.processed.dimensions.height,
                    entry_name=entry_names.get(position),
                )
            elif isinstance(result, ItemFailure):
                fields.update(
                    status=ItemStatus.FAILED,
                    error_type=result.error_type,
                    error_message=result.reason,
                )

            item_records.append(await ResizeItem.create(**fields))

        return BatchDetails(batch=batch_record, items=item_records)

    async def _cleanup_batch_and_records(
        self, batch_id: str, archive_path: str | None
    ) -> None:
        try:
            if archive_path:
                await self.archive_storage.delete_archive(archive_path)

            await ResizeItem.filter(batch_id=batch_id).delete()
            await ResizeBatch.filter(id=batch_id).delete()

        except Exception as cleanup_error:
            logger.warning(f"Failed to cleanup batch {batch_id}: {cleanup_error}")

    async def get_batch(self, batch_id: str) -> BatchDetails | None:
        batch_record = await ResizeBatch.get_or_none(id=batch_id)
        if batch_record is None:
            return None

        items = await ResizeItem.filter(batch_id=batch_id).order_by("position")
        return BatchDetails(batch=batch_record, items=list(items))

    async def list_batches(
        self, limit: int = 50, offset: int = 0
    ) -> tuple[list[ResizeBatch], int]:
        batches = (
            await ResizeBatch.all().order_by("-created_at").offset(offset).limit(limit)
        )
        total_count = await ResizeBatch.all().count()
        return list(batches), total_count

    async def get_archive_path(self, batch_id: str) -> str:
        batch_record = await ResizeBatch.get_or_none(id=batch_id)
        if batch_record is None:
            raise BatchNotFoundError(f"Batch {batch_id} not found")

        if batch_record.succeeded_items == 0:
            raise EmptyArchiveError(f"Batch {batch_id} has no processed images")

        if batch_record.archive_path is None:
            raise ArchiveError(f"Archive for batch {batch_id} could not be built")

        if not await self.archive_storage.file_exists(batch_record.archive_path):
            raise BatchNotFoundError(f"Archive for batch {batch_id} is missing on disk")

        return batch_record.archive_path

    async def delete_batch(self, batch_id: str) -> bool:
        batch_record = await ResizeBatch.get_or_none(id=batch_id)
        if batch_record is None:
            return False

        if batch_record.archive_path:
            await self.archive_storage.delete_archive(batch_record.archive_path)

        await ResizeItem.filter(batch_id=batch_id).delete()
        await batch_record.delete()

        logger.info(f"Cleared batch {batch_id}")
        return True

    async def remove_item(self, batch_id: str, position: int) -> BatchDetails | None:
        """
        Remove one image from a processed batch.

        The item's entry is dropped from the stored archive; the archive is
        deleted once its last entry is gone. Returns ``None`` when the batch
        or the position is unknown.
        """
        batch_record = await ResizeBatch.get_or_none(id=batch_id)
        if batch_record is None:
            return None

        item = await ResizeItem.get_or_none(batch_id=batch_id, position=position)
        if item is None:
            return None

        if item.status == ItemStatus.SUCCEEDED:
            batch_record.succeeded_items -= 1
            if batch_record.archive_path and item.entry_name:
                batch_record.archive_path = await self._rewrite_archive(
                    batch_id, batch_record.archive_path, item.entry_name
                )

        batch_record.total_items -= 1
        batch_record.status = batch_status(
            batch_record.total_items, batch_record.succeeded_items
        )

        await item.delete()
        await batch_record.save()

        logger.info(f"Removed item {position} from batch {batch_id}")
        return await self.get_batch(batch_id)

    async def _rewrite_archive(
        self, batch_id: str, archive_path: str, entry_name: str
    ) -> str | None:
        archive_data = await self.archive_storage.load_archive(archive_path)
        rewritten = await asyncio.to_thread(drop_entries, archive_data, [entry_name])

        if rewritten is None:
            await self.archive_storage.delete_archive(archive_path)
            return None

        return await self.archive_storage.save_archive(batch_id, rewritten)
