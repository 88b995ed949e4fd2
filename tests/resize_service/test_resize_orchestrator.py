import io
import zipfile
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from image_resize_pipeline import (
    ArchiveError,
    ConfigError,
    EmptyArchiveError,
    OutputFormat,
    ProcessingConfig,
    SourceImage,
)
from PIL import Image

from src.resize_service.app.models import BatchStatus, ItemStatus, ResizeBatch, ResizeItem
from src.resize_service.app.services.domain import BatchNotFoundError
from tests.shared_fixtures import SharedImageFixtures


@pytest.fixture
def jpeg_config():
    return ProcessingConfig(max_width=100, quality=80, format="JPEG").validate()


class TestBuildConfig:
    def test_defaults_from_settings(self, resize_orchestrator):
        config = resize_orchestrator.build_config()

        assert config.max_width == 100
        assert config.quality == 80
        assert config.output_format == OutputFormat.JPEG

    def test_explicit_values_override_defaults(self, resize_orchestrator):
        config = resize_orchestrator.build_config(640, 55, "image/webp")

        assert config.max_width == 640
        assert config.quality == 55
        assert config.output_format == OutputFormat.WEBP

    @pytest.mark.parametrize(
        "max_width,quality,output_format",
        [
            (0, None, None),
            (-5, None, None),
            (None, 9, None),
            (None, 101, None),
            (None, None, "gif"),
        ],
    )
    def test_invalid_values_rejected(
        self, resize_orchestrator, max_width, quality, output_format
    ):
        with pytest.raises(ConfigError):
            resize_orchestrator.build_config(max_width, quality, output_format)


class TestProcessBatch:
    async def test_mixed_batch_persists_every_item(
        self, db, resize_orchestrator, jpeg_config, image_bytes
    ):
        wide_data, _ = SharedImageFixtures.load_wide_image()
        corrupt_data, _ = SharedImageFixtures.corrupt_image()
        sources = [
            SourceImage(data=wide_data, filename="wide_400x200.jpg"),
            SourceImage(data=corrupt_data, filename="corrupt.jpg"),
            SourceImage(data=image_bytes(50, 50), filename="small.png"),
        ]

        details = await resize_orchestrator.process_batch(sources, jpeg_config)

        assert details.batch.status == BatchStatus.PARTIAL
        assert details.batch.total_items == 3
        assert details.batch.succeeded_items == 2
        assert details.summary.message == "2 of 3 images processed"
        assert details.archive_available

        wide_item, corrupt_item, small_item = details.items
        assert wide_item.status == ItemStatus.SUCCEEDED
        assert (wide_item.width, wide_item.height) == (100, 50)
        assert wide_item.entry_name == "wide_400x200_resized.jpg"

        assert corrupt_item.status == ItemStatus.FAILED
        assert corrupt_item.error_type == "decode_error"
        assert corrupt_item.processed_bytes is None
        assert corrupt_item.entry_name is None

        assert small_item.status == ItemStatus.SUCCEEDED
        assert (small_item.width, small_item.height) == (50, 50)
        assert small_item.entry_name == "small_resized.jpg"

        archive_path = Path(details.batch.archive_path)
        assert archive_path.exists()
        with zipfile.ZipFile(archive_path) as archive:
            assert archive.namelist() == [
                "wide_400x200_resized.jpg",
                "small_resized.jpg",
            ]
            with Image.open(io.BytesIO(archive.read("small_resized.jpg"))) as image:
                assert image.format == "JPEG"

        stored = await ResizeItem.filter(batch_id=details.batch.id).count()
        assert stored == 3

    async def test_all_failed_batch_has_no_archive(
        self, db, resize_orchestrator, jpeg_config, archive_storage
    ):
        sources = [
            SourceImage(data=b"", filename="empty.jpg"),
            SourceImage(data=b"garbage", filename="garbage.png"),
        ]

        details = await resize_orchestrator.process_batch(sources, jpeg_config)

        assert details.batch.status == BatchStatus.FAILED
        assert details.batch.succeeded_items == 0
        assert details.batch.archive_path is None
        assert not details.archive_available
        assert details.summary.message == "0 of 2 images processed"
        assert details.summary.reduction_percent is None
        assert all(item.status == ItemStatus.FAILED for item in details.items)
        assert list(Path(archive_storage.settings.absolute_archives_dir).iterdir()) == []

        with pytest.raises(EmptyArchiveError):
            await resize_orchestrator.get_archive_path(str(details.batch.id))

    async def test_duplicate_names_are_suffixed(
        self, db, resize_orchestrator, image_bytes
    ):
        config = ProcessingConfig(max_width=100, quality=80, format="PNG").validate()
        sources = [
            SourceImage(data=image_bytes(color="red"), filename="a/photo.png"),
            SourceImage(data=image_bytes(color="green"), filename="b/photo.jpg"),
        ]

        details = await resize_orchestrator.process_batch(sources, config)

        assert [item.entry_name for item in details.items] == [
            "photo_resized.png",
            "photo_resized_2.png",
        ]

    async def test_archive_failure_keeps_results(
        self, db, resize_orchestrator, jpeg_config, image_bytes
    ):
        sources = [SourceImage(data=image_bytes(), filename="photo.png")]

        with patch.object(
            resize_orchestrator.archive_storage,
            "save_archive",
            AsyncMock(side_effect=IOError("disk full")),
        ):
            details = await resize_orchestrator.process_batch(sources, jpeg_config)

        assert details.batch.status == BatchStatus.COMPLETED
        assert details.batch.archive_path is None
        assert details.items[0].entry_name is None

        with pytest.raises(ArchiveError) as exc_info:
            await resize_orchestrator.get_archive_path(str(details.batch.id))
        assert not isinstance(exc_info.value, EmptyArchiveError)

    async def test_persistence_failure_removes_archive(
        self, db, resize_orchestrator, jpeg_config, image_bytes, archive_storage
    ):
        sources = [SourceImage(data=image_bytes(), filename="photo.png")]

        with patch.object(
            ResizeBatch, "create", AsyncMock(side_effect=RuntimeError("db down"))
        ):
            with pytest.raises(RuntimeError, match="db down"):
                await resize_orchestrator.process_batch(sources, jpeg_config)

        assert list(Path(archive_storage.settings.absolute_archives_dir).iterdir()) == []

    async def test_item_persistence_failure_removes_batch_records(
        self, db, resize_orchestrator, jpeg_config, image_bytes, archive_storage
    ):
        sources = [
            SourceImage(data=image_bytes(color="red"), filename="red.png"),
            SourceImage(data=image_bytes(color="blue"), filename="blue.png"),
        ]
        original_create = ResizeItem.create
        calls = 0

        async def fail_on_second_item(*args, **kwargs):
            nonlocal calls
            calls += 1
            if calls == 2:
                raise RuntimeError("db down")
            return await original_create(*args, **kwargs)

        with patch.object(ResizeItem, "create", side_effect=fail_on_second_item):
            with pytest.raises(RuntimeError, match="db down"):
                await resize_orchestrator.process_batch(sources, jpeg_config)

        assert await ResizeBatch.all().count() == 0
        assert await ResizeItem.all().count() == 0
        assert list(Path(archive_storage.settings.absolute_archives_dir).iterdir()) == []

        batches, total_count = await resize_orchestrator.list_batches()
        assert batches == []
        assert total_count == 0


class TestBatchQueries:
    async def test_get_batch_returns_items_in_order(
        self, db, resize_orchestrator, jpeg_config, image_bytes
    ):
        sources = [
            SourceImage(data=image_bytes(color=color), filename=f"{color}.png")
            for color in ("red", "green", "blue")
        ]
        created = await resize_orchestrator.process_batch(sources, jpeg_config)

        details = await resize_orchestrator.get_batch(str(created.batch.id))

        assert details is not None
        assert [item.position for item in details.items] == [0, 1, 2]
        assert [item.original_filename for item in details.items] == [
            "red.png",
            "green.png",
            "blue.png",
        ]

    async def test_get_unknown_batch(self, db, resize_orchestrator):
        assert await resize_orchestrator.get_batch(
            "00000000-0000-0000-0000-000000000000"
        ) is None

    async def test_list_batches(self, db, resize_orchestrator, jpeg_config, image_bytes):
        for _ in range(3):
            await resize_orchestrator.process_batch(
                [SourceImage(data=image_bytes(), filename="photo.png")], jpeg_config
            )

        batches, total_count = await resize_orchestrator.list_batches(limit=2, offset=0)

        assert total_count == 3
        assert len(batches) == 2

    async def test_get_archive_path(
        self, db, resize_orchestrator, jpeg_config, image_bytes
    ):
        details = await resize_orchestrator.process_batch(
            [SourceImage(data=image_bytes(), filename="photo.png")], jpeg_config
        )

        archive_path = await resize_orchestrator.get_archive_path(str(details.batch.id))

        assert archive_path == details.batch.archive_path
        assert zipfile.is_zipfile(archive_path)

    async def test_get_archive_path_unknown_batch(self, db, resize_orchestrator):
        with pytest.raises(BatchNotFoundError):
            await resize_orchestrator.get_archive_path(
                "00000000-0000-0000-0000-000000000000"
            )

    async def test_get_archive_path_missing_file(
        self, db, resize_orchestrator, jpeg_config, image_bytes
    ):
        details = await resize_orchestrator.process_batch(
            [SourceImage(data=image_bytes(), filename="photo.png")], jpeg_config
        )
        Path(details.batch.archive_path).unlink()

        with pytest.raises(BatchNotFoundError):
            await resize_orchestrator.get_archive_path(str(details.batch.id))

    async def test_delete_batch(self, db, resize_orchestrator, jpeg_config, image_bytes):
        details = await resize_orchestrator.process_batch(
            [SourceImage(data=image_bytes(), filename="photo.png")], jpeg_config
        )
        batch_id = str(details.batch.id)
        archive_path = Path(details.batch.archive_path)

        assert await resize_orchestrator.delete_batch(batch_id) is True

        assert not archive_path.exists()
        assert await ResizeBatch.get_or_none(id=batch_id) is None
        assert await ResizeItem.filter(batch_id=batch_id).count() == 0
        assert await resize_orchestrator.delete_batch(batch_id) is False


class TestRemoveItem:
    async def test_remove_succeeded_item_drops_archive_entry(
        self, db, resize_orchestrator, jpeg_config, image_bytes
    ):
        sources = [
            SourceImage(data=image_bytes(color=color), filename=f"{color}.png")
            for color in ("red", "green", "blue")
        ]
        created = await resize_orchestrator.process_batch(sources, jpeg_config)
        batch_id = str(created.batch.id)

        details = await resize_orchestrator.remove_item(batch_id, 1)

        assert details is not None
        assert [item.position for item in details.items] == [0, 2]
        assert details.batch.total_items == 2
        assert details.batch.succeeded_items == 2
        assert details.batch.status == BatchStatus.COMPLETED
        assert details.summary.message == "2 of 2 images processed"

        archive_path = await resize_orchestrator.get_archive_path(batch_id)
        with zipfile.ZipFile(archive_path) as archive:
            assert archive.namelist() == ["red_resized.jpg", "blue_resized.jpg"]

    async def test_remove_failed_item_keeps_archive(
        self, db, resize_orchestrator, jpeg_config, image_bytes
    ):
        sources = [
            SourceImage(data=image_bytes(), filename="photo.png"),
            SourceImage(data=b"garbage", filename="broken.jpg"),
        ]
        created = await resize_orchestrator.process_batch(sources, jpeg_config)
        batch_id = str(created.batch.id)

        details = await resize_orchestrator.remove_item(batch_id, 1)

        assert details.batch.status == BatchStatus.COMPLETED
        assert details.batch.succeeded_items == 1
        with zipfile.ZipFile(details.batch.archive_path) as archive:
            assert archive.namelist() == ["photo_resized.jpg"]

    async def test_remove_last_success_deletes_archive(
        self, db, resize_orchestrator, jpeg_config, image_bytes
    ):
        sources = [
            SourceImage(data=image_bytes(), filename="photo.png"),
            SourceImage(data=b"garbage", filename="broken.jpg"),
        ]
        created = await resize_orchestrator.process_batch(sources, jpeg_config)
        batch_id = str(created.batch.id)
        archive_path = Path(created.batch.archive_path)

        details = await resize_orchestrator.remove_item(batch_id, 0)

        assert details.batch.archive_path is None
        assert details.batch.status == BatchStatus.FAILED
        assert not archive_path.exists()
        with pytest.raises(EmptyArchiveError):
            await resize_orchestrator.get_archive_path(batch_id)

    async def test_remove_unknown_item(
        self, db, resize_orchestrator, jpeg_config, image_bytes
    ):
        created = await resize_orchestrator.process_batch(
            [SourceImage(data=image_bytes(), filename="photo.png")], jpeg_config
        )

        assert await resize_orchestrator.remove_item(str(created.batch.id), 5) is None
        assert (
            await resize_orchestrator.remove_item(
                "00000000-0000-0000-0000-000000000000", 0
            )
            is None
        )
