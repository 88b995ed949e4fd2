from enum import Enum

from tortoise import fields
from tortoise.models import Model


class BatchStatus(str, Enum):
    """Overall outcome of a processed batch."""

    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED = "failed"


class ItemStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ResizeBatch(Model):
    id = fields.UUIDField(primary_key=True)
    status = fields.CharEnumField(BatchStatus, description="Overall batch outcome")
    max_width = fields.IntField(description="Maximum output width in pixels")
    quality = fields.IntField(description="Quality factor for lossy formats")
    output_format = fields.CharField(
        max_length=10, description="Output codec (JPEG, PNG, WEBP)"
    )
    total_items = fields.IntField()
    succeeded_items = fields.IntField()
    archive_path = fields.CharField(
        max_length=500, null=True, description="Path to the stored zip archive"
    )

    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    items = fields.ReverseRelation["ResizeItem"]

    class Meta:
        table = "resize_batches"

    def __str__(self) -> str:
        return (
            f"<ResizeBatch(id={self.id}, status='{self.status.value}', "
            f"items={self.succeeded_items}/{self.total_items})>"
        )


class ResizeItem(Model):
    id = fields.UUIDField(primary_key=True)
    batch = fields.ForeignKeyField(
        "models.ResizeBatch", related_name="items", on_delete=fields.CASCADE
    )
    position = fields.IntField(description="Index of the item in the uploaded batch")
    original_filename = fields.CharField(
        max_length=255, description="Original filename as uploaded by user"
    )
    status = fields.CharEnumField(ItemStatus)
    original_bytes = fields.IntField()
    processed_bytes = fields.IntField(null=True)
    reduction_percent = fields.IntField(null=True)
    width = fields.IntField(null=True, description="Output width in pixels")
    height = fields.IntField(null=True, description="Output height in pixels")
    entry_name = fields.CharField(
        max_length=300, null=True, description="Name of the entry in the archive"
    )
    error_type = fields.CharField(max_length=50, null=True)
    error_message = fields.TextField(null=True)

    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "resize_items"
        unique_together = (("batch", "position"),)

    def __str__(self) -> str:
        return (
            f"<ResizeItem(position={self.position}, "
            f"filename='{self.original_filename}', status='{self.status.value}')>"
        )
