from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class ProcessingConfigInfo(BaseModel):
    """Effective configuration a batch was processed with"""

    max_width: int = Field(..., description="Maximum output width in pixels")
    quality: int = Field(..., description="Quality factor (10-100) for lossy formats")
    format: str = Field(..., description="Output format (JPEG, PNG, WEBP)")


class ItemReport(BaseModel):
    """Outcome and size report for one uploaded image"""

    position: int = Field(..., description="Index of the image in the upload")
    original_filename: str = Field(..., description="Original filename")
    status: str = Field(..., description="succeeded or failed")
    original_bytes: int = Field(..., description="Uploaded size in bytes")
    processed_bytes: int | None = Field(None, description="Encoded size in bytes")
    reduction_percent: int | None = Field(
        None, description="Size reduction in percent; negative if the output grew"
    )
    original_size: str = Field(..., description="Human-readable uploaded size")
    processed_size: str | None = Field(None, description="Human-readable encoded size")
    width: int | None = Field(None, description="Output width in pixels")
    height: int | None = Field(None, description="Output height in pixels")
    entry_name: str | None = Field(None, description="Entry name inside the archive")
    error_type: str | None = Field(None, description="Failure category")
    error_message: str | None = Field(None, description="Failure reason")


class BatchResponse(BaseModel):
    """Response model for a processed batch"""

    batch_id: UUID = Field(..., description="Batch identifier")
    status: str = Field(..., description="completed, partial or failed")
    total: int = Field(..., description="Number of uploaded images")
    succeeded: int = Field(..., description="Number of images processed")
    failed: int = Field(..., description="Number of images that failed")
    message: str = Field(..., description="Summary such as '2 of 3 images processed'")
    reduction_percent: int | None = Field(
        None, description="Overall size reduction across processed images"
    )
    config: ProcessingConfigInfo
    items: list[ItemReport] = Field(..., description="Per-image reports in upload order")
    archive_available: bool = Field(..., description="Whether a zip can be downloaded")
    archive_url: str | None = Field(None, description="Download URL of the zip")
    created_at: datetime | None = Field(None, description="When the batch was processed")


class BatchSummaryInfo(BaseModel):
    """Short batch description used in listings"""

    batch_id: UUID
    status: str
    total: int
    succeeded: int
    output_format: str
    archive_available: bool
    created_at: datetime


class BatchListResponse(BaseModel):
    batches: list[BatchSummaryInfo]
    total_count: int

