from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import FileResponse
from image_resize_pipeline import (
    ArchiveError,
    ConfigError,
    EmptyArchiveError,
    SourceImage,
    format_size,
)
from loguru import logger

from ..core.config import Settings
from ..core.dependencies import get_resize_orchestrator, get_settings_dependency
from ..models import ItemStatus
from ..schemas import (
    BatchListResponse,
    BatchResponse,
    BatchSummaryInfo,
    ItemReport,
    ProcessingConfigInfo,
)
from ..services.domain import BatchDetails, BatchNotFoundError
from ..services.resize_orchestrator import ResizeOrchestrator

router = APIRouter()


@router.post("/batches", response_model=BatchResponse)
async def create_batch(
    files: list[UploadFile] | None = File(None),
    max_width: int | None = Form(None),
    quality: int | None = Form(None),
    format: str | None = Form(None),
    orchestrator: ResizeOrchestrator = Depends(get_resize_orchestrator),
    settings: Settings = Depends(get_settings_dependency),
):
    """
    Upload images and resize them with one shared configuration.

    Args:
        files: Images to process (JPEG, PNG, WEBP)
        max_width: Maximum output width in pixels (default from settings)
        quality: Quality factor 10-100 for JPEG and WEBP
        format: Output format name, extension or media type

    Returns:
        BatchResponse with per-image size reports and the archive location

    Raises:
        HTTPException: For invalid configuration or oversized uploads
    """
    if not files:
        logger.warning("Rejected batch upload without files")
        raise HTTPException(status_code=400, detail="No files provided")

    logger.info(f"Received batch upload with {len(files)} files")

    if len(files) > settings.MAX_BATCH_SIZE:
        raise HTTPException(
            status_code=413,
            detail=f"Too many files. Maximum batch size is {settings.MAX_BATCH_SIZE}",
        )

    try:
        config = orchestrator.build_config(max_width, quality, format)

        sources = []
        for index, upload in enumerate(files):
            file_data = await upload.read()

            if len(file_data) > settings.MAX_FILE_SIZE:
                raise HTTPException(
                    status_code=413,
                    detail=(
                        f"File {upload.filename} too large. Maximum size is "
                        f"{settings.MAX_FILE_SIZE // (1024 * 1024)}MB"
                    ),
                )

            sources.append(
                SourceImage(data=file_data, filename=upload.filename or f"image-{index + 1}")
            )

        details = await orchestrator.process_batch(sources, config)

        return _to_batch_response(details)

    except HTTPException:
        raise

    except ConfigError as e:
        logger.warning(f"Rejected batch configuration: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    except IOError as e:
        logger.error(f"File I/O error while processing batch: {e}")
        raise HTTPException(status_code=500, detail="Failed to process batch")

    except Exception as e:
        logger.error(f"Unexpected error processing batch: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/batches", response_model=BatchListResponse)
async def list_batches(
    limit: int = 50,
    offset: int = 0,
    orchestrator: ResizeOrchestrator = Depends(get_resize_orchestrator),
):
    """
    List processed batches, newest first.
    """
    logger.info(f"Listing batches with limit={limit}, offset={offset}")

    try:
        batches, total_count = await orchestrator.list_batches(limit, offset)

        return BatchListResponse(
            batches=[
                BatchSummaryInfo(
                    batch_id=batch.id,
                    status=batch.status.value,
                    total=batch.total_items,
                    succeeded=batch.succeeded_items,
                    output_format=batch.output_format,
                    archive_available=batch.archive_path is not None,
                    created_at=batch.created_at,
                )
                for batch in batches
            ],
            total_count=total_count,
        )

    except Exception as e:
        logger.error(f"Error listing batches: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/batches/{batch_id}", response_model=BatchResponse)
async def get_batch(
    batch_id: UUID,
    orchestrator: ResizeOrchestrator = Depends(get_resize_orchestrator),
):
    """
    Get the stored results of a batch.

    Raises:
        HTTPException: If the batch is not found
    """
    logger.info(f"Getting batch {batch_id}")

    try:
        details = await orchestrator.get_batch(str(batch_id))

        if not details:
            raise HTTPException(status_code=404, detail=f"Batch {batch_id} not found")

        return _to_batch_response(details)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error getting batch {batch_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/batches/{batch_id}/archive")
async def download_archive(
    batch_id: UUID,
    orchestrator: ResizeOrchestrator = Depends(get_resize_orchestrator),
    settings: Settings = Depends(get_settings_dependency),
):
    """
    Download every successfully processed image of a batch as one zip.

    Raises:
        HTTPException: 404 for unknown batches, 409 when nothing was processed
    """
    logger.info(f"Serving archive for batch {batch_id}")

    try:
        archive_path = await orchestrator.get_archive_path(str(batch_id))

        return FileResponse(
            path=archive_path,
            media_type="application/zip",
            filename=settings.ARCHIVE_FILENAME,
        )

    except BatchNotFoundError as e:
        logger.warning(str(e))
        raise HTTPException(status_code=404, detail=str(e))

    except EmptyArchiveError as e:
        logger.warning(str(e))
        raise HTTPException(status_code=409, detail=str(e))

    except ArchiveError as e:
        logger.error(str(e))
        raise HTTPException(status_code=500, detail="Archive could not be built")

    except Exception as e:
        logger.error(f"Error serving archive for batch {batch_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/batches/{batch_id}")
async def clear_batch(
    batch_id: UUID,
    orchestrator: ResizeOrchestrator = Depends(get_resize_orchestrator),
):
    """
    Clear a batch, removing its results and archive.
    """
    logger.info(f"Clearing batch {batch_id}")

    try:
        deleted = await orchestrator.delete_batch(str(batch_id))

        if not deleted:
            raise HTTPException(status_code=404, detail=f"Batch {batch_id} not found")

        return {"batch_id": str(batch_id), "deleted": True}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error clearing batch {batch_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/batches/{batch_id}/items/{position}", response_model=BatchResponse)
async def remove_batch_item(
    batch_id: UUID,
    position: int,
    orchestrator: ResizeOrchestrator = Depends(get_resize_orchestrator),
):
    """
    Remove one image from a batch and drop it from the archive.

    Raises:
        HTTPException: If the batch or item is not found
    """
    logger.info(f"Removing item {position} from batch {batch_id}")

    try:
        details = await orchestrator.remove_item(str(batch_id), position)

        if not details:
            raise HTTPException(
                status_code=404,
                detail=f"Item {position} of batch {batch_id} not found",
            )

        return _to_batch_response(details)

    except HTTPException:
        raise

    except (ArchiveError, IOError) as e:
        logger.error(f"Failed to update archive for batch {batch_id}: {e}")
        raise HTTPException(status_code=500, detail="Archive could not be updated")

    except Exception as e:
        logger.error(f"Error removing item {position} from batch {batch_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "image-resize"}


def _to_batch_response(details: BatchDetails) -> BatchResponse:
    batch = details.batch
    summary = details.summary

    items = [
        ItemReport(
            position=item.position,
            original_filename=item.original_filename,
            status=item.status.value,
            original_bytes=item.original_bytes,
            processed_bytes=item.processed_bytes,
            reduction_percent=item.reduction_percent,
            original_size=format_size(item.original_bytes),
            processed_size=(
                format_size(item.processed_bytes)
                if item.status == ItemStatus.SUCCEEDED
                else None
            ),
            width=item.width,
            height=item.height,
            entry_name=item.entry_name,
            error_type=item.error_type,
            error_message=item.error_message,
        )
        for item in details.items
    ]

    return BatchResponse(
        batch_id=UUID(str(batch.id)),
        status=batch.status.value,
        total=summary.total,
        succeeded=summary.succeeded,
        failed=summary.failed,
        message=summary.message,
        reduction_percent=summary.reduction_percent,
        config=ProcessingConfigInfo(
            max_width=batch.max_width,
            quality=batch.quality,
            format=batch.output_format,
        ),
        items=items,
        archive_available=details.archive_available,
        archive_url=(
            f"/api/batches/{batch.id}/archive" if details.archive_available else None
        ),
        created_at=batch.created_at,
    )
