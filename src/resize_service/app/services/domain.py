from dataclasses import dataclass

from image_resize_pipeline import BatchSummary, summarize_totals

from ..models import BatchStatus, ItemStatus, ResizeBatch, ResizeItem


class BatchNotFoundError(LookupError):
    pass


def batch_status(total: int, succeeded: int) -> BatchStatus:
    if total > 0 and succeeded == total:
        return BatchStatus.COMPLETED
    if succeeded == 0:
        return BatchStatus.FAILED
    return BatchStatus.PARTIAL


@dataclass
class BatchDetails:
    batch: ResizeBatch
    items: list[ResizeItem]

    @property
    def archive_available(self) -> bool:
        return self.batch.archive_path is not None

    @property
    def summary(self) -> BatchSummary:
        succeeded = [item for item in self.items if item.status == ItemStatus.SUCCEEDED]

        return summarize_totals(
            total=len(self.items),
            succeeded=len(succeeded),
            original_total=sum(item.original_bytes for item in succeeded),
            processed_total=sum(item.processed_bytes or 0 for item in succeeded),
        )
