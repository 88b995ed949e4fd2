from .batch import (
    BatchListResponse,
    BatchResponse,
    BatchSummaryInfo,
    ItemReport,
    ProcessingConfigInfo,
)

__all__ = [
    "BatchListResponse",
    "BatchResponse",
    "BatchSummaryInfo",
    "ItemReport",
    "ProcessingConfigInfo",
]
