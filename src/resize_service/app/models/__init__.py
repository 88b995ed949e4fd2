from .batch import BatchStatus, ItemStatus, ResizeBatch, ResizeItem

__all__ = [
    "ResizeBatch",
    "ResizeItem",
    "BatchStatus",
    "ItemStatus",
]
