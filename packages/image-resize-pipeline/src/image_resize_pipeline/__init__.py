__version__ = "0.1.0"

from .archive import (
    DEFAULT_ARCHIVE_NAME,
    Archive,
    ArchiveBuilder,
    ArchiveEntry,
    drop_entries,
    entry_name,
)
from .batch import DEFAULT_CONCURRENCY_LIMIT, BatchCoordinator
from .codec import CodecAdapter
from .errors import (
    ArchiveError,
    ConfigError,
    DecodeError,
    EmptyArchiveError,
    EncodeError,
    ItemCancelledError,
    ItemProcessingError,
    PipelineError,
)
from .processor import ItemProcessor
from .reporting import (
    format_size,
    reduction_percent,
    report,
    report_batch,
    summarize,
    summarize_totals,
)
from .resizer import compute_target_dimensions, resample
from .types import (
    DEFAULT_MAX_WIDTH,
    DEFAULT_QUALITY,
    Batch,
    BatchSummary,
    Dimensions,
    ItemFailure,
    ItemResult,
    ItemSuccess,
    OutputFormat,
    ProcessedImage,
    ProcessingConfig,
    SizeReport,
    SourceImage,
)

__all__ = [
    "DEFAULT_ARCHIVE_NAME",
    "DEFAULT_CONCURRENCY_LIMIT",
    "DEFAULT_MAX_WIDTH",
    "DEFAULT_QUALITY",
    "Archive",
    "ArchiveBuilder",
    "ArchiveEntry",
    "ArchiveError",
    "Batch",
    "BatchCoordinator",
    "BatchSummary",
    "CodecAdapter",
    "ConfigError",
    "DecodeError",
    "Dimensions",
    "EmptyArchiveError",
    "EncodeError",
    "ItemCancelledError",
    "ItemFailure",
    "ItemProcessingError",
    "ItemProcessor",
    "ItemResult",
    "ItemSuccess",
    "OutputFormat",
    "PipelineError",
    "ProcessedImage",
    "ProcessingConfig",
    "SizeReport",
    "SourceImage",
    "compute_target_dimensions",
    "drop_entries",
    "entry_name",
    "format_size",
    "reduction_percent",
    "report",
    "report_batch",
    "resample",
    "summarize",
    "summarize_totals",
]
