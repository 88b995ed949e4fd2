class PipelineError(Exception):
    error_type = "pipeline_error"


class ConfigError(PipelineError, ValueError):
    error_type = "config_error"


class ItemProcessingError(PipelineError):
    """Raised for a single item; recovered into that item's failure result."""

    error_type = "processing_error"


class DecodeError(ItemProcessingError):
    error_type = "decode_error"


class EncodeError(ItemProcessingError):
    error_type = "encode_error"


class ItemCancelledError(ItemProcessingError):
    error_type = "cancelled"


class ArchiveError(PipelineError):
    error_type = "archive_error"


class EmptyArchiveError(ArchiveError):
    """No successful items exist, so no archive is built."""

    error_type = "empty_archive"
