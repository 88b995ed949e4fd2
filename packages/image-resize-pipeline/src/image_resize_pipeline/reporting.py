from .types import Batch, BatchSummary, ItemResult, ItemSuccess, SizeReport, SourceImage


def reduction_percent(original_bytes: int, processed_bytes: int) -> int:
    """
    ``round((1 - processed / original) * 100)`` with halves rounded up.

    Negative when the output grew; never clamped.
    """
    if original_bytes <= 0:
        raise ValueError("original_bytes must be positive")

    saved_hundredths = (original_bytes - processed_bytes) * 100
    return (2 * saved_hundredths + original_bytes) // (2 * original_bytes)


def report(source: SourceImage, result: ItemResult) -> SizeReport:
    if not isinstance(result, ItemSuccess):
        return SizeReport(original_bytes=source.byte_length)

    processed_bytes = result.processed.byte_length
    return SizeReport(
        original_bytes=source.byte_length,
        processed_bytes=processed_bytes,
        reduction_percent=reduction_percent(source.byte_length, processed_bytes),
    )


def report_batch(batch: Batch) -> list[SizeReport]:
    return [report(source, result) for _, source, result in batch.items()]


def summarize_totals(
    total: int, succeeded: int, original_total: int, processed_total: int
) -> BatchSummary:
    """Build a summary from counts and byte totals over successful items."""
    overall = (
        reduction_percent(original_total, processed_total)
        if original_total > 0
        else None
    )

    return BatchSummary(
        total=total,
        succeeded=succeeded,
        failed=total - succeeded,
        original_total_bytes=original_total,
        processed_total_bytes=processed_total,
        reduction_percent=overall,
    )


def summarize(batch: Batch) -> BatchSummary:
    original_total = 0
    processed_total = 0

    for _, source, processed in batch.successes():
        original_total += source.byte_length
        processed_total += processed.byte_length

    return summarize_totals(len(batch), batch.succeeded, original_total, processed_total)


def format_size(num_bytes: int) -> str:
    if num_bytes < 1024:
        return f"{num_bytes} B"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.1f} KB"
    return f"{num_bytes / (1024 * 1024):.2f} MB"
