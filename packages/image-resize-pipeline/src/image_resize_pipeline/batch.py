import asyncio
from collections.abc import Sequence

from loguru import logger

from .errors import ItemCancelledError, ItemProcessingError
from .processor import ItemProcessor
from .types import Batch, ItemFailure, ItemResult, ProcessingConfig, SourceImage

DEFAULT_CONCURRENCY_LIMIT = 4


class BatchCoordinator:
    def __init__(
        self,
        processor: ItemProcessor | None = None,
        concurrency_limit: int = DEFAULT_CONCURRENCY_LIMIT,
    ):
        if concurrency_limit < 1:
            raise ValueError("concurrency_limit must be at least 1")

        self.processor = processor or ItemProcessor()
        self.concurrency_limit = concurrency_limit

    async def run(
        self, items: Sequence[SourceImage], config: ProcessingConfig
    ) -> Batch:
        validated = config.validate()
        results = await self._run_validated(items, validated)
        return Batch(sources=tuple(items), results=tuple(results), config=validated)

    async def run_batch(
        self, items: Sequence[SourceImage], config: ProcessingConfig
    ) -> list[ItemResult]:
        """
        Process every item and return one result per item, in input order.

        The config is validated once before any work starts and a
        ``ConfigError`` aborts the whole batch. Per-item failures never stop
        the other items. If this coroutine is cancelled, in-flight results
        are discarded and ``CancelledError`` propagates.
        """
        validated = config.validate()
        return await self._run_validated(items, validated)

    async def _run_validated(
        self, items: Sequence[SourceImage], config: ProcessingConfig
    ) -> list[ItemResult]:
        logger.info(
            f"Starting batch of {len(items)} images "
            f"(max_width={config.max_width}, quality={config.quality}, "
            f"format={config.output_format.value}, limit={self.concurrency_limit})"
        )

        semaphore = asyncio.Semaphore(self.concurrency_limit)
        tasks = [
            asyncio.create_task(self._process_one(semaphore, index, source, config))
            for index, source in enumerate(items)
        ]

        outcomes = await asyncio.gather(*tasks, return_exceptions=True)

        results: list[ItemResult] = []
        for source, outcome in zip(items, outcomes):
            if isinstance(outcome, asyncio.CancelledError):
                error = ItemCancelledError(
                    f"Processing of {source.filename} was cancelled"
                )
                results.append(ItemFailure(error=error))
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                results.append(outcome)

        succeeded = sum(1 for result in results if result.is_success)
        logger.info(f"Finished batch: {succeeded} of {len(results)} images processed")

        return results

    async def _process_one(
        self,
        semaphore: asyncio.Semaphore,
        index: int,
        source: SourceImage,
        config: ProcessingConfig,
    ) -> ItemResult:
        async with semaphore:
            try:
                return await asyncio.to_thread(self.processor.process, source, config)
            except Exception as e:
                logger.exception(
                    f"Unexpected error processing item {index} ({source.filename}): {e}"
                )
                return ItemFailure(
                    error=ItemProcessingError(f"Unexpected error: {str(e)}")
                )
