from loguru import logger

from .codec import CodecAdapter
from .errors import ItemProcessingError
from .resizer import compute_target_dimensions, resample
from .types import (
    Dimensions,
    ItemFailure,
    ItemResult,
    ItemSuccess,
    ProcessedImage,
    ProcessingConfig,
    SourceImage,
)


class ItemProcessor:
    def __init__(self, codec: CodecAdapter | None = None):
        self.codec = codec or CodecAdapter()

    def process(self, source: SourceImage, config: ProcessingConfig) -> ItemResult:
        """
        Decode, downscale and re-encode one source image.

        Decode and encode failures are returned as an ``ItemFailure`` rather
        than raised. ``config`` is expected to be validated already.
        """
        output_format = config.output_format

        try:
            image = self.codec.decode(source.data)
        except ItemProcessingError as e:
            logger.warning(f"Could not decode {source.filename}: {e}")
            return ItemFailure(error=e)

        try:
            source_dimensions = Dimensions.from_size(image.size)
            target = compute_target_dimensions(source_dimensions, config.max_width)
            resized = resample(image, target)

            encoded = self.codec.encode(resized, output_format, config.quality)

        except ItemProcessingError as e:
            logger.warning(f"Could not encode {source.filename}: {e}")
            return ItemFailure(error=e)

        finally:
            image.close()

        logger.debug(
            f"Processed {source.filename}: {source_dimensions} -> {target}, "
            f"{source.byte_length} -> {len(encoded)} bytes"
        )

        return ItemSuccess(
            processed=ProcessedImage(
                data=encoded,
                dimensions=target,
                format=output_format,
            )
        )
