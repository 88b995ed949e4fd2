import io

from loguru import logger
from PIL import Image, ImageOps, UnidentifiedImageError, features

from .errors import DecodeError, EncodeError
from .types import OutputFormat

SUPPORTED_SOURCE_FORMATS = frozenset({"JPEG", "PNG", "WEBP"})

# Modes each codec writes without conversion.
_ENCODABLE_MODES = {
    OutputFormat.JPEG: {"RGB", "L"},
    OutputFormat.PNG: {"RGB", "RGBA", "L", "LA", "P", "1", "I", "I;16"},
    OutputFormat.WEBP: {"RGB", "RGBA"},
}

_CODEC_FEATURES = {
    OutputFormat.WEBP: "webp",
}


class CodecAdapter:
    def decode(self, data: bytes) -> Image.Image:
        if not data:
            raise DecodeError("Empty image data")

        try:
            image = Image.open(io.BytesIO(data))
            source_format = image.format

            if source_format not in SUPPORTED_SOURCE_FORMATS:
                image.close()
                raise DecodeError(f"Unsupported image format: {source_format}")

            image.load()
            ImageOps.exif_transpose(image, in_place=True)
            return image

        except DecodeError:
            raise
        except UnidentifiedImageError as e:
            raise DecodeError("Unrecognized image data") from e
        except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
            raise DecodeError(f"Invalid image data: {e}") from e

    def encode(
        self, image: Image.Image, output_format: OutputFormat, quality: int
    ) -> bytes:
        self._ensure_codec_available(output_format)

        prepared = self._prepare_mode(image, output_format)
        options = self._save_options(output_format, quality)

        buffer = io.BytesIO()
        try:
            prepared.save(buffer, format=output_format.pil_format, **options)
        except (OSError, ValueError, KeyError) as e:
            logger.warning(f"{output_format.value} encode failed: {e}")
            raise EncodeError(f"Failed to encode {output_format.value}: {e}") from e

        return buffer.getvalue()

    def is_available(self, output_format: OutputFormat) -> bool:
        feature = _CODEC_FEATURES.get(output_format)
        if feature is not None and not features.check(feature):
            return False
        Image.init()
        return output_format.pil_format in Image.SAVE

    def _ensure_codec_available(self, output_format: OutputFormat) -> None:
        if not self.is_available(output_format):
            raise EncodeError(
                f"Output format {output_format.value} is not supported by this Pillow build"
            )

    def _prepare_mode(
        self, image: Image.Image, output_format: OutputFormat
    ) -> Image.Image:
        if image.mode in _ENCODABLE_MODES[output_format]:
            return image

        if output_format is OutputFormat.JPEG:
            return image.convert("RGB")

        has_alpha = image.mode in ("RGBA", "LA", "PA") or (
            image.mode == "P" and "transparency" in image.info
        )
        return image.convert("RGBA" if has_alpha else "RGB")

    def _save_options(self, output_format: OutputFormat, quality: int) -> dict:
        if output_format is OutputFormat.JPEG:
            return {"quality": int(quality), "optimize": True}
        if output_format is OutputFormat.WEBP:
            return {"quality": int(quality), "method": 4}
        # PNG is lossless; quality has no effect.
        return {}
