from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Union

from .errors import ConfigError, ItemProcessingError

DEFAULT_MAX_WIDTH = 1920
DEFAULT_QUALITY = 80
MIN_QUALITY = 10
MAX_QUALITY = 100


class OutputFormat(str, Enum):
    JPEG = "JPEG"
    PNG = "PNG"
    WEBP = "WEBP"

    @property
    def extension(self) -> str:
        return _EXTENSIONS[self]

    @property
    def media_type(self) -> str:
        return _MEDIA_TYPES[self]

    @property
    def pil_format(self) -> str:
        return self.value

    @property
    def is_lossy(self) -> bool:
        return self is not OutputFormat.PNG

    @classmethod
    def parse(cls, value: "OutputFormat | str") -> "OutputFormat":
        """Resolve a format name, file extension or media type."""
        if isinstance(value, OutputFormat):
            return value
        if not isinstance(value, str):
            raise ConfigError(f"Unrecognized output format: {value!r}")

        key = value.strip().lower().lstrip(".")
        for output_format in cls:
            aliases = {
                output_format.value.lower(),
                output_format.extension,
                output_format.media_type,
            }
            if key in aliases or key in _EXTRA_ALIASES.get(output_format, ()):
                return output_format

        raise ConfigError(f"Unrecognized output format: {value!r}")


_EXTENSIONS = {
    OutputFormat.JPEG: "jpg",
    OutputFormat.PNG: "png",
    OutputFormat.WEBP: "webp",
}

_MEDIA_TYPES = {
    OutputFormat.JPEG: "image/jpeg",
    OutputFormat.PNG: "image/png",
    OutputFormat.WEBP: "image/webp",
}

_EXTRA_ALIASES = {
    OutputFormat.JPEG: ("image/jpg",),
}


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class ProcessingConfig:
    max_width: int = DEFAULT_MAX_WIDTH
    quality: int = DEFAULT_QUALITY
    format: OutputFormat | str = OutputFormat.JPEG

    def validate(self) -> "ProcessingConfig":
        """Return a normalized copy, or raise ConfigError."""
        if not _is_int(self.max_width) or self.max_width <= 0:
            raise ConfigError(
                f"max_width must be a positive integer, got {self.max_width!r}"
            )

        if not _is_int(self.quality) or not (
            MIN_QUALITY <= self.quality <= MAX_QUALITY
        ):
            raise ConfigError(
                f"quality must be an integer in [{MIN_QUALITY}, {MAX_QUALITY}], "
                f"got {self.quality!r}"
            )

        return ProcessingConfig(
            max_width=self.max_width,
            quality=self.quality,
            format=OutputFormat.parse(self.format),
        )

    @property
    def output_format(self) -> OutputFormat:
        return OutputFormat.parse(self.format)


@dataclass(frozen=True)
class Dimensions:
    width: int
    height: int

    def __post_init__(self):
        if not _is_int(self.width) or not _is_int(self.height):
            raise ValueError("Dimensions must be integers")
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Dimensions must be positive, got {self.width}x{self.height}"
            )

    @classmethod
    def from_size(cls, size: tuple[int, int]) -> "Dimensions":
        return cls(width=size[0], height=size[1])

    def to_tuple(self) -> tuple[int, int]:
        return (self.width, self.height)

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


@dataclass(frozen=True)
class SourceImage:
    data: bytes = field(repr=False)
    filename: str

    @property
    def byte_length(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class ProcessedImage:
    data: bytes = field(repr=False)
    dimensions: Dimensions
    format: OutputFormat

    @property
    def byte_length(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class ItemSuccess:
    processed: ProcessedImage

    is_success: ClassVar[bool] = True


@dataclass(frozen=True)
class ItemFailure:
    error: ItemProcessingError

    is_success: ClassVar[bool] = False

    @property
    def error_type(self) -> str:
        return self.error.error_type

    @property
    def reason(self) -> str:
        return str(self.error)


ItemResult = Union[ItemSuccess, ItemFailure]


@dataclass(frozen=True)
class Batch:
    sources: tuple[SourceImage, ...]
    results: tuple[ItemResult, ...]
    config: ProcessingConfig

    def __post_init__(self):
        if len(self.sources) != len(self.results):
            raise ValueError(
                f"Batch has {len(self.sources)} sources but {len(self.results)} results"
            )

    def __len__(self) -> int:
        return len(self.sources)

    def items(self) -> Iterator[tuple[int, SourceImage, ItemResult]]:
        for index, (source, result) in enumerate(zip(self.sources, self.results)):
            yield index, source, result

    @property
    def succeeded(self) -> int:
        return sum(1 for result in self.results if result.is_success)

    @property
    def failed(self) -> int:
        return len(self.results) - self.succeeded

    def successes(self) -> list[tuple[int, SourceImage, ProcessedImage]]:
        return [
            (index, source, result.processed)
            for index, source, result in self.items()
            if isinstance(result, ItemSuccess)
        ]

    def failures(self) -> list[tuple[int, SourceImage, ItemFailure]]:
        return [
            (index, source, result)
            for index, source, result in self.items()
            if isinstance(result, ItemFailure)
        ]


@dataclass(frozen=True)
class SizeReport:
    original_bytes: int
    processed_bytes: int | None = None
    reduction_percent: int | None = None

    @property
    def bytes_saved(self) -> int | None:
        if self.processed_bytes is None:
            return None
        return self.original_bytes - self.processed_bytes


@dataclass(frozen=True)
class BatchSummary:
    total: int
    succeeded: int
    failed: int
    original_total_bytes: int
    processed_total_bytes: int
    reduction_percent: int | None

    @property
    def message(self) -> str:
        return f"{self.succeeded} of {self.total} images processed"
