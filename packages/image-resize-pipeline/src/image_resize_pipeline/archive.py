import io
import re
import zipfile
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from loguru import logger

from .errors import ArchiveError, EmptyArchiveError
from .types import Batch, OutputFormat

DEFAULT_ARCHIVE_NAME = "resized-images.zip"
RESIZED_SUFFIX = "_resized"
MAX_DUPLICATE_SUFFIX = 9999

# Fixed timestamp so identical batches serialize to identical archives.
_ENTRY_DATE_TIME = (1980, 1, 1, 0, 0, 0)

_LAST_EXTENSION = re.compile(r"\.[^/.]+$")


def entry_name(filename: str, output_format: OutputFormat) -> str:
    base_name = re.split(r"[\\/]", filename)[-1]
    stem = _LAST_EXTENSION.sub("", base_name)
    return f"{stem}{RESIZED_SUFFIX}.{output_format.extension}"


@dataclass(frozen=True)
class ArchiveEntry:
    name: str
    data: bytes = field(repr=False)
    position: int


@dataclass(frozen=True)
class Archive:
    entries: tuple[ArchiveEntry, ...]

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[ArchiveEntry]:
        return iter(self.entries)

    @property
    def names(self) -> list[str]:
        return [entry.name for entry in self.entries]

    def as_mapping(self) -> dict[str, bytes]:
        return {entry.name: entry.data for entry in self.entries}

    @property
    def names_by_position(self) -> dict[int, str]:
        return {entry.position: entry.name for entry in self.entries}

    def to_zip(self) -> bytes:
        buffer = io.BytesIO()

        try:
            with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
                for entry in self.entries:
                    _write_entry(archive, entry.name, entry.data)
        except (zipfile.LargeZipFile, OSError, ValueError) as e:
            raise ArchiveError(f"Failed to serialize archive: {e}") from e

        return buffer.getvalue()


def _write_entry(archive: zipfile.ZipFile, name: str, data: bytes) -> None:
    info = zipfile.ZipInfo(name, date_time=_ENTRY_DATE_TIME)
    info.compress_type = zipfile.ZIP_DEFLATED
    archive.writestr(info, data)


def drop_entries(archive_data: bytes, names: Iterable[str]) -> bytes | None:
    """
    Rewrite serialized archive bytes without the named entries.

    Remaining entries keep their order and names. Returns ``None`` when no
    entry is left. Unknown names are ignored.
    """
    dropped = set(names)
    output = io.BytesIO()
    kept = 0

    try:
        with zipfile.ZipFile(io.BytesIO(archive_data)) as source:
            with zipfile.ZipFile(output, "w", zipfile.ZIP_DEFLATED) as target:
                for info in source.infolist():
                    if info.filename in dropped:
                        continue
                    _write_entry(target, info.filename, source.read(info))
                    kept += 1
    except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError, ValueError) as e:
        raise ArchiveError(f"Failed to rewrite archive: {e}") from e

    if kept == 0:
        return None

    logger.debug(f"Rewrote archive without {len(dropped)} entries, {kept} left")
    return output.getvalue()


class ArchiveBuilder:
    def __init__(self, max_duplicate_suffix: int = MAX_DUPLICATE_SUFFIX):
        self.max_duplicate_suffix = max_duplicate_suffix

    def build(self, batch: Batch) -> Archive:
        successes = batch.successes()
        if not successes:
            raise EmptyArchiveError(
                f"No successfully processed images in batch of {len(batch)}"
            )

        output_format = batch.config.output_format
        taken: set[str] = set()
        entries = []

        for position, source, processed in successes:
            name = self._unique_name(entry_name(source.filename, output_format), taken)
            taken.add(name)
            entries.append(
                ArchiveEntry(name=name, data=processed.data, position=position)
            )

        logger.info(f"Built archive with {len(entries)} entries")
        return Archive(entries=tuple(entries))

    def _unique_name(self, name: str, taken: set[str]) -> str:
        if name not in taken:
            return name

        stem, dot, extension = name.rpartition(".")
        for counter in range(2, self.max_duplicate_suffix + 1):
            candidate = f"{stem}_{counter}{dot}{extension}"
            if candidate not in taken:
                logger.debug(f"Renamed duplicate entry {name} to {candidate}")
                return candidate

        raise ArchiveError(f"Could not find a unique archive name for {name}")
