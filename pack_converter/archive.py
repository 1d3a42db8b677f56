"""
archive.py
==========

Narrow streaming boundary over :mod:`zipfile`.

* :class:`PackageReader` indexes a zip (metadata only) and hands out entries
  whose payload is opened on demand.
* :class:`PackageWriter` stages payloads as individual files in a temporary
  directory, then compresses them into ``<destination>.part`` during
  :meth:`PackageWriter.finalize` and atomically renames it into place.

Payloads are always moved in ``COPY_CHUNK_SIZE`` chunks, so peak memory is
bounded by one chunk regardless of entry or package size.
"""

from __future__ import annotations

import io
import logging
import tempfile
import zipfile
import zlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, BinaryIO, Callable, Dict, List, Optional, Union

from .config import COPY_CHUNK_SIZE, DEFAULT_COMPRESSION_LEVEL
from .errors import ArchiveReadError, ArchiveWriteError

LOGGER = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]
ArchiveSource = Union[str, Path, bytes, BinaryIO]

READ_ERRORS = (
    zipfile.BadZipFile,
    zlib.error,
    EOFError,
    OSError,
    RuntimeError,  # encrypted members
    NotImplementedError,  # unsupported compression method
)


@dataclass(frozen=True)
class Entry:
    path: str
    is_dir: bool
    size: int
    info: zipfile.ZipInfo = field(repr=False, compare=False)


def copy_stream(source: IO[bytes], target: IO[bytes], on_chunk: Optional[Callable[[int], None]] = None) -> int:
    """Copy *source* into *target* chunk by chunk, tagging read and write failures apart."""
    copied = 0
    while True:
        try:
            chunk = source.read(COPY_CHUNK_SIZE)
        except READ_ERRORS as exc:
            raise ArchiveReadError(f"failed to read archive data: {exc}") from exc
        if not chunk:
            return copied
        try:
            target.write(chunk)
        except OSError as exc:
            raise ArchiveWriteError(f"failed to write archive data: {exc}") from exc
        copied += len(chunk)
        if on_chunk is not None:
            on_chunk(len(chunk))


class PackageReader:
    """Read-side of the archive boundary. Use as a context manager."""

    def __init__(self, source: ArchiveSource) -> None:
        self._source = io.BytesIO(source) if isinstance(source, bytes) else source
        self._zip: Optional[zipfile.ZipFile] = None

    def __enter__(self) -> "PackageReader":
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def open(self) -> None:
        if self._zip is not None:
            return
        try:
            self._zip = zipfile.ZipFile(self._source, "r")
        except READ_ERRORS as exc:
            raise ArchiveReadError(f"cannot open archive: {exc}") from exc

    def close(self) -> None:
        if self._zip is not None:
            self._zip.close()
            self._zip = None

    @property
    def archive(self) -> zipfile.ZipFile:
        if self._zip is None:
            raise ArchiveReadError("archive is not open")
        return self._zip

    def index(self, progress: Optional[ProgressCallback] = None) -> List[Entry]:
        """List entries in archive order without touching any payload."""
        infos = self.archive.infolist()
        total = len(infos)
        entries: List[Entry] = []
        seen: Dict[str, int] = {}
        for position, info in enumerate(infos, start=1):
            entry = Entry(
                path=info.filename,
                is_dir=info.is_dir(),
                size=info.file_size,
                info=info,
            )
            if entry.path in seen:
                # zipfile resolves names to the last member; keep that one.
                LOGGER.warning("Duplicate archive member %s; keeping the last copy.", entry.path)
                entries[seen[entry.path]] = entry
            else:
                seen[entry.path] = len(entries)
                entries.append(entry)
            if progress is not None:
                progress(position * 100.0 / total)
        if progress is not None and total == 0:
            progress(100.0)
        return entries

    def find(self, path: str) -> Optional[Entry]:
        try:
            info = self.archive.getinfo(path)
        except KeyError:
            return None
        return Entry(path=info.filename, is_dir=info.is_dir(), size=info.file_size, info=info)

    def open_entry(self, entry: Entry) -> IO[bytes]:
        try:
            return self.archive.open(entry.info, "r")
        except READ_ERRORS as exc:
            raise ArchiveReadError(f"cannot open {entry.path}: {exc}") from exc

    def read(self, entry: Entry) -> bytes:
        with self.open_entry(entry) as handle:
            buffer = io.BytesIO()
            copy_stream(handle, buffer)
            return buffer.getvalue()


class PackageWriter:
    """Write-side of the archive boundary.

    Nothing is visible at *destination* until :meth:`finalize` succeeds.
    :meth:`discard` is idempotent and safe to call after a successful finalize.
    """

    def __init__(
        self,
        destination: Path,
        compression_level: int = DEFAULT_COMPRESSION_LEVEL,
    ) -> None:
        self.destination = destination
        self.compression_level = compression_level
        self._staging: Optional[tempfile.TemporaryDirectory] = tempfile.TemporaryDirectory(
            prefix="pack-converter-"
        )
        self._staged: Dict[str, Path] = {}
        self._partial = destination.with_name(destination.name + ".part")

    def _staging_path(self, path: str) -> Path:
        if self._staging is None:
            raise ArchiveWriteError("writer already closed")
        staged = self._staged.get(path)
        if staged is None:
            staged = Path(self._staging.name) / f"{len(self._staged):08d}.bin"
            self._staged[path] = staged
        return staged

    def add_stream(self, path: str, source: IO[bytes]) -> int:
        staged = self._staging_path(path)
        try:
            handle = staged.open("wb")
        except OSError as exc:
            raise ArchiveWriteError(f"cannot stage {path}: {exc}") from exc
        with handle:
            return copy_stream(source, handle)

    def add_bytes(self, path: str, data: bytes) -> None:
        self.add_stream(path, io.BytesIO(data))

    def finalize(self, progress: Optional[ProgressCallback] = None) -> Path:
        if self._staging is None:
            raise ArchiveWriteError("writer already closed")

        total_bytes = sum(staged.stat().st_size for staged in self._staged.values())
        written = 0

        def on_chunk(size: int) -> None:
            nonlocal written
            written += size
            if progress is not None and total_bytes:
                progress(written * 100.0 / total_bytes)

        try:
            self.destination.parent.mkdir(parents=True, exist_ok=True)
            with zipfile.ZipFile(
                self._partial,
                "w",
                compression=zipfile.ZIP_DEFLATED,
                compresslevel=self.compression_level,
            ) as archive:
                for path, staged in self._staged.items():
                    size = staged.stat().st_size
                    with staged.open("rb") as source, archive.open(
                        path, "w", force_zip64=size >= zipfile.ZIP64_LIMIT
                    ) as target:
                        copy_stream(source, target, on_chunk=on_chunk)
            self._partial.replace(self.destination)
        except (ArchiveReadError, ArchiveWriteError):
            self.discard()
            raise
        except (OSError, zipfile.LargeZipFile, ValueError) as exc:
            self.discard()
            raise ArchiveWriteError(f"cannot write {self.destination.name}: {exc}") from exc

        if progress is not None:
            progress(100.0)
        self._cleanup_staging()
        return self.destination

    def _cleanup_staging(self) -> None:
        if self._staging is not None:
            self._staging.cleanup()
            self._staging = None
        self._staged.clear()

    def discard(self) -> None:
        self._cleanup_staging()
        try:
            self._partial.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            LOGGER.warning("Could not remove partial output %s: %s", self._partial, exc)
