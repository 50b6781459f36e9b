"""Write discovered files into a single ZIP archive in batches."""

from __future__ import annotations

import logging
import shutil
import tempfile
import zipfile
from collections.abc import Sequence
from pathlib import Path
from typing import TypeVar

from bak_archiver.models import (
    ArchiveResult,
    ManifestEntry,
    RunContext,
    SkippedFile,
)
from bak_archiver.reporting import ReportSink

logger = logging.getLogger(__name__)

MANIFEST_ENTRY_NAME = "bak-archive-manifest.txt"

T = TypeVar("T")


class DestinationUnwritableError(Exception):
    """Raised when the archive destination cannot be created."""


class ArchiveWriteError(Exception):
    """Raised when appending to the archive fails."""


def partition(items: Sequence[T], size: int) -> list[list[T]]:
    """Split *items* into contiguous chunks of at most *size* elements."""
    if size < 1:
        msg = f"Batch size must be positive, got {size}"
        raise ValueError(msg)
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


class BatchArchiver:
    """Appends manifest entries to a ZIP archive, one batch at a time.

    Each batch opens the archive in append mode, writes its files under
    their root-relative names and closes it again, so no single operation
    has to handle the whole file list and the archive is never rewritten.
    Batches are written strictly in manifest order.
    """

    def __init__(
        self,
        sink: ReportSink,
        batch_size: int,
        compression: int = zipfile.ZIP_DEFLATED,
    ) -> None:
        if batch_size < 1:
            msg = f"Batch size must be positive, got {batch_size}"
            raise ValueError(msg)
        self._sink = sink
        self.batch_size = batch_size
        self.compression = compression

    def archive(self, context: RunContext, manifest_text: str) -> ArchiveResult:
        """Archive every entry of *context* plus the rendered manifest.

        Args:
            context: Run context with a complete manifest.
            manifest_text: Human-readable manifest to embed as its own entry.

        Returns:
            Batch accounting and the final archive location.

        Raises:
            DestinationUnwritableError: If the destination already exists or
                cannot be created.
            ArchiveWriteError: If the archive itself cannot be written.
                Remaining batches are not attempted and the partial archive
                is removed.
        """
        dest = context.destination_archive
        self._prepare_destination(dest)

        batches = partition(context.entries, self.batch_size)
        sizes: list[int] = []
        skipped: list[SkippedFile] = []
        entry_name = self._manifest_name(context.entries)
        try:
            for index, batch in enumerate(batches, start=1):
                skipped.extend(self.append_batch(dest, batch))
                sizes.append(len(batch))
                self._sink.batch_written(index, len(batches), len(batch))
            self.embed_manifest(dest, entry_name, manifest_text)
        except ArchiveWriteError:
            self._discard(dest)
            raise
        self._sink.manifest_embedded(entry_name)

        return ArchiveResult(
            archive_path=str(dest),
            batch_sizes=sizes,
            manifest_entry=entry_name,
            archive_size_bytes=dest.stat().st_size,
            skipped=skipped,
        )

    def append_batch(
        self, dest: Path, batch: Sequence[ManifestEntry]
    ) -> list[SkippedFile]:
        """Append one batch to *dest*, closing the archive afterwards.

        A source that can no longer be read is left out of the archive and
        reported through the sink; the rest of the batch is still written.

        Returns:
            The entries of *batch* that were left out.

        Raises:
            ArchiveWriteError: If the archive itself cannot be opened or
                written.
        """
        skipped: list[SkippedFile] = []
        try:
            with self._open(dest) as zf:
                for entry in batch:
                    reason = self._append_file(zf, entry)
                    if reason is None:
                        logger.debug("Archived: %s", entry.relative_path)
                        continue
                    skipped.append(
                        SkippedFile(
                            path=entry.original_path,
                            relative_path=entry.relative_path,
                            reason=reason,
                        )
                    )
                    self._sink.file_skipped(entry.original_path, reason)
        except (OSError, ValueError, zipfile.BadZipFile) as exc:
            msg = f"Failed to write batch to {dest}: {exc}"
            raise ArchiveWriteError(msg) from exc
        return skipped

    def _append_file(self, zf: zipfile.ZipFile, entry: ManifestEntry) -> str | None:
        """Copy one source into *zf*; return why it was skipped, if it was."""
        source = Path(entry.original_path)
        try:
            info = zipfile.ZipInfo.from_file(
                source, arcname=entry.relative_path, strict_timestamps=False
            )
            src = source.open("rb")
        except OSError as exc:
            return exc.strerror or str(exc)
        info.compress_type = self.compression
        with src, zf.open(info, "w") as out:
            shutil.copyfileobj(src, out, 1024 * 64)
        return None

    def _open(self, dest: Path) -> zipfile.ZipFile:
        # pre-1980 mtimes are clamped instead of rejected
        return zipfile.ZipFile(
            dest, "a", compression=self.compression, strict_timestamps=False
        )

    def embed_manifest(self, dest: Path, entry_name: str, text: str) -> None:
        """Stage *text* in a temporary directory and append it to *dest*.

        The temporary directory is removed whether or not the append works.
        """
        with tempfile.TemporaryDirectory(prefix="bak-archive-") as tmp:
            staged = Path(tmp) / entry_name
            try:
                staged.write_text(text, encoding="utf-8")
                with self._open(dest) as zf:
                    zf.write(staged, arcname=entry_name)
            except (OSError, ValueError, zipfile.BadZipFile) as exc:
                msg = f"Failed to embed manifest in {dest}: {exc}"
                raise ArchiveWriteError(msg) from exc

    @staticmethod
    def _discard(dest: Path) -> None:
        try:
            dest.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not remove partial archive %s: %s", dest, exc)

    @staticmethod
    def _prepare_destination(dest: Path) -> None:
        if dest.exists():
            msg = f"Destination archive already exists: {dest}"
            raise DestinationUnwritableError(msg)
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            # batches only ever append to this empty archive
            zipfile.ZipFile(dest, "w").close()
        except OSError as exc:
            msg = f"Cannot create destination archive {dest}: {exc}"
            raise DestinationUnwritableError(msg) from exc

    @staticmethod
    def _manifest_name(entries: Sequence[ManifestEntry]) -> str:
        """Pick a manifest entry name that no archived file uses."""
        taken = {e.relative_path for e in entries}
        name = MANIFEST_ENTRY_NAME
        stem, _, suffix = MANIFEST_ENTRY_NAME.rpartition(".")
        n = 1
        while name in taken:
            name = f"{stem}-{n}.{suffix}"
            n += 1
        return name
