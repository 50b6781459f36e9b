"""Builds the ordered manifest of discovered files."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime
from pathlib import Path

from bak_archiver.hasher import IntegrityHasher, is_hash_error
from bak_archiver.models import ManifestEntry, RunContext, to_relative_name
from bak_archiver.reporting import ReportSink

logger = logging.getLogger(__name__)


class ManifestBuilder:
    """Turns discovered files into :class:`ManifestEntry` records."""

    def __init__(
        self,
        sink: ReportSink,
        hasher: IntegrityHasher | None = None,
        workers: int = 1,
    ) -> None:
        self._sink = sink
        self._hasher = hasher or IntegrityHasher()
        self._workers = workers

    def build(self, context: RunContext, files: Sequence[Path]) -> RunContext:
        """Return a copy of *context* holding one entry per file.

        Entries keep discovery order even when hashing runs on several
        threads. Progress is reported after each entry. A file that can no
        longer be stat-ed is left out of the manifest.

        Args:
            context: Run context with an empty manifest.
            files: Discovered files, all located under ``context.root_path``.

        Returns:
            The context with ``entries`` populated.
        """
        total = len(files)
        self._sink.scan_started(context.root_path, total)

        entries: list[ManifestEntry] = []
        seen: set[str] = set()
        for index, (path, digest) in enumerate(self._hashed(files), start=1):
            try:
                entry = self._entry(path, context.root_path, digest)
            except OSError as exc:
                # removed or replaced since discovery
                logger.debug("Skipping %s: %s", path, exc)
                continue
            if entry.relative_path in seen:
                msg = f"Duplicate relative path in manifest: {entry.relative_path}"
                raise ValueError(msg)
            seen.add(entry.relative_path)
            entries.append(entry)

            if is_hash_error(digest):
                self._sink.hash_failed(entry.original_path, digest)
            self._sink.file_scanned(index, total, entry)

        logger.debug("Manifest built with %d entries", len(entries))
        return context.model_copy(update={"entries": tuple(entries)})

    def _hashed(self, files: Sequence[Path]) -> Iterator[tuple[Path, str]]:
        """Yield ``(path, digest)`` pairs in the order of *files*."""
        if self._workers <= 1 or len(files) <= 1:
            for path in files:
                yield path, self._hasher.hash_file(path)
            return

        with ThreadPoolExecutor(max_workers=self._workers) as pool:
            # map() yields results in submission order
            yield from zip(files, pool.map(self._hasher.hash_file, files))

    @staticmethod
    def _entry(path: Path, root: Path, digest: str) -> ManifestEntry:
        absolute = path.resolve()
        stat = absolute.stat()
        return ManifestEntry(
            original_path=str(absolute),
            relative_path=to_relative_name(absolute, root),
            file_name=absolute.name,
            size_bytes=stat.st_size,
            content_hash=digest,
            last_modified=datetime.fromtimestamp(stat.st_mtime, UTC),
            archived_at=datetime.now(UTC),
        )
