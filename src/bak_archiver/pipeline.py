"""Full pipeline orchestration for backup file archival."""

from __future__ import annotations

import logging
import time

from bak_archiver.archiver import BatchArchiver
from bak_archiver.guard import (
    ConfirmationProvider,
    ConsoleConfirmationProvider,
    DeletionGuard,
)
from bak_archiver.hasher import IntegrityHasher
from bak_archiver.manifest import ManifestBuilder
from bak_archiver.models import (
    ArchiveConfig,
    RunContext,
    RunOutcome,
    RunSummary,
)
from bak_archiver.reporting import LoggingReportSink, ReportSink
from bak_archiver.scanner import FileScanner
from bak_archiver.writers import (
    csv_manifest_path,
    render_text_manifest,
    write_csv_manifest,
)

logger = logging.getLogger(__name__)


class ArchivePipeline:
    """Orchestrates scan, manifest, archive and optional deletion."""

    def __init__(
        self,
        sink: ReportSink | None = None,
        confirmer: ConfirmationProvider | None = None,
        hasher: IntegrityHasher | None = None,
    ) -> None:
        self._sink = sink or LoggingReportSink()
        self._confirmer = confirmer or ConsoleConfirmationProvider()
        self._hasher = hasher
        self._scanner = FileScanner()

    def run(self, config: ArchiveConfig) -> RunSummary:
        """Run the archival pipeline.

        Args:
            config: Validated configuration.

        Returns:
            Summary of the run. Fatal errors are raised instead.
        """
        started = time.monotonic()
        context = RunContext.from_config(config)
        hasher = self._hasher or IntegrityHasher(context.hash_algorithm)

        try:
            files = self._scanner.scan(
                context.root_path,
                context.extension,
                exclude=context.destination_archive,
            )
            if not files:
                self._sink.no_files_found(context.root_path, context.extension)
                return self._finish(
                    RunSummary(
                        outcome=RunOutcome.NO_FILES_FOUND,
                        root_path=str(context.root_path),
                    ),
                    started,
                )

            builder = ManifestBuilder(self._sink, hasher, workers=config.workers)
            context = builder.build(context, files)
            if not context.entries:
                self._sink.no_files_found(context.root_path, context.extension)
                return self._finish(
                    RunSummary(
                        outcome=RunOutcome.NO_FILES_FOUND,
                        root_path=str(context.root_path),
                    ),
                    started,
                )

            summary = RunSummary(
                outcome=RunOutcome.COMPLETED,
                root_path=str(context.root_path),
                file_count=len(context.entries),
                total_bytes=context.total_bytes,
                hash_failures=len(context.hash_failures),
            )

            if config.dry_run:
                self._sink.preview(context)
                return self._finish(
                    summary.model_copy(update={"outcome": RunOutcome.DRY_RUN}),
                    started,
                )

            archiver = BatchArchiver(self._sink, context.batch_size)
            archive = archiver.archive(context, render_text_manifest(context))
            summary = summary.model_copy(update={"archive": archive})

            if context.csv_requested:
                csv_path = write_csv_manifest(
                    context, csv_manifest_path(context.destination_archive)
                )
                self._sink.csv_written(csv_path)
                summary = summary.model_copy(update={"csv_path": str(csv_path)})

            if context.delete_requested:
                guard = DeletionGuard(self._sink, self._confirmer)
                deletion = guard.run(archive.archived(context.entries))
                summary = summary.model_copy(update={"deletion": deletion})

        except Exception as exc:
            logger.debug("Archival run failed: %s", exc)
            raise

        return self._finish(summary, started)

    def _finish(self, summary: RunSummary, started: float) -> RunSummary:
        summary = summary.model_copy(
            update={"elapsed_seconds": time.monotonic() - started}
        )
        self._sink.run_summary(summary)
        return summary
