"""Report sinks receiving pipeline progress events and summaries."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from bak_archiver.models import (
    DeletionResult,
    GuardState,
    ManifestEntry,
    RunContext,
    RunOutcome,
    RunSummary,
)

logger = logging.getLogger(__name__)


class ReportSink(ABC):
    """Interface for everything the pipeline reports."""

    @abstractmethod
    def scan_started(self, root: Path, total: int) -> None:
        """Called once discovery has found *total* files."""
        ...

    @abstractmethod
    def file_scanned(self, index: int, total: int, entry: ManifestEntry) -> None:
        """Called after each manifest entry is built (1-based *index*)."""
        ...

    @abstractmethod
    def hash_failed(self, path: str, reason: str) -> None: ...

    @abstractmethod
    def no_files_found(self, root: Path, extension: str) -> None: ...

    @abstractmethod
    def batch_written(self, index: int, total: int, count: int) -> None: ...

    @abstractmethod
    def file_skipped(self, path: str, reason: str) -> None:
        """A manifest entry could not be read into the archive."""
        ...

    @abstractmethod
    def manifest_embedded(self, entry_name: str) -> None: ...

    @abstractmethod
    def csv_written(self, path: Path) -> None: ...

    @abstractmethod
    def deletion_warning(self, count: int) -> None:
        """Warn that *count* source files are about to be removed for good."""
        ...

    @abstractmethod
    def file_deleted(self, path: str) -> None: ...

    @abstractmethod
    def file_delete_failed(self, path: str, reason: str) -> None: ...

    @abstractmethod
    def deletion_summary(self, result: DeletionResult) -> None: ...

    @abstractmethod
    def preview(self, context: RunContext) -> None:
        """Show the manifest of a dry run."""
        ...

    @abstractmethod
    def run_summary(self, summary: RunSummary) -> None: ...


class LoggingReportSink(ReportSink):
    """Routes every event through :mod:`logging`."""

    def scan_started(self, root: Path, total: int) -> None:
        logger.info("Found %d file(s) under %s", total, root)

    def file_scanned(self, index: int, total: int, entry: ManifestEntry) -> None:
        logger.debug("[%d/%d] %s", index, total, entry.relative_path)

    def hash_failed(self, path: str, reason: str) -> None:
        logger.warning("Could not hash %s: %s", path, reason)

    def no_files_found(self, root: Path, extension: str) -> None:
        logger.warning("No '%s' files found under %s", extension, root)

    def batch_written(self, index: int, total: int, count: int) -> None:
        logger.info("Archived batch %d/%d (%d file(s))", index, total, count)

    def file_skipped(self, path: str, reason: str) -> None:
        logger.warning("Not archived %s: %s", path, reason)

    def manifest_embedded(self, entry_name: str) -> None:
        logger.info("Embedded manifest: %s", entry_name)

    def csv_written(self, path: Path) -> None:
        logger.info("Wrote CSV manifest: %s", path)

    def deletion_warning(self, count: int) -> None:
        logger.warning(
            "Deletion requested: %d original file(s) will be permanently removed",
            count,
        )

    def file_deleted(self, path: str) -> None:
        logger.debug("Deleted: %s", path)

    def file_delete_failed(self, path: str, reason: str) -> None:
        logger.warning("Could not delete %s: %s", path, reason)

    def deletion_summary(self, result: DeletionResult) -> None:
        if result.state == GuardState.ABORTED:
            logger.info("Deletion cancelled, no files were removed")
            return
        logger.info(
            "Deletion finished: %d deleted, %d failed",
            result.deleted_count,
            result.failed_count,
        )

    def preview(self, context: RunContext) -> None:
        for entry in context.entries:
            logger.info("%s (%d bytes)", entry.relative_path, entry.size_bytes)

    def run_summary(self, summary: RunSummary) -> None:
        logger.info(
            "Run %s: %d file(s), %d hash failure(s)",
            summary.outcome,
            summary.file_count,
            summary.hash_failures,
        )


class ConsoleReportSink(LoggingReportSink):
    """Logging sink that also renders warnings and summaries with rich."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def deletion_warning(self, count: int) -> None:
        super().deletion_warning(count)
        self.console.print(
            Panel.fit(
                f"[bold]{count}[/bold] original file(s) are about to be "
                "PERMANENTLY deleted.\n"
                "This cannot be undone. The archive will be the only copy.",
                title="WARNING",
                style="bold red",
            )
        )

    def preview(self, context: RunContext) -> None:
        table = Table(title=f"Dry run: {len(context.entries)} file(s)")
        table.add_column("Relative path", style="cyan")
        table.add_column("Size (KB)", justify="right")
        table.add_column("Hash", style="magenta")
        for entry in context.entries:
            table.add_row(
                entry.relative_path,
                f"{entry.size_kb:.2f}",
                entry.content_hash[:16] if entry.hash_ok else entry.content_hash,
            )
        self.console.print(table)

    def run_summary(self, summary: RunSummary) -> None:
        super().run_summary(summary)
        if summary.outcome == RunOutcome.NO_FILES_FOUND:
            self.console.print("[yellow]No files found, nothing archived.[/yellow]")
            return

        table = Table(title="Archive summary", show_header=False)
        table.add_column("Field", style="cyan")
        table.add_column("Value", style="green")
        table.add_row("Outcome", str(summary.outcome))
        table.add_row("Root", summary.root_path)
        table.add_row("Files", str(summary.file_count))
        table.add_row("Total size (MB)", f"{summary.total_bytes / (1024 * 1024):.2f}")
        table.add_row("Hash failures", str(summary.hash_failures))
        if summary.archive is not None:
            table.add_row("Archive", summary.archive.archive_path)
            table.add_row("Batches", str(summary.archive.batches_written))
            if summary.archive.skipped:
                table.add_row("Not archived", str(len(summary.archive.skipped)))
        if summary.csv_path is not None:
            table.add_row("CSV manifest", summary.csv_path)
        if summary.deletion is not None:
            table.add_row("Deletion", str(summary.deletion.state))
            table.add_row("Deleted", str(summary.deletion.deleted_count))
            table.add_row("Delete failures", str(summary.deletion.failed_count))
        table.add_row("Elapsed (s)", f"{summary.elapsed_seconds:.2f}")
        self.console.print(table)
