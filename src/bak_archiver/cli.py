"""CLI for bak-archiver using click."""

from __future__ import annotations

import logging
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from bak_archiver.archiver import ArchiveWriteError, DestinationUnwritableError
from bak_archiver.models import (
    DEFAULT_BATCH_SIZE,
    MAX_BATCH_SIZE,
    MIN_BATCH_SIZE,
    ArchiveConfig,
    HashAlgorithm,
)
from bak_archiver.pipeline import ArchivePipeline
from bak_archiver.reporting import ConsoleReportSink
from bak_archiver.scanner import RootNotFoundError
from bak_archiver.verifier import ArchiveVerifier
from bak_archiver.writers import ManifestWriteError

console = Console()

_FATAL_ERRORS = (
    RootNotFoundError,
    DestinationUnwritableError,
    ArchiveWriteError,
    ManifestWriteError,
)


def _setup_logging(verbose: bool) -> None:
    """Configure logging with rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_time=False)],
    )


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
def main(verbose: bool) -> None:
    """Bak Archiver - archive backup files into a single ZIP with a manifest."""
    _setup_logging(verbose)


@main.command()
@click.argument("root", type=click.Path(path_type=Path))
@click.option(
    "--destination",
    "-d",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Archive path (default: <parent-of-root>/bak-archive_<timestamp>.zip).",
)
@click.option(
    "--batch-size",
    "-b",
    type=click.IntRange(MIN_BATCH_SIZE, MAX_BATCH_SIZE),
    default=DEFAULT_BATCH_SIZE,
    show_default=True,
    help="Files appended to the archive per batch.",
)
@click.option(
    "--extension", "-e", default=".bak", show_default=True, help="Extension to collect."
)
@click.option(
    "--algorithm",
    type=click.Choice([a.value for a in HashAlgorithm]),
    default=HashAlgorithm.SHA256.value,
    show_default=True,
    help="Integrity hash algorithm.",
)
@click.option(
    "--workers",
    "-w",
    type=click.IntRange(1, 32),
    default=1,
    show_default=True,
    help="Threads used for hashing.",
)
@click.option("--csv", "csv_manifest", is_flag=True, help="Also write a CSV manifest.")
@click.option(
    "--delete",
    "delete_sources",
    is_flag=True,
    help="Delete originals after archiving (asks for three confirmations).",
)
@click.option("--dry-run", is_flag=True, help="Scan and hash only; write nothing.")
def archive(
    root: Path,
    destination: Path | None,
    batch_size: int,
    extension: str,
    algorithm: str,
    workers: int,
    csv_manifest: bool,
    delete_sources: bool,
    dry_run: bool,
) -> None:
    """Archive every matching backup file found under ROOT."""
    try:
        config = ArchiveConfig(
            root_path=root,
            destination_archive=destination,
            batch_size=batch_size,
            extension=extension,
            generate_manifest_csv=csv_manifest,
            delete_source_files=delete_sources,
            hash_algorithm=HashAlgorithm(algorithm),
            workers=workers,
            dry_run=dry_run,
        )
    except ValidationError as exc:
        console.print(f"[red]Invalid configuration:[/red] {exc}")
        raise SystemExit(1) from exc

    console.print(f"[bold]Archiving:[/bold] {config.extension} files under {root}")
    pipeline = ArchivePipeline(sink=ConsoleReportSink(console))
    try:
        summary = pipeline.run(config)
    except _FATAL_ERRORS as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1) from exc

    if summary.archive is not None:
        console.print(f"[green]Archive:[/green] {summary.archive.archive_path}")


@main.command()
@click.argument(
    "archive_path", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.option(
    "--manifest",
    "-m",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="CSV manifest (default: <archive>_manifest.csv next to the archive).",
)
def verify(archive_path: Path, manifest: Path | None) -> None:
    """Re-hash ARCHIVE_PATH members against the recorded CSV manifest."""
    verifier = ArchiveVerifier()
    try:
        report = verifier.verify(archive_path, manifest)
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1) from exc

    console.print(f"[green]Matched:[/green] {report.matched}/{report.checked}")
    if report.skipped:
        console.print(
            f"[yellow]Skipped (no recorded hash):[/yellow] {len(report.skipped)}"
        )
    for name in report.missing:
        console.print(f"[red]Missing:[/red] {name}")
    for name in report.mismatched:
        console.print(f"[red]Mismatch:[/red] {name}")
    if not report.ok:
        raise SystemExit(1)
