"""Text and CSV renderings of the manifest."""

from __future__ import annotations

import csv
import logging
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from bak_archiver.models import ManifestEntry, RunContext

logger = logging.getLogger(__name__)

CSV_COLUMNS = [
    "original_path",
    "relative_path",
    "file_name",
    "size_bytes",
    "size_kb",
    "size_mb",
    "content_hash",
    "last_modified",
    "archived_at",
]

_RULE = "=" * 72


class ManifestWriteError(Exception):
    """Raised when the CSV manifest cannot be written."""


def _stamp(value: datetime) -> str:
    return value.astimezone().strftime("%Y-%m-%d %H:%M:%S %z")


def render_text_manifest(context: RunContext) -> str:
    """Render the human-readable manifest embedded in the archive."""
    lines = [
        _RULE,
        "BACKUP FILE ARCHIVE MANIFEST",
        _RULE,
        f"Archive date:    {_stamp(context.started_at)}",
        f"Analyzed root:   {context.root_path}",
        f"Archive path:    {context.destination_archive}",
        f"Extension:       {context.extension}",
        f"Hash algorithm:  {context.hash_algorithm.upper()}",
        f"File count:      {len(context.entries)}",
        f"Total size:      {context.total_bytes / (1024 * 1024):.2f} MB",
        _RULE,
        "",
    ]
    for i, entry in enumerate(context.entries, start=1):
        lines.append(f"[{i}] {entry.file_name}")
        lines.append(f"    Original path: {entry.original_path}")
        lines.append(f"    Relative path: {entry.relative_path}")
        lines.append(
            f"    Size:          {entry.size_kb:.2f} KB ({entry.size_mb:.2f} MB)"
        )
        lines.append(f"    Hash:          {entry.content_hash}")
        lines.append(f"    Last modified: {_stamp(entry.last_modified)}")
        lines.append("")
    return "\n".join(lines)


def csv_manifest_path(archive: str | Path) -> Path:
    """``backup.zip`` -> ``backup_manifest.csv`` in the same directory."""
    archive_path = Path(archive)
    return archive_path.with_name(f"{archive_path.stem}_manifest.csv")


def write_csv_manifest(context: RunContext, path: str | Path) -> Path:
    """Write one CSV row per manifest entry.

    Raises:
        ManifestWriteError: If the file cannot be written.
    """
    out = Path(path)
    try:
        with out.open("w", newline="", encoding="utf-8") as fh:
            writer = csv.DictWriter(fh, fieldnames=CSV_COLUMNS)
            writer.writeheader()
            for entry in context.entries:
                writer.writerow(
                    {
                        "original_path": entry.original_path,
                        "relative_path": entry.relative_path,
                        "file_name": entry.file_name,
                        "size_bytes": entry.size_bytes,
                        "size_kb": f"{entry.size_kb:.2f}",
                        "size_mb": f"{entry.size_mb:.2f}",
                        "content_hash": entry.content_hash,
                        "last_modified": entry.last_modified.isoformat(),
                        "archived_at": entry.archived_at.isoformat(),
                    }
                )
    except OSError as exc:
        msg = f"Cannot write CSV manifest {out}: {exc}"
        raise ManifestWriteError(msg) from exc
    logger.debug("Wrote %d CSV row(s) to %s", len(context.entries), out)
    return out


def read_csv_manifest(path: str | Path) -> list[ManifestEntry]:
    """Load entries back from a CSV manifest.

    Raises:
        FileNotFoundError: If *path* does not exist.
        ValueError: If a row is missing columns or holds invalid values.
    """
    src = Path(path)
    if not src.is_file():
        msg = f"CSV manifest not found: {src}"
        raise FileNotFoundError(msg)

    entries: list[ManifestEntry] = []
    with src.open(newline="", encoding="utf-8") as fh:
        for line_no, row in enumerate(csv.DictReader(fh), start=2):
            try:
                data = {field: row[field] for field in ManifestEntry.model_fields}
                entries.append(ManifestEntry.model_validate(data))
            except (KeyError, ValidationError) as exc:
                msg = f"Invalid manifest row {line_no} in {src}: {exc}"
                raise ValueError(msg) from exc
    return entries
