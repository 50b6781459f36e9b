"""Pydantic models for the backup archival pipeline."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path, PurePosixPath

from pydantic import BaseModel, ConfigDict, Field, field_validator

HASH_ERROR_PREFIX = "ERROR:"
DEFAULT_BATCH_SIZE = 500
MIN_BATCH_SIZE = 50
MAX_BATCH_SIZE = 5000

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class HashAlgorithm(StrEnum):
    """Digest algorithms available for integrity hashes."""

    SHA256 = "sha256"
    SHA1 = "sha1"
    SHA512 = "sha512"
    MD5 = "md5"


class GuardState(StrEnum):
    """States of the deletion confirmation protocol."""

    IDLE = "idle"
    WARNING_SHOWN = "warning_shown"
    PRIMARY_CONFIRMED = "primary_confirmed"
    FINALLY_CONFIRMED = "finally_confirmed"
    EXECUTING = "executing"
    DONE = "done"
    ABORTED = "aborted"


class RunOutcome(StrEnum):
    """How an archival run terminated (fatal errors raise instead)."""

    COMPLETED = "completed"
    NO_FILES_FOUND = "no_files_found"
    DRY_RUN = "dry_run"


# ---------------------------------------------------------------------------
# Manifest
# ---------------------------------------------------------------------------


class ManifestEntry(BaseModel):
    """One archived file, captured at scan time."""

    model_config = ConfigDict(frozen=True)

    original_path: str
    relative_path: str
    file_name: str
    size_bytes: int = Field(ge=0)
    content_hash: str
    last_modified: datetime
    archived_at: datetime

    @property
    def size_kb(self) -> float:
        return self.size_bytes / 1024

    @property
    def size_mb(self) -> float:
        return self.size_bytes / (1024 * 1024)

    @property
    def hash_ok(self) -> bool:
        """``False`` when hashing failed and an error marker was recorded."""
        return not self.content_hash.startswith(HASH_ERROR_PREFIX)


class ArchiveConfig(BaseModel):
    """Validated configuration handed to the pipeline."""

    root_path: Path
    destination_archive: Path | None = None
    batch_size: int = Field(
        default=DEFAULT_BATCH_SIZE, ge=MIN_BATCH_SIZE, le=MAX_BATCH_SIZE
    )
    extension: str = ".bak"
    generate_manifest_csv: bool = False
    delete_source_files: bool = False
    hash_algorithm: HashAlgorithm = HashAlgorithm.SHA256
    workers: int = Field(default=1, ge=1, le=32)
    dry_run: bool = False

    @field_validator("extension")
    @classmethod
    def _normalize_extension(cls, value: str) -> str:
        ext = value.strip().lstrip("*")
        if not ext.startswith("."):
            ext = f".{ext}"
        if ext == "." or "/" in ext or "\\" in ext:
            msg = f"Invalid extension filter: {value!r}"
            raise ValueError(msg)
        return ext.lower()


class RunContext(BaseModel):
    """Process-scoped state for one archival run.

    ``entries`` is filled once by the manifest builder (through
    ``model_copy``) and is read-only afterwards.
    """

    model_config = ConfigDict(frozen=True)

    root_path: Path
    destination_archive: Path
    batch_size: int = Field(ge=MIN_BATCH_SIZE, le=MAX_BATCH_SIZE)
    extension: str
    hash_algorithm: HashAlgorithm = HashAlgorithm.SHA256
    entries: tuple[ManifestEntry, ...] = ()
    delete_requested: bool = False
    csv_requested: bool = False
    started_at: datetime

    @classmethod
    def from_config(
        cls, config: ArchiveConfig, now: datetime | None = None
    ) -> RunContext:
        """Resolve paths and derive the default archive name."""
        started = now or datetime.now(UTC)
        root = config.root_path.expanduser().resolve()
        if config.destination_archive is not None:
            destination = config.destination_archive.expanduser().resolve()
        else:
            stamp = started.astimezone().strftime("%Y%m%d_%H%M%S")
            destination = root.parent / f"bak-archive_{stamp}.zip"
        return cls(
            root_path=root,
            destination_archive=destination,
            batch_size=config.batch_size,
            extension=config.extension,
            hash_algorithm=config.hash_algorithm,
            delete_requested=config.delete_source_files,
            csv_requested=config.generate_manifest_csv,
            started_at=started,
        )

    @property
    def total_bytes(self) -> int:
        return sum(e.size_bytes for e in self.entries)

    @property
    def hash_failures(self) -> list[ManifestEntry]:
        return [e for e in self.entries if not e.hash_ok]


def to_relative_name(path: Path, root: Path) -> str:
    """Root-relative, forward-slash entry name for *path*."""
    return PurePosixPath(*path.relative_to(root).parts).as_posix()


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class SkippedFile(BaseModel):
    """A manifest entry whose source could not be read into the archive."""

    path: str
    relative_path: str
    reason: str


class ArchiveResult(BaseModel):
    """Outcome of writing the archive."""

    archive_path: str
    batch_sizes: list[int] = []
    manifest_entry: str
    archive_size_bytes: int = 0
    skipped: list[SkippedFile] = []

    @property
    def batches_written(self) -> int:
        return len(self.batch_sizes)

    def archived(self, entries: Sequence[ManifestEntry]) -> list[ManifestEntry]:
        """Entries of *entries* that actually made it into the archive."""
        missing = {s.relative_path for s in self.skipped}
        return [e for e in entries if e.relative_path not in missing]


class DeletionFailure(BaseModel):
    """A source file that could not be removed."""

    path: str
    reason: str


class DeletionResult(BaseModel):
    """Final accounting of the deletion guard."""

    state: GuardState
    deleted_count: int = 0
    failed_count: int = 0
    failures: list[DeletionFailure] = []


class RunSummary(BaseModel):
    """Everything reported at the end of a run."""

    outcome: RunOutcome
    root_path: str
    file_count: int = 0
    total_bytes: int = 0
    hash_failures: int = 0
    archive: ArchiveResult | None = None
    csv_path: str | None = None
    deletion: DeletionResult | None = None
    elapsed_seconds: float = 0.0
