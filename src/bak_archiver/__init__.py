"""Bak Archiver: archive backup files into a single ZIP with a manifest."""

__version__ = "0.1.0"

from bak_archiver.models import (
    ArchiveConfig,
    ArchiveResult,
    DeletionResult,
    GuardState,
    HashAlgorithm,
    ManifestEntry,
    RunContext,
    RunOutcome,
    RunSummary,
)
from bak_archiver.pipeline import ArchivePipeline

__all__ = [
    "ArchiveConfig",
    "ArchivePipeline",
    "ArchiveResult",
    "DeletionResult",
    "GuardState",
    "HashAlgorithm",
    "ManifestEntry",
    "RunContext",
    "RunOutcome",
    "RunSummary",
]
