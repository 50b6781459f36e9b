"""Recording sink, scripted confirmations and context builders for tests."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from bak_archiver.guard import ConfirmationProvider
from bak_archiver.models import (
    DeletionResult,
    ManifestEntry,
    RunContext,
    RunSummary,
)
from bak_archiver.reporting import ReportSink


class RecordingReportSink(ReportSink):
    """Keeps every event as ``(name, *args)`` for assertions."""

    def __init__(self) -> None:
        self.events: list[tuple[object, ...]] = []

    def names(self) -> list[str]:
        return [str(e[0]) for e in self.events]

    def of(self, name: str) -> list[tuple[object, ...]]:
        return [e[1:] for e in self.events if e[0] == name]

    def scan_started(self, root: Path, total: int) -> None:
        self.events.append(("scan_started", root, total))

    def file_scanned(self, index: int, total: int, entry: ManifestEntry) -> None:
        self.events.append(("file_scanned", index, total, entry.relative_path))

    def hash_failed(self, path: str, reason: str) -> None:
        self.events.append(("hash_failed", path, reason))

    def no_files_found(self, root: Path, extension: str) -> None:
        self.events.append(("no_files_found", root, extension))

    def batch_written(self, index: int, total: int, count: int) -> None:
        self.events.append(("batch_written", index, total, count))

    def file_skipped(self, path: str, reason: str) -> None:
        self.events.append(("file_skipped", path, reason))

    def manifest_embedded(self, entry_name: str) -> None:
        self.events.append(("manifest_embedded", entry_name))

    def csv_written(self, path: Path) -> None:
        self.events.append(("csv_written", path))

    def deletion_warning(self, count: int) -> None:
        self.events.append(("deletion_warning", count))

    def file_deleted(self, path: str) -> None:
        self.events.append(("file_deleted", path))

    def file_delete_failed(self, path: str, reason: str) -> None:
        self.events.append(("file_delete_failed", path, reason))

    def deletion_summary(self, result: DeletionResult) -> None:
        self.events.append(("deletion_summary", result))

    def preview(self, context: RunContext) -> None:
        self.events.append(("preview", len(context.entries)))

    def run_summary(self, summary: RunSummary) -> None:
        self.events.append(("run_summary", summary))


class ScriptedConfirmationProvider(ConfirmationProvider):
    """Answers the gates from a fixed script and records the questions."""

    def __init__(self, answers: list[bool], token: str = "DELETE") -> None:
        self._answers = list(answers)
        self._token = token
        self.questions: list[str] = []

    def confirm(self, message: str) -> bool:
        self.questions.append(message)
        return self._answers.pop(0)

    def prompt_token(self, message: str) -> str:
        self.questions.append(message)
        return self._token


def make_context(
    root: Path, destination: Path | None = None, **overrides: object
) -> RunContext:
    """Build an empty run context for *root*."""
    values: dict[str, object] = {
        "root_path": root.resolve(),
        "destination_archive": (destination or root.parent / "out.zip").resolve(),
        "batch_size": 50,
        "extension": ".bak",
        "started_at": datetime(2024, 5, 1, 12, 0, tzinfo=UTC),
    }
    values.update(overrides)
    return RunContext.model_validate(values)
