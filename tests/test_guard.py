"""Tests for bak_archiver.guard."""

from __future__ import annotations

from pathlib import Path

import click
import pytest

from bak_archiver.guard import (
    CONFIRMATION_TOKEN,
    ConsoleConfirmationProvider,
    DeletionGuard,
)
from bak_archiver.manifest import ManifestBuilder
from bak_archiver.models import GuardState, ManifestEntry
from bak_archiver.scanner import FileScanner
from helpers import RecordingReportSink, ScriptedConfirmationProvider, make_context


@pytest.fixture
def entries(backup_root: Path) -> tuple[ManifestEntry, ...]:
    files = FileScanner().scan(backup_root, ".bak")
    ctx = ManifestBuilder(RecordingReportSink()).build(make_context(backup_root), files)
    return ctx.entries


def _all_exist(entries: tuple[ManifestEntry, ...]) -> bool:
    return all(Path(e.original_path).exists() for e in entries)


class TestDeletionGuardGates:
    def test_all_gates_pass_deletes_everything(
        self, sink: RecordingReportSink, entries: tuple[ManifestEntry, ...]
    ) -> None:
        provider = ScriptedConfirmationProvider([True, True])
        guard = DeletionGuard(sink, provider)

        result = guard.run(entries)

        assert result.state == GuardState.DONE
        assert guard.state == GuardState.DONE
        assert result.deleted_count == 3
        assert result.failed_count == 0
        assert not any(Path(e.original_path).exists() for e in entries)
        assert len(sink.of("file_deleted")) == 3

    @pytest.mark.parametrize(
        ("answers", "token", "questions_asked"),
        [
            ([False, True], "DELETE", 1),
            ([True, False], "DELETE", 2),
            ([True, True], "delete", 3),
            ([True, True], "DELETE!", 3),
            ([True, True], "", 3),
        ],
    )
    def test_any_refusal_aborts_without_deleting(
        self,
        sink: RecordingReportSink,
        entries: tuple[ManifestEntry, ...],
        answers: list[bool],
        token: str,
        questions_asked: int,
    ) -> None:
        provider = ScriptedConfirmationProvider(answers, token=token)
        guard = DeletionGuard(sink, provider)

        result = guard.run(entries)

        assert result.state == GuardState.ABORTED
        assert result.deleted_count == 0
        assert _all_exist(entries)
        assert len(provider.questions) == questions_asked
        assert sink.of("file_deleted") == []
        assert sink.of("deletion_summary") == [(result,)]

    def test_warning_comes_first(
        self, sink: RecordingReportSink, entries: tuple[ManifestEntry, ...]
    ) -> None:
        DeletionGuard(sink, ScriptedConfirmationProvider([False])).run(entries)
        assert sink.names()[0] == "deletion_warning"
        assert sink.of("deletion_warning") == [(3,)]

    def test_second_gate_names_file_count(
        self, sink: RecordingReportSink, entries: tuple[ManifestEntry, ...]
    ) -> None:
        provider = ScriptedConfirmationProvider([True, False])
        DeletionGuard(sink, provider).run(entries)
        assert provider.questions[0] != provider.questions[1]
        assert "3 file(s)" in provider.questions[1]

    @pytest.mark.parametrize("token", [" DELETE \n", "DELETE ", "\tDELETE"])
    def test_token_with_surrounding_whitespace_aborts(
        self,
        sink: RecordingReportSink,
        entries: tuple[ManifestEntry, ...],
        token: str,
    ) -> None:
        provider = ScriptedConfirmationProvider([True, True], token=token)
        assert DeletionGuard(sink, provider).run(entries).state == GuardState.ABORTED
        assert _all_exist(entries)

    def test_token_prompt_mentions_token(
        self, sink: RecordingReportSink, entries: tuple[ManifestEntry, ...]
    ) -> None:
        provider = ScriptedConfirmationProvider([True, True], token="no")
        DeletionGuard(sink, provider).run(entries)
        assert CONFIRMATION_TOKEN in provider.questions[2]


class TestDeletionExecution:
    def test_failures_are_isolated(
        self, sink: RecordingReportSink, entries: tuple[ManifestEntry, ...]
    ) -> None:
        Path(entries[1].original_path).unlink()

        result = DeletionGuard(sink, ScriptedConfirmationProvider([True, True])).run(
            entries
        )

        assert result.state == GuardState.DONE
        assert result.deleted_count == 2
        assert result.failed_count == 1
        assert result.failures[0].path == entries[1].original_path
        assert sink.of("file_delete_failed")[0][0] == entries[1].original_path
        assert not Path(entries[2].original_path).exists()

    def test_permission_failure_continues(
        self,
        sink: RecordingReportSink,
        entries: tuple[ManifestEntry, ...],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        real_remove = DeletionGuard._remove

        def remove(path: Path) -> None:
            if path.name == "app.bak":
                raise PermissionError(13, "Permission denied")
            real_remove(path)

        monkeypatch.setattr(DeletionGuard, "_remove", staticmethod(remove))
        result = DeletionGuard(sink, ScriptedConfirmationProvider([True, True])).run(
            entries
        )

        assert result.deleted_count == 2
        assert result.failures[0].reason == "Permission denied"
        assert Path(entries[0].original_path).exists()

    def test_summary_reported_once(
        self, sink: RecordingReportSink, entries: tuple[ManifestEntry, ...]
    ) -> None:
        DeletionGuard(sink, ScriptedConfirmationProvider([True, True])).run(entries)
        assert len(sink.of("deletion_summary")) == 1
        assert sink.names()[-1] == "deletion_summary"


class TestConsoleConfirmationProvider:
    def test_confirm_uses_click(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("bak_archiver.guard.click.confirm", lambda msg, default: True)
        assert ConsoleConfirmationProvider().confirm("Sure?") is True

    def test_prompt_token_uses_click(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(
            "bak_archiver.guard.click.prompt", lambda msg, **kwargs: "DELETE"
        )
        assert ConsoleConfirmationProvider().prompt_token("Type it") == "DELETE"

    def test_confirm_abort_is_a_no(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def aborted(msg: str, default: bool) -> bool:
            raise click.Abort()

        monkeypatch.setattr("bak_archiver.guard.click.confirm", aborted)
        assert ConsoleConfirmationProvider().confirm("Sure?") is False

    def test_prompt_abort_is_empty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def aborted(msg: str, **kwargs: object) -> str:
            raise click.Abort()

        monkeypatch.setattr("bak_archiver.guard.click.prompt", aborted)
        assert ConsoleConfirmationProvider().prompt_token("Type it") == ""
