"""Three-gate confirmation protocol guarding source file deletion."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path

import click

from bak_archiver.models import (
    DeletionFailure,
    DeletionResult,
    GuardState,
    ManifestEntry,
)
from bak_archiver.reporting import ReportSink

logger = logging.getLogger(__name__)

CONFIRMATION_TOKEN = "DELETE"


class ConfirmationProvider(ABC):
    """Source of the operator's answers at each gate."""

    @abstractmethod
    def confirm(self, message: str) -> bool:
        """Ask a yes/no question; ``True`` only for an explicit yes."""
        ...

    @abstractmethod
    def prompt_token(self, message: str) -> str:
        """Ask the operator to type a confirmation token."""
        ...


class ConsoleConfirmationProvider(ConfirmationProvider):
    """Interactive provider prompting on the terminal via click."""

    def confirm(self, message: str) -> bool:
        try:
            return click.confirm(message, default=False)
        except click.Abort:
            # EOF or Ctrl-C at the prompt counts as "no"
            return False

    def prompt_token(self, message: str) -> str:
        try:
            return click.prompt(message, default="", show_default=False)
        except click.Abort:
            return ""


class DeletionGuard:
    """Removes archived source files only after three explicit confirmations.

    The guard moves through::

        idle -> warning_shown -> primary_confirmed -> finally_confirmed
             -> executing -> done

    Any negative or mismatched answer moves it to ``aborted`` and nothing
    is deleted. Once ``executing`` starts, every file is attempted; a
    failed removal is recorded and the loop continues.
    """

    def __init__(self, sink: ReportSink, provider: ConfirmationProvider) -> None:
        self._sink = sink
        self._provider = provider
        self.state = GuardState.IDLE

    def run(self, entries: Sequence[ManifestEntry]) -> DeletionResult:
        """Walk the gates and, if all pass, delete every entry's source."""
        count = len(entries)

        self._sink.deletion_warning(count)
        self.state = GuardState.WARNING_SHOWN

        if not self._provider.confirm(
            f"Delete the {count} original file(s) that were just archived?"
        ):
            return self._abort()
        self.state = GuardState.PRIMARY_CONFIRMED

        if not self._provider.confirm(
            f"FINAL WARNING: {count} file(s) will be PERMANENTLY removed from "
            "disk and can only be recovered from the archive. Continue?"
        ):
            return self._abort()
        self.state = GuardState.FINALLY_CONFIRMED

        token = self._provider.prompt_token(
            f"Type {CONFIRMATION_TOKEN} to delete {count} file(s)"
        )
        if token != CONFIRMATION_TOKEN:
            logger.info("Confirmation token did not match, deletion cancelled")
            return self._abort()
        self.state = GuardState.EXECUTING

        result = self._execute(entries)
        self.state = GuardState.DONE
        result = result.model_copy(update={"state": self.state})
        self._sink.deletion_summary(result)
        return result

    def _abort(self) -> DeletionResult:
        logger.debug("Deletion aborted after state '%s'", self.state)
        self.state = GuardState.ABORTED
        result = DeletionResult(state=self.state)
        self._sink.deletion_summary(result)
        return result

    def _execute(self, entries: Sequence[ManifestEntry]) -> DeletionResult:
        deleted = 0
        failures: list[DeletionFailure] = []
        for entry in entries:
            try:
                self._remove(Path(entry.original_path))
            except OSError as exc:
                reason = exc.strerror or str(exc) or exc.__class__.__name__
                failures.append(DeletionFailure(path=entry.original_path, reason=reason))
                self._sink.file_delete_failed(entry.original_path, reason)
                continue
            deleted += 1
            self._sink.file_deleted(entry.original_path)

        return DeletionResult(
            state=GuardState.EXECUTING,
            deleted_count=deleted,
            failed_count=len(failures),
            failures=failures,
        )

    @staticmethod
    def _remove(path: Path) -> None:
        path.unlink()
