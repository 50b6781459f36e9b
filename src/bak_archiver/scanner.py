"""Recursive discovery of backup files under a root directory."""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


class RootNotFoundError(FileNotFoundError):
    """Raised when the scan root is missing or not a directory."""


class FileScanner:
    """Finds regular files whose suffix matches an extension filter.

    Enumeration errors (unreadable directories, entries that vanish or
    cannot be stat'ed mid-walk) are skipped without a warning so that one
    inaccessible corner of the tree never blocks the rest of the archive.
    """

    def scan(
        self,
        root: str | Path,
        extension: str,
        exclude: str | Path | None = None,
    ) -> list[Path]:
        """Return matching files under *root* in a stable order.

        Directories are walked top-down with names sorted at every level,
        so two scans of an unchanged tree return the same list.

        Args:
            root: Directory to scan recursively.
            extension: Suffix to match (``.bak``), case-insensitive.
            exclude: Optional path never to return (the archive itself).

        Raises:
            RootNotFoundError: If *root* is not an existing directory.
        """
        root_path = Path(root)
        if not root_path.is_dir():
            msg = f"Root directory not found: {root_path}"
            raise RootNotFoundError(msg)

        suffix = extension.lower()
        excluded = Path(exclude).resolve() if exclude is not None else None

        found: list[Path] = []
        for dirpath, dirnames, filenames in os.walk(
            root_path, onerror=self._skip, followlinks=False
        ):
            dirnames.sort()
            for name in sorted(filenames):
                if not name.lower().endswith(suffix):
                    continue
                candidate = Path(dirpath) / name
                if not self._is_regular_file(candidate):
                    continue
                if excluded is not None and candidate.resolve() == excluded:
                    continue
                found.append(candidate)

        logger.debug("Found %d '%s' file(s) under %s", len(found), suffix, root_path)
        return found

    @staticmethod
    def _is_regular_file(path: Path) -> bool:
        try:
            return path.is_file() and not path.is_symlink()
        except OSError:
            return False

    @staticmethod
    def _skip(error: OSError) -> None:
        logger.debug("Skipping unreadable path: %s", error)
