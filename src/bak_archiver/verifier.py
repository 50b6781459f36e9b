"""Check an archive against its CSV manifest."""

from __future__ import annotations

import logging
import zipfile
from pathlib import Path

from pydantic import BaseModel

from bak_archiver.hasher import IntegrityHasher
from bak_archiver.models import HashAlgorithm
from bak_archiver.writers import csv_manifest_path, read_csv_manifest

logger = logging.getLogger(__name__)

# hex digest length -> algorithm
_DIGEST_LENGTHS: dict[int, HashAlgorithm] = {
    32: HashAlgorithm.MD5,
    40: HashAlgorithm.SHA1,
    64: HashAlgorithm.SHA256,
    128: HashAlgorithm.SHA512,
}


class VerificationReport(BaseModel):
    """Result of re-hashing archive members."""

    archive_path: str
    checked: int = 0
    matched: int = 0
    mismatched: list[str] = []
    missing: list[str] = []
    skipped: list[str] = []

    @property
    def ok(self) -> bool:
        return not self.mismatched and not self.missing


class ArchiveVerifier:
    """Re-hashes archive members and compares them to recorded hashes."""

    def verify(
        self, archive: str | Path, manifest_csv: str | Path | None = None
    ) -> VerificationReport:
        """Verify *archive* against *manifest_csv* (default: sibling CSV).

        Entries whose hash was never computed are skipped.

        Raises:
            FileNotFoundError: If the archive or the manifest is missing.
        """
        archive_path = Path(archive)
        if not archive_path.is_file():
            msg = f"Archive not found: {archive_path}"
            raise FileNotFoundError(msg)
        csv_path = Path(manifest_csv) if manifest_csv else csv_manifest_path(archive_path)
        entries = read_csv_manifest(csv_path)

        report = VerificationReport(archive_path=str(archive_path))
        with zipfile.ZipFile(archive_path) as zf:
            members = set(zf.namelist())
            for entry in entries:
                if not entry.hash_ok:
                    report.skipped.append(entry.relative_path)
                    continue
                if entry.relative_path not in members:
                    report.missing.append(entry.relative_path)
                    continue

                hasher = IntegrityHasher(self._algorithm_for(entry.content_hash))
                with zf.open(entry.relative_path) as fh:
                    actual = hasher.hash_stream(fh)
                report.checked += 1
                if actual == entry.content_hash:
                    report.matched += 1
                else:
                    logger.warning("Hash mismatch: %s", entry.relative_path)
                    report.mismatched.append(entry.relative_path)

        logger.info(
            "Verified %d/%d member(s) of %s",
            report.matched,
            len(entries),
            archive_path,
        )
        return report

    @staticmethod
    def _algorithm_for(digest: str) -> HashAlgorithm:
        try:
            return _DIGEST_LENGTHS[len(digest)]
        except KeyError:
            msg = f"Unrecognized digest length {len(digest)}: {digest!r}"
            raise ValueError(msg) from None
