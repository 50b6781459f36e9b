"""Per-file content hashing that never aborts the run."""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path
from typing import BinaryIO

from bak_archiver.models import HASH_ERROR_PREFIX, HashAlgorithm

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 1024 * 1024


def is_hash_error(value: str) -> bool:
    """Return ``True`` if *value* is an error marker rather than a digest."""
    return value.startswith(HASH_ERROR_PREFIX)


class IntegrityHasher:
    """Streams files through :mod:`hashlib` and returns hex digests."""

    def __init__(
        self,
        algorithm: HashAlgorithm | str = HashAlgorithm.SHA256,
        chunk_size: int = _CHUNK_SIZE,
    ) -> None:
        self.algorithm = HashAlgorithm(algorithm)
        self.chunk_size = chunk_size

    def hash_file(self, path: str | Path) -> str:
        """Return the hex digest of *path*, or an ``ERROR:`` marker.

        I/O and permission failures are recorded in the returned value
        instead of being raised.
        """
        try:
            return self._digest(Path(path))
        except OSError as exc:
            reason = exc.strerror or exc.__class__.__name__
            logger.debug("Hashing failed for %s: %s", path, reason)
            return f"{HASH_ERROR_PREFIX} {reason}"

    def hash_stream(self, fh: BinaryIO) -> str:
        """Return the hex digest of an open binary stream."""
        digest = hashlib.new(self.algorithm.value)
        while chunk := fh.read(self.chunk_size):
            digest.update(chunk)
        return digest.hexdigest()

    def _digest(self, path: Path) -> str:
        with path.open("rb") as fh:
            return self.hash_stream(fh)
