"""
Local blob cache.

Content-addressed directory holding verified blob bytes plus a small record of
which remote repositories are known to already hold a blob. Pulls are served
from here when the digest is present, and pushes are skipped when the target
repository is known to have the digest.

Layout under the cache root:

    blobs/sha256/<hex>               blob bytes
    locations/sha256/<hex>.json      repositories known to hold the blob
"""
from __future__ import annotations

import hashlib
import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import BinaryIO, Iterable, Optional, Union

from ..errors import DigestMismatch

__all__ = ["BlobCache", "file_digest", "CHUNK_SIZE"]

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024  # 1 MiB

_DIGEST_RE = re.compile(r"^sha256:[a-f0-9]{64}$")


def _validate_digest(digest: str) -> str:
    if not _DIGEST_RE.match(digest):
        raise ValueError(f"Invalid digest format: {digest}")
    return digest.split(":", 1)[1]


def file_digest(path: Union[str, Path]) -> str:
    """Compute the sha256 digest of a local file, reading it in chunks."""
    hash_obj = hashlib.sha256()
    with open(path, "rb") as f:
        while True:
            chunk = f.read(CHUNK_SIZE)
            if not chunk:
                break
            hash_obj.update(chunk)
    return f"sha256:{hash_obj.hexdigest()}"


def _write_atomically(target: Path, data: bytes) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_path = tempfile.mkstemp(prefix=".hfc.tmp.", dir=target.parent)
    try:
        with os.fdopen(fd, "wb") as out:
            out.write(data)
        os.replace(temp_path, target)
    except Exception:
        try:
            os.unlink(temp_path)
        except FileNotFoundError:
            pass
        raise


class BlobCache:
    """
    Content-addressed cache directory for registry blobs.

    A BlobCache is only a handle on a directory; several stores and processes
    may share the same root.
    """

    def __init__(self, root: Union[str, Path]) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def ensure_root(self) -> Path:
        """Create the cache directory if it does not exist."""
        self._root.mkdir(parents=True, exist_ok=True)
        return self._root

    def path_for(self, digest: str) -> Path:
        hex_digest = _validate_digest(digest)
        return self._root / "blobs" / "sha256" / hex_digest

    def has_blob(self, digest: str) -> bool:
        return self.path_for(digest).is_file()

    def open_blob(self, digest: str) -> Optional[BinaryIO]:
        """Open a cached blob for reading, or return None on a cache miss."""
        path = self.path_for(digest)
        try:
            return open(path, "rb")
        except FileNotFoundError:
            return None

    def ingest(self, digest: str, chunks: Iterable[bytes],
               expected_size: Optional[int] = None) -> Path:
        """
        Stream blob bytes into the cache with digest verification.

        The write is atomic (temp file + rename) so a partially downloaded blob
        never becomes visible under its digest.

        Args:
            digest: Expected digest of the content
            chunks: Iterable of byte chunks
            expected_size: Expected byte length, checked when given and non-zero

        Returns:
            Path of the cached blob

        Raises:
            DigestMismatch: If content hash or size does not match
            OSError: If file operations fail
        """
        target = self.path_for(digest)
        target.parent.mkdir(parents=True, exist_ok=True)

        hash_obj = hashlib.sha256()
        written = 0
        fd, temp_name = tempfile.mkstemp(prefix=".hfc.tmp.", dir=target.parent)
        temp_path = Path(temp_name)

        try:
            with os.fdopen(fd, "wb") as out:
                for chunk in chunks:
                    if not chunk:
                        continue
                    hash_obj.update(chunk)
                    out.write(chunk)
                    written += len(chunk)
                out.flush()
                os.fsync(out.fileno())

            actual = f"sha256:{hash_obj.hexdigest()}"
            if actual != digest:
                raise DigestMismatch(
                    f"Digest mismatch: expected {digest}, got {actual}",
                    expected=digest,
                    actual=actual,
                )
            if expected_size and written != expected_size:
                raise DigestMismatch(
                    f"Size mismatch for {digest}: expected {expected_size}, got {written}",
                    expected=digest,
                    actual=actual,
                )

            os.replace(temp_path, target)
        except Exception:
            try:
                temp_path.unlink()
            except FileNotFoundError:
                pass
            raise

        logger.debug(f"Cached blob {digest} ({written} bytes) at {target}")
        return target

    # Remote location memory

    def _location_path(self, digest: str) -> Path:
        hex_digest = _validate_digest(digest)
        return self._root / "locations" / "sha256" / f"{hex_digest}.json"

    def _read_locations(self, digest: str) -> set[str]:
        path = self._location_path(digest)
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except FileNotFoundError:
            return set()
        except ValueError:
            logger.warning(f"Ignoring corrupt location record {path}")
            return set()
        return set(data) if isinstance(data, list) else set()

    def knows(self, digest: str, repository: str) -> bool:
        """True if ``repository`` is recorded as already holding ``digest``."""
        return repository in self._read_locations(digest)

    def remember(self, digest: str, repository: str) -> None:
        """Record that ``repository`` holds ``digest``."""
        locations = self._read_locations(digest)
        if repository in locations:
            return
        locations.add(repository)
        payload = json.dumps(sorted(locations)).encode("utf-8")
        _write_atomically(self._location_path(digest), payload)

    def forget_repository(self, repository: str) -> None:
        """Drop every location record pointing at ``repository``."""
        locations_dir = self._root / "locations" / "sha256"
        if not locations_dir.is_dir():
            return
        for record in locations_dir.glob("*.json"):
            digest = f"sha256:{record.stem}"
            locations = self._read_locations(digest)
            if repository not in locations:
                continue
            locations.discard(repository)
            _write_atomically(record, json.dumps(sorted(locations)).encode("utf-8"))
