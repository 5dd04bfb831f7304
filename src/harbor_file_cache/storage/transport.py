"""
Registry transport protocol.

Defines the boundary between the store's core logic and the code that speaks
the OCI Distribution protocol. All operations take a full image reference
(``registry/project/repo:tag``) so the transport never has to guess which
repository an operation targets.
"""
from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Protocol, Tuple, runtime_checkable

from ..models import BlobDescriptor
from .blob_cache import BlobCache


@runtime_checkable
class RegistryTransport(Protocol):
    """
    Reference-scoped registry operations.

    Implementations map "not found" conditions to NotFound and every other
    failure to TransportError.
    """

    def get_manifest(self, reference: str) -> bytes:
        """
        GET manifest content for a tagged reference.

        Raises:
            NotFound: If the repository or tag doesn't exist
            TransportError: For other registry errors
        """
        ...

    def put_manifest(self, reference: str, payload: bytes) -> None:
        """
        PUT a whole manifest under the reference's tag.

        Raises:
            TransportError: If the registry rejects the manifest
        """
        ...

    def put_blob(self, reference: str, path: Path, size: int,
                 cache: BlobCache) -> BlobDescriptor:
        """
        Upload a local file as a blob and return its descriptor.

        The transport computes the digest. The upload is skipped when the
        cache records the blob at this repository or the registry already
        has it.

        Raises:
            TransportError: If the upload fails
        """
        ...

    def get_blob(self, reference: str, descriptor: BlobDescriptor,
                 cache: BlobCache) -> Tuple[BinaryIO, int]:
        """
        Open a blob for reading, serving it from the cache when present.

        Returns:
            (readable stream, size in bytes); the caller closes the stream

        Raises:
            NotFound: If the blob doesn't exist
            DigestMismatch: If downloaded content doesn't match the digest
            TransportError: For other registry errors
        """
        ...

    def copy_image(self, layout_dir: Path, reference: str) -> None:
        """
        Push an on-disk image layout (blobs/sha256/* + manifest.json).

        No signature policy is applied to the pushed image.

        Raises:
            TransportError: If any blob or the manifest is rejected
        """
        ...

    def delete_image(self, reference: str) -> None:
        """
        Delete the manifest the reference's tag points to.

        Raises:
            NotFound: If the tag doesn't exist
            TransportError: For other registry errors
        """
        ...


__all__ = ["RegistryTransport"]
