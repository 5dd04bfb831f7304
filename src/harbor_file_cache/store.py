"""
FileStore - the Harbor-backed file store facade.

Wires the registry transport, the Harbor catalog client, and the local blob
cache together behind one handle. A FileStore is built once by the
application (see FileStore.from_settings) and passed to whatever needs it;
independently configured stores can coexist in one process.
"""
from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import BinaryIO, Optional, Tuple, Union

from .bootstrap import ensure_repository
from .models import BlobDescriptor, Manifest
from .resolver import latest_artifact_digest as _latest_artifact_digest
from .resolver import latest_layer_digest as _latest_layer_digest
from .settings import Settings
from .storage.address import StoreAddress, parse_store_address
from .storage.blob_cache import CHUNK_SIZE, BlobCache
from .storage.catalog import HarborCatalog
from .storage.transport import RegistryTransport
from .sync import append_blob

__all__ = ["FileStore"]

logger = logging.getLogger(__name__)

AddressLike = Union[str, StoreAddress]
PathLike = Union[str, Path]


class FileStore:
    """
    Digest-addressed file store on top of a Harbor registry.

    Each uploaded file becomes one layer of the tag's manifest, newest first.
    Downloads are served from the local cache directory when the digest has
    been fetched before.

    Operations are synchronous and hold no locks; concurrent uploads to the
    same tag can lose a manifest update.
    """

    def __init__(self, settings: Settings, *, transport: RegistryTransport,
                 catalog: HarborCatalog, cache: Optional[BlobCache] = None):
        """
        Initialize the store from its collaborators.

        Args:
            settings: Store settings
            transport: Registry transport (OrasTransport in production)
            catalog: Harbor management API client
            cache: Blob cache (defaults to settings.cache_dir)
        """
        self.settings = settings
        self.transport = transport
        self.catalog = catalog
        self.cache = cache or BlobCache(settings.cache_dir)

    @classmethod
    def from_settings(cls, settings: Settings) -> FileStore:
        """Build a store wired to oras-py and the Harbor REST API."""
        from .storage.oras_transport import OrasTransport

        return cls(
            settings,
            transport=OrasTransport(settings=settings),
            catalog=HarborCatalog(settings),
        )

    @staticmethod
    def _address(address: AddressLike) -> StoreAddress:
        if isinstance(address, StoreAddress):
            return address
        return parse_store_address(address)

    # Repository lifecycle

    def create_repository_if_not_exist(self, address: AddressLike, tag: str) -> bool:
        """Bootstrap ``address:tag`` if absent. Returns True if it was created."""
        return ensure_repository(self.transport, self._address(address), tag)

    def delete_image(self, address: AddressLike, tag: str) -> None:
        """
        Delete the manifest ``tag`` points to.

        Location records for the repository are dropped as well: once the
        registry garbage-collects unreferenced blobs, a re-upload must push
        them again.
        """
        parsed = self._address(address)
        self.transport.delete_image(parsed.reference(tag))
        self.cache.forget_repository(parsed.location)

    def delete_repository(self, address: AddressLike) -> None:
        """Delete the whole repository through the Harbor API."""
        parsed = self._address(address)
        self.catalog.delete_repository(parsed)
        self.cache.forget_repository(parsed.location)

    # Upload

    def upload_file(self, local_path: PathLike, address: AddressLike, tag: str) -> BlobDescriptor:
        """
        Push a local file and make it the newest layer of ``address:tag``.

        The repository must already exist (see create_repository_if_not_exist).

        Returns:
            Descriptor of the pushed blob; its digest is the handle for
            download_*_by_digest

        Raises:
            FileNotFoundError: If local_path is not a file
            NotFound: If the tag has no manifest
            TransportError: If the push fails
        """
        path = Path(local_path)
        if not path.is_file():
            raise FileNotFoundError(f"Local file not found: {path}")

        parsed = self._address(address)
        size = path.stat().st_size
        descriptor = self.transport.put_blob(parsed.reference(tag), path, size, self.cache)
        append_blob(self.transport, parsed, tag, descriptor)

        logger.info(f"Stored {path} in {parsed.reference(tag)} as {descriptor.digest}")
        return descriptor

    # Download

    def download_reader_by_descriptor(self, address: AddressLike, tag: str,
                                      descriptor: BlobDescriptor) -> Tuple[BinaryIO, int]:
        """
        Open the blob for ``descriptor`` without any manifest lookup.

        Returns:
            (reader, size); close the reader when done
        """
        self.cache.ensure_root()
        parsed = self._address(address)
        return self.transport.get_blob(parsed.reference(tag), descriptor, self.cache)

    def download_reader_by_digest(self, address: AddressLike, tag: str,
                                  digest: str) -> Tuple[BinaryIO, int]:
        """Open the blob with ``digest``; size is unknown up front."""
        return self.download_reader_by_descriptor(address, tag, BlobDescriptor(digest=digest))

    def download_reader(self, address: AddressLike, tag: str) -> Tuple[BinaryIO, int]:
        """Open the newest file stored under ``address:tag``."""
        digest = self.latest_layer_digest(address, tag)
        return self.download_reader_by_digest(address, tag, digest)

    def download_file_by_descriptor(self, address: AddressLike, tag: str,
                                    target_path: PathLike, descriptor: BlobDescriptor) -> Path:
        reader, _ = self.download_reader_by_descriptor(address, tag, descriptor)
        return self._write_reader(reader, target_path)

    def download_file_by_digest(self, address: AddressLike, tag: str, digest: str,
                                target_path: PathLike) -> Path:
        reader, _ = self.download_reader_by_digest(address, tag, digest)
        return self._write_reader(reader, target_path)

    def download_file(self, address: AddressLike, tag: str, target_path: PathLike) -> Path:
        """Write the newest file stored under ``address:tag`` to ``target_path``."""
        reader, _ = self.download_reader(address, tag)
        return self._write_reader(reader, target_path)

    @staticmethod
    def _write_reader(reader: BinaryIO, target_path: PathLike) -> Path:
        target = Path(target_path)
        with reader:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "wb") as out:
                shutil.copyfileobj(reader, out, CHUNK_SIZE)
        return target

    # Resolution

    def manifest(self, address: AddressLike, tag: str) -> Manifest:
        """Fetch and decode the manifest of ``address:tag``."""
        parsed = self._address(address)
        return Manifest.from_bytes(self.transport.get_manifest(parsed.reference(tag)))

    def latest_layer_digest(self, address: AddressLike, tag: str) -> str:
        """Digest of ``layers[0]`` in the tag's manifest."""
        return _latest_layer_digest(self.transport, self._address(address), tag)

    def blob_digest(self, address: AddressLike, tag: str) -> str:
        """Digest of the blob a tag-based download would return."""
        return self.latest_layer_digest(address, tag)

    def latest_artifact_digest(self, address: AddressLike) -> str:
        """Digest of the newest Harbor artifact, or "" for an empty repository."""
        return _latest_artifact_digest(
            self.catalog,
            self._address(address),
            page_size=self.settings.artifact_page_size,
            strategy=self.settings.latest_artifact_by,
        )

    def close(self) -> None:
        self.catalog.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
