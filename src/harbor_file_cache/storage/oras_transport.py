"""
ORAS registry transport.

Implements RegistryTransport using oras-py. Handles authentication, blob
deduplication against the registry and the local cache, and pushing the
bootstrap image layout.
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import BinaryIO, Dict, Optional, Tuple

import oras.client

from ..errors import NotFound, TransportError
from ..models import BlobDescriptor
from ..settings import Settings
from .blob_cache import CHUNK_SIZE, BlobCache, file_digest
from .layout import read_image_layout
from .media_types import OCI_IMAGE_LAYER

__all__ = ["OrasTransport", "split_reference"]

logger = logging.getLogger(__name__)

_OK_STATUSES = (200, 201, 202)

_REASON_STATUS = {
    "not found": 404,
    "unauthorized": 401,
    "forbidden": 403,
}


def split_reference(reference: str) -> Tuple[str, str, str]:
    """
    Split ``registry/path:tag`` into (registry, repository location, tag).

    The repository location is ``registry/path`` and is the key used for the
    cache's remote location records.
    """
    location, sep, tag = reference.rpartition(":")
    if not sep or "/" in tag or "/" not in location:
        raise ValueError(f"Invalid image reference (expected registry/repo:tag): {reference}")
    registry = location.split("/", 1)[0]
    return registry, location, tag


def _error_status(error: Exception) -> Optional[int]:
    """HTTP status of a failed oras/requests call, if one can be determined."""
    response = getattr(error, "response", None)
    status = getattr(response, "status_code", None)
    if isinstance(status, int):
        return status

    # oras-py raises ValueError("Issue with <url>: <reason>"); only the reason is matched
    reason = str(error).rstrip().rpartition(": ")[2].lower()
    return _REASON_STATUS.get(reason)


def _map_error(error: Exception, what: str) -> Exception:
    """Map an oras/requests failure onto NotFound or TransportError."""
    message = str(error)
    status = _error_status(error)
    if status == 404:
        return NotFound(f"{what} not found: {message}")
    if status in (401, 403):
        return TransportError(f"Registry authentication failed for {what}: {message}")
    return TransportError(f"Registry error for {what}: {message}")


def _check_response(response, what: str) -> None:
    status = response.status_code
    if status in _OK_STATUSES:
        return
    if status == 404:
        raise NotFound(f"{what} not found")
    if status in (401, 403):
        raise TransportError(f"Registry authentication failed for {what}")
    raise TransportError(f"Registry error {status} for {what}: {response.text[:200]}")


class OrasTransport:
    """
    RegistryTransport backed by oras-py.

    One OrasClient is created lazily per registry host and reused for the
    lifetime of the transport.
    """

    def __init__(self, *, settings: Settings) -> None:
        self._settings = settings
        self._clients: Dict[str, oras.client.OrasClient] = {}

    def _client(self, registry: str) -> oras.client.OrasClient:
        """Lazy initialize the ORAS client for a registry host."""
        client = self._clients.get(registry)
        if client is None:
            client = oras.client.OrasClient(
                hostname=registry,
                insecure=self._settings.registry_insecure,
            )
            if self._settings.has_credentials:
                client.login(
                    username=self._settings.registry_user,
                    password=self._settings.registry_pass,
                    insecure=self._settings.registry_insecure,
                    hostname=registry,
                )
                logger.debug(f"Using explicit username/password auth for {registry}")
            else:
                logger.debug(f"No auth configured for {registry}, proceeding anonymous")
            self._clients[registry] = client
        return client

    def _resolve(self, reference: str):
        registry, location, tag = split_reference(reference)
        client = self._client(registry)
        container = client.remote.get_container(reference)
        return client, container, location, tag

    def _blob_exists(self, client, container, digest: str) -> bool:
        """HEAD a blob. Never raises; any failure counts as absent."""
        try:
            response = client.remote.get_blob(container=container, digest=digest, head=True)
            return response.status_code == 200
        except Exception as e:
            logger.debug(f"Blob HEAD failed for {container}@{digest}: {e}")
            return False

    def _upload_blob(self, client, container, path: Path, layer: dict) -> None:
        what = f"blob {layer['digest']}"
        try:
            response = client.remote.upload_blob(blob=str(path), container=container, layer=layer)
        except Exception as e:
            raise _map_error(e, what) from e
        _check_response(response, what)

    # Manifest operations

    def get_manifest(self, reference: str) -> bytes:
        client, container, _, _ = self._resolve(reference)
        try:
            manifest = client.remote.get_manifest(container=container)
        except Exception as e:
            raise _map_error(e, f"manifest {reference}") from e

        if isinstance(manifest, dict):
            return json.dumps(manifest, separators=(",", ":")).encode("utf-8")
        return manifest

    def put_manifest(self, reference: str, payload: bytes) -> None:
        client, container, _, _ = self._resolve(reference)
        manifest = json.loads(payload)
        try:
            response = client.remote.upload_manifest(manifest=manifest, container=container)
        except Exception as e:
            raise _map_error(e, f"manifest {reference}") from e
        _check_response(response, f"manifest {reference}")
        logger.debug(f"Pushed manifest for {reference}")

    # Blob operations

    def put_blob(self, reference: str, path: Path, size: int,
                 cache: BlobCache) -> BlobDescriptor:
        digest = file_digest(path)
        descriptor = BlobDescriptor(digest=digest, size=size, media_type=OCI_IMAGE_LAYER)
        client, container, location, _ = self._resolve(reference)

        if cache.knows(digest, location):
            logger.debug(f"Cache hit: {digest} already known at {location}, skipping upload")
            return descriptor

        if self._blob_exists(client, container, digest):
            logger.debug(f"Registry already has {digest} at {location}, skipping upload")
        else:
            layer = {"mediaType": OCI_IMAGE_LAYER, "digest": digest, "size": size}
            self._upload_blob(client, container, path, layer)
            logger.info(f"Uploaded {path} as {digest} ({size} bytes) to {location}")

        cache.remember(digest, location)
        return descriptor

    def get_blob(self, reference: str, descriptor: BlobDescriptor,
                 cache: BlobCache) -> Tuple[BinaryIO, int]:
        digest = descriptor.digest
        cached = cache.open_blob(digest)
        if cached is not None:
            logger.debug(f"Cache hit: serving {digest} from {cache.root}")
            return cached, os.fstat(cached.fileno()).st_size

        client, container, location, _ = self._resolve(reference)
        what = f"blob {location}@{digest}"
        try:
            response = client.remote.get_blob(container=container, digest=digest, stream=True)
        except Exception as e:
            raise _map_error(e, what) from e

        with response:
            _check_response(response, what)
            cache.ingest(digest, response.iter_content(chunk_size=CHUNK_SIZE),
                         expected_size=descriptor.size)

        cache.remember(digest, location)
        stream = cache.open_blob(digest)
        if stream is None:
            raise TransportError(f"Cached blob {digest} disappeared from {cache.root}")
        return stream, os.fstat(stream.fileno()).st_size

    # Image operations

    def copy_image(self, layout_dir: Path, reference: str) -> None:
        layout = read_image_layout(layout_dir)
        manifest = json.loads(layout.manifest_bytes())
        client, container, _, _ = self._resolve(reference)

        config = manifest.get("config") or {}
        for blob_path in layout.blob_paths:
            digest = f"sha256:{blob_path.name}"
            if self._blob_exists(client, container, digest):
                continue
            media_type = config.get("mediaType") if config.get("digest") == digest else OCI_IMAGE_LAYER
            layer = {"mediaType": media_type, "digest": digest, "size": blob_path.stat().st_size}
            self._upload_blob(client, container, blob_path, layer)

        what = f"manifest {reference}"
        try:
            response = client.remote.upload_manifest(manifest=manifest, container=container)
        except Exception as e:
            raise _map_error(e, what) from e
        _check_response(response, what)
        logger.info(f"Pushed image layout {layout_dir} to {reference}")

    def delete_image(self, reference: str) -> None:
        client, container, _, tag = self._resolve(reference)
        try:
            deleted = client.remote.delete_tag(container=container, tag=tag)
        except Exception as e:
            raise _map_error(e, f"image {reference}") from e
        if not deleted:
            raise NotFound(f"image {reference} not found")
        logger.info(f"Deleted image {reference}")
