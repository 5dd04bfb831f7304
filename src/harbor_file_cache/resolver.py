"""
Latest-version resolution.

Two independent answers to "which blob is newest":

- latest_layer_digest reads the tag's manifest and takes ``layers[0]``.
- latest_artifact_digest asks Harbor's artifact listing and picks the artifact
  with the highest id (or the latest push time).

They can disagree, e.g. when a manifest push failed after its blob upload was
short-circuited, so they are kept as separate operations.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from .models import Artifact, Manifest
from .settings import LATEST_BY_ID, LATEST_BY_PUSH_TIME
from .storage.address import StoreAddress
from .storage.catalog import HarborCatalog
from .storage.transport import RegistryTransport

__all__ = ["latest_layer_digest", "latest_artifact_digest", "pick_latest_artifact"]

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def latest_layer_digest(transport: RegistryTransport, address: StoreAddress, tag: str) -> str:
    """
    Return the digest of the newest layer in ``address:tag``.

    Raises:
        NoLayers: If the manifest has no layers
        MalformedLayer: If the first layer has no digest
        NotFound: If the tag doesn't exist
    """
    manifest = Manifest.from_bytes(transport.get_manifest(address.reference(tag)))
    return manifest.latest_layer().digest


def _push_time_key(artifact: Artifact) -> datetime:
    push_time = artifact.push_time
    if push_time is None:
        return _EPOCH
    if push_time.tzinfo is None:
        return push_time.replace(tzinfo=timezone.utc)
    return push_time


def pick_latest_artifact(artifacts: list[Artifact], strategy: str = LATEST_BY_ID) -> Optional[Artifact]:
    """Pick the most recent artifact from a listing page, or None if empty."""
    if not artifacts:
        return None
    if strategy == LATEST_BY_PUSH_TIME:
        return max(artifacts, key=_push_time_key)
    return max(artifacts, key=lambda artifact: artifact.id)


def latest_artifact_digest(catalog: HarborCatalog, address: StoreAddress, *,
                           page_size: int = 1, strategy: str = LATEST_BY_ID) -> str:
    """
    Return the digest of the repository's most recent artifact.

    Only the first page of the listing is consulted.

    Returns:
        Artifact digest, or "" when the repository has no artifacts

    Raises:
        HTTPStatusError: If the listing request fails
    """
    artifacts = catalog.list_artifacts(address, page_size=page_size, page=1)
    latest = pick_latest_artifact(artifacts, strategy)
    if latest is None:
        logger.debug(f"No artifacts in {address.namespace}/{address.repository}")
        return ""
    return latest.digest
