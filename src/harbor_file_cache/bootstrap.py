"""
Repository bootstrap.

A registry's manifest push cannot start from nothing: appending a blob needs
an existing manifest to splice into. ensure_repository seeds a missing
repository with a minimal image (placeholder config, no layers).
"""
from __future__ import annotations

import logging
import tempfile
from pathlib import Path

from .errors import NotFound
from .storage.address import StoreAddress
from .storage.layout import create_image_layout
from .storage.transport import RegistryTransport

__all__ = ["repository_exists", "ensure_repository"]

logger = logging.getLogger(__name__)


def repository_exists(transport: RegistryTransport, address: StoreAddress, tag: str) -> bool:
    """
    Check whether ``address:tag`` has a manifest.

    Only NotFound counts as absence; any other transport failure propagates.
    """
    try:
        transport.get_manifest(address.reference(tag))
    except NotFound:
        return False
    return True


def ensure_repository(transport: RegistryTransport, address: StoreAddress, tag: str) -> bool:
    """
    Create the repository with a minimal first version if it does not exist.

    Not safe against concurrent callers bootstrapping the same tag: both may
    push, and the later push replaces the earlier manifest.

    Args:
        transport: Registry transport
        address: Parsed store address
        tag: Tag to create

    Returns:
        True if a bootstrap push happened, False if the repository existed

    Raises:
        TransportError: If the existence check or the push fails
    """
    reference = address.reference(tag)
    if repository_exists(transport, address, tag):
        logger.debug(f"Repository {reference} already exists")
        return False

    with tempfile.TemporaryDirectory(prefix=f"hfc-{address.repository}-") as tmpdir:
        layout = create_image_layout(Path(tmpdir))
        transport.copy_image(layout.root, reference)

    logger.info(f"Bootstrapped repository {reference}")
    return True
