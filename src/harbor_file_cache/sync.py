"""
Manifest synchronization.

Splices a freshly pushed blob into the manifest a tag points to. The update is
a plain read-modify-write of the whole manifest: there is no ETag or
conditional write, so two concurrent appends to the same tag can lose one of
the layers. A lost update only shows up when the manifest is read again.
"""
from __future__ import annotations

import logging

from .models import BlobDescriptor, Descriptor, Manifest
from .storage.address import StoreAddress
from .storage.media_types import OCI_IMAGE_LAYER
from .storage.transport import RegistryTransport

__all__ = ["append_blob"]

logger = logging.getLogger(__name__)


def append_blob(transport: RegistryTransport, address: StoreAddress, tag: str,
                blob: BlobDescriptor) -> Manifest:
    """
    Add ``blob`` as the newest layer of ``address:tag``.

    The new layer goes to position 0, so ``layers[0]`` is always the most
    recently appended file. Fields of the manifest that are not config or
    layers are written back unchanged.

    Args:
        transport: Registry transport
        address: Parsed store address
        tag: Tag whose manifest is updated
        blob: Descriptor returned by the blob upload

    Returns:
        The manifest that was pushed

    Raises:
        NotFound: If the tag has no manifest yet
        MalformedManifest: If the current manifest cannot be decoded
        TransportError: If fetching or pushing fails
    """
    reference = address.reference(tag)
    manifest = Manifest.from_bytes(transport.get_manifest(reference))

    layer = Descriptor.for_blob(blob, OCI_IMAGE_LAYER)
    updated = manifest.with_layer_prepended(layer)

    transport.put_manifest(reference, updated.to_bytes())
    logger.debug(f"Appended {blob.digest} to {reference} ({updated.layer_count} layers)")
    return updated
