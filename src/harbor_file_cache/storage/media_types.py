"""
OCI media types and constants.

Single source of truth for all OCI-related media types used by the store.
"""
from __future__ import annotations

OCI_IMAGE_MANIFEST = "application/vnd.oci.image.manifest.v1+json"

# Config type for the bootstrap image
OCI_IMAGE_CONFIG = "application/vnd.oci.image.config.v1+json"

# Every stored file is recorded as a compressed tar layer
OCI_IMAGE_LAYER = "application/vnd.oci.image.layer.v1.tar+gzip"


__all__ = [
    "OCI_IMAGE_MANIFEST",
    "OCI_IMAGE_CONFIG",
    "OCI_IMAGE_LAYER",
]
