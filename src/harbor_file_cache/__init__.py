"""
harbor-file-cache - a digest-addressed file store backed by a Harbor registry.

Files are pushed as registry blobs and listed as layers of a tag's manifest,
newest first. Blobs already present locally or remotely are not transferred
again.
"""
__version__ = "0.1.0"

from .errors import (
    DigestMismatch,
    HTTPStatusError,
    InvalidAddress,
    MalformedLayer,
    MalformedManifest,
    NoLayers,
    NotFound,
    StoreError,
    TransportError,
)
from .models import BlobDescriptor
from .settings import Settings, create_settings_from_env
from .storage.address import StoreAddress, parse_store_address
from .store import FileStore

__all__ = [
    "__version__",
    "FileStore",
    "Settings",
    "create_settings_from_env",
    "StoreAddress",
    "parse_store_address",
    "BlobDescriptor",
    "StoreError",
    "InvalidAddress",
    "TransportError",
    "NotFound",
    "HTTPStatusError",
    "MalformedManifest",
    "NoLayers",
    "MalformedLayer",
    "DigestMismatch",
]
