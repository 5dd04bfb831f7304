"""
Error classes for the Harbor file store.

Provides one taxonomy for failures coming from address parsing, the registry
transport, Harbor's management API, and manifest decoding. Transport and HTTP
failures are mapped into these types so callers never have to inspect
oras-py or httpx exceptions directly.
"""
from __future__ import annotations


class StoreError(Exception):
    """
    Base class for all file store errors.
    """
    pass


class InvalidAddress(StoreError, ValueError):
    """
    Store address could not be decomposed.

    Raised when:
    - the address has no path after the hostname
    - the repository segment is empty after tag handling
    """
    pass


class TransportError(StoreError):
    """
    Registry transport failure other than "not found".

    Raised when:
    - HTTP 401/403 from the registry
    - network errors while pushing or pulling
    - registry rejects a blob or manifest upload
    """
    pass


class NotFound(StoreError):
    """
    Repository, tag, or blob does not exist in the registry.

    Used by bootstrap to decide whether a repository must be created.
    """
    pass


class HTTPStatusError(StoreError):
    """
    Harbor management API returned a non-200 status.

    The target project and repository are kept on the exception and embedded
    in the message so failures can be traced back to a request.
    """

    def __init__(self, message: str, status_code: int, project: str, repository: str):
        super().__init__(
            f"{message}. Status code: {status_code}, "
            f"project name: {project}, repo name: {repository}"
        )
        self.status_code = status_code
        self.project = project
        self.repository = repository


class MalformedManifest(StoreError):
    """
    Manifest does not have the expected shape.

    Raised when:
    - manifest bytes are not a JSON object
    - config or layer entries are not JSON objects
    """
    pass


class NoLayers(MalformedManifest):
    """Manifest has no layers field, or the layer list is empty."""
    pass


class MalformedLayer(MalformedManifest):
    """First layer entry has no digest."""
    pass


class DigestMismatch(StoreError):
    """
    Blob content does not hash to the digest it was requested by.
    """

    def __init__(self, message: str, expected: str | None = None, actual: str | None = None):
        super().__init__(message)
        self.expected = expected
        self.actual = actual


__all__ = [
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
