"""
Store address parsing.

Decomposes a Harbor store address (URL or bare ``host/project/repo`` path)
into the pieces needed by the registry transport and the Harbor management API.
"""
from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlparse

from ..errors import InvalidAddress

__all__ = ["StoreAddress", "parse_store_address"]


@dataclass(frozen=True)
class StoreAddress:
    """
    Parsed components of a store address.

    Attributes:
        hostname: Registry hostname (no port when parsed from a URL)
        namespace: Harbor project, the first path segment
        repository: Repository name, the last path segment without its tag suffix
        registry: Registry host[:port] used to build image references and API URLs
        repository_path: Repository path below the registry (e.g. "proj/repo")
        original: Original address string for error messages

    For nested paths such as ``host/proj/sub/files`` the registry transport
    works on ``proj/sub/files`` while the Harbor API calls (artifact listing,
    repository deletion) address ``namespace/repository``, i.e. ``proj/files``.
    Use two-segment addresses when both must refer to the same repository.
    """
    hostname: str
    namespace: str
    repository: str
    registry: str
    repository_path: str
    original: str

    @property
    def location(self) -> str:
        """Repository location without a tag, e.g. 'harbor.local/proj/files'."""
        return f"{self.registry}/{self.repository_path}"

    def reference(self, tag: str) -> str:
        """
        Build the image reference for a tag.

        Examples:
            >>> parse_store_address("harbor.local/proj/files").reference("latest")
            'harbor.local/proj/files:latest'
        """
        if not tag:
            raise InvalidAddress(f"Tag cannot be empty for {self.original}")
        return f"{self.location}:{tag}"


def _split_host_and_path(address: str) -> tuple[str, str, str]:
    """Return (hostname, registry, path) for a URL or bare path."""
    if address.startswith(("http://", "https://")):
        parsed = urlparse(address)
        return parsed.hostname or "", parsed.netloc, parsed.path

    host, _, path = address.partition("/")
    return host, host, path


def _normalize_repository(segment: str) -> str:
    parts = segment.split(":")
    if len(parts) == 1:
        return parts[0]
    if len(parts) == 2:
        return parts[0]
    # Names like "ubuntu:22.04-cuda:latest" keep everything before the tag
    return "-".join(parts[:-1])


def parse_store_address(address: str) -> StoreAddress:
    """
    Parse and validate a store address.

    Accepts ``https://host[:port]/project/repo[:tag]`` or
    ``host[:port]/project/repo[:tag]``. The first path segment is the Harbor
    project; the last one is the repository. A trailing ``:tag`` is dropped, and
    when the last segment holds more than one colon every part but the final
    one is rejoined with ``-``.

    Args:
        address: Store address to parse

    Returns:
        StoreAddress with validated components

    Raises:
        InvalidAddress: If the address has no path or the repository is empty

    Examples:
        >>> parse_store_address("hub.example.com/vmimages/ubuntu:22.04:latest").repository
        'ubuntu-22.04'
    """
    if not address or not address.strip():
        raise InvalidAddress("Store address cannot be empty")

    original = address
    address = address.strip()

    hostname, registry, path = _split_host_and_path(address)
    if not hostname:
        raise InvalidAddress(f"Store address has no hostname: {original}")

    path = path.strip("/")
    if not path:
        raise InvalidAddress(f"Store address has no repository path: {original}")

    segments = path.split("/")
    repository = _normalize_repository(segments[-1])
    if not repository:
        raise InvalidAddress(f"Repository name cannot be empty: {original}")

    namespace = segments[0] if len(segments) > 1 else repository
    repository_path = "/".join(segments[:-1] + [repository])

    return StoreAddress(
        hostname=hostname,
        namespace=namespace,
        repository=repository,
        registry=registry,
        repository_path=repository_path,
        original=original,
    )
