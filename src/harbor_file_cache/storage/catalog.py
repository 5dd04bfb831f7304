"""
Harbor management API client.

Lists repository artifacts and deletes repositories through Harbor's REST API
(``/api/v2.0``). Independent of the OCI transport and never touches the
blob cache.
"""
from __future__ import annotations

import logging
from typing import List, Optional

import httpx
from pydantic import ValidationError
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from .. import __version__
from ..errors import HTTPStatusError, TransportError
from ..models import Artifact
from ..settings import Settings
from .address import StoreAddress

__all__ = ["HarborCatalog"]

logger = logging.getLogger(__name__)

# Fixed listing flags; only pagination varies between calls
_LISTING_FLAGS = {
    "with_tag": "false",
    "with_scan_overview": "true",
    "with_label": "true",
    "with_accessory": "false",
}


class HarborCatalog:
    """
    HTTP client for Harbor's artifact and repository endpoints.

    Uses HTTP basic auth with the store credentials. Timed-out requests are
    retried ``settings.http_retry`` times; everything else surfaces at once.
    """

    def __init__(self, settings: Settings, client: Optional[httpx.Client] = None):
        """
        Initialize the catalog client.

        Args:
            settings: Store settings (credentials, scheme, timeout, retries)
            client: Optional preconfigured httpx client (tests inject a MockTransport here)
        """
        self._settings = settings
        self.client = client or httpx.Client(
            timeout=httpx.Timeout(settings.http_timeout_s),
            follow_redirects=True,
            verify=not settings.registry_insecure,
            headers={"User-Agent": f"harbor-file-cache/{__version__}"},
        )
        self._auth = (
            (settings.registry_user, settings.registry_pass)
            if settings.has_credentials else None
        )

    def base_url(self, address: StoreAddress) -> str:
        return f"{self._settings.scheme}://{address.registry}"

    def _repository_url(self, address: StoreAddress) -> str:
        return (
            f"{self.base_url(address)}/api/v2.0/projects/{address.namespace}"
            f"/repositories/{address.repository}"
        )

    def list_artifacts(self, address: StoreAddress, page_size: int = 1,
                       page: int = 1) -> List[Artifact]:
        """
        Fetch one page of artifacts for the address's repository.

        Args:
            address: Parsed store address (project = namespace)
            page_size: Harbor page size
            page: 1-based page number

        Returns:
            Artifacts in the order Harbor returned them

        Raises:
            HTTPStatusError: If Harbor answers with anything but 200
            TransportError: On network errors or an unreadable response body
        """
        url = f"{self._repository_url(address)}/artifacts"
        params = dict(_LISTING_FLAGS, page_size=page_size, page=page)
        logger.debug(f"Listing artifacts: {url} page={page} page_size={page_size}")

        response = self._request("GET", url, params=params)
        if response.status_code != 200:
            raise HTTPStatusError(
                "Failed to list artifacts",
                response.status_code, address.namespace, address.repository,
            )

        try:
            records = response.json()
        except ValueError as e:
            raise TransportError(f"Invalid artifact listing JSON for {address.original}: {e}") from e

        if records is None:
            return []
        if not isinstance(records, list):
            raise TransportError(f"Artifact listing for {address.original} is not a list")

        try:
            return [Artifact.model_validate(record) for record in records]
        except ValidationError as e:
            raise TransportError(f"Unexpected artifact record for {address.original}: {e}") from e

    def delete_repository(self, address: StoreAddress) -> None:
        """
        Delete the address's repository with all its artifacts.

        Raises:
            HTTPStatusError: If Harbor answers with anything but 200
            TransportError: On network errors
        """
        url = self._repository_url(address)
        response = self._request("DELETE", url)
        if response.status_code != 200:
            raise HTTPStatusError(
                "Failed to delete repo",
                response.status_code, address.namespace, address.repository,
            )
        logger.info(f"Deleted repository {address.namespace}/{address.repository}")

    def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        retrying = Retrying(
            stop=stop_after_attempt(self._settings.http_retry + 1),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type(httpx.TimeoutException),
            reraise=True,
        )
        try:
            for attempt in retrying:
                with attempt:
                    return self.client.request(method, url, auth=self._auth, **kwargs)
        except httpx.RequestError as e:
            raise TransportError(f"Network error for {method} {url}: {e}") from e
        raise TransportError(f"No response for {method} {url}")

    def close(self):
        """Close HTTP client."""
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
