"""
Settings and configuration for the Harbor file store.

Centralizes configuration values and provides validation with fail-fast behavior.
Loads settings from environment variables at store construction time.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

__all__ = [
    "Settings",
    "create_settings_from_env",
    "DEFAULT_CACHE_DIR",
    "LATEST_BY_ID",
    "LATEST_BY_PUSH_TIME",
]

DEFAULT_CACHE_DIR = "/var/lib/harbor-file-cache/"

# Artifact recency strategies for latest_artifact_digest
LATEST_BY_ID = "id"
LATEST_BY_PUSH_TIME = "push_time"
_LATEST_STRATEGIES = (LATEST_BY_ID, LATEST_BY_PUSH_TIME)


@dataclass(frozen=True)
class Settings:
    """
    Configuration settings for a FileStore.

    Registry Settings:
        registry_user: Username for registry and Harbor API basic auth
        registry_pass: Password for registry and Harbor API basic auth
        registry_insecure: Use plain HTTP for registry and API (local/dev use)
        http_timeout_s: Harbor API request timeout in seconds
        http_retry: Retries for timed-out Harbor API requests (0=no retry)

    Cache Settings:
        cache_dir: Local blob cache directory

    Resolution Settings:
        artifact_page_size: Page size used when listing artifacts for "latest"
        latest_artifact_by: Recency signal for artifacts ("id" or "push_time")
    """
    registry_user: Optional[str] = None
    registry_pass: Optional[str] = None
    registry_insecure: bool = False
    http_timeout_s: float = 30.0
    http_retry: int = 0

    cache_dir: str = DEFAULT_CACHE_DIR

    artifact_page_size: int = 1
    latest_artifact_by: str = LATEST_BY_ID

    def __post_init__(self):
        """Validate settings on construction."""
        if not self.cache_dir:
            raise ValueError("cache_dir is required")

        # Credentials are all-or-nothing
        if self.registry_user and not self.registry_pass:
            raise ValueError("registry_user specified but registry_pass is missing")
        if self.registry_pass and not self.registry_user:
            raise ValueError("registry_pass specified but registry_user is missing")

        if self.http_timeout_s <= 0:
            raise ValueError(f"http_timeout_s must be positive, got {self.http_timeout_s}")

        if self.http_retry < 0:
            raise ValueError(f"http_retry must be non-negative, got {self.http_retry}")

        if self.artifact_page_size < 1:
            raise ValueError(f"artifact_page_size must be at least 1, got {self.artifact_page_size}")

        if self.latest_artifact_by not in _LATEST_STRATEGIES:
            raise ValueError(
                f"Unknown latest_artifact_by: {self.latest_artifact_by}. "
                f"Supported values: {', '.join(_LATEST_STRATEGIES)}"
            )

    @property
    def scheme(self) -> str:
        """URL scheme used for the Harbor API."""
        return "http" if self.registry_insecure else "https"

    @property
    def has_credentials(self) -> bool:
        return bool(self.registry_user and self.registry_pass)


def create_settings_from_env() -> Settings:
    """
    Load settings from environment variables.

    Environment Variables:
        - HARBOR_USERNAME (optional)
        - HARBOR_PASSWORD (optional)
        - HARBOR_INSECURE (default: false)
        - HARBOR_HTTP_TIMEOUT (default: 30.0)
        - HARBOR_HTTP_RETRY (default: 0)
        - HARBOR_FILE_CACHE_DIR (default: /var/lib/harbor-file-cache/)
        - HARBOR_ARTIFACT_PAGE_SIZE (default: 1)
        - HARBOR_LATEST_ARTIFACT_BY (default: id)

    Returns:
        Settings object with validated configuration

    Raises:
        ValueError: If configuration is invalid

    Note:
        Creates a fresh Settings instance every time (no caching).
    """
    def str_to_bool(value: str) -> bool:
        return value.lower() in ('true', '1', 'yes', 'on')

    def get_float(key: str, default: float) -> float:
        value = os.getenv(key)
        return float(value) if value else default

    def get_int(key: str, default: int) -> int:
        value = os.getenv(key)
        return int(value) if value else default

    return Settings(
        registry_user=os.getenv("HARBOR_USERNAME") or None,
        registry_pass=os.getenv("HARBOR_PASSWORD") or None,
        registry_insecure=str_to_bool(os.getenv("HARBOR_INSECURE", "false")),
        http_timeout_s=get_float("HARBOR_HTTP_TIMEOUT", 30.0),
        http_retry=get_int("HARBOR_HTTP_RETRY", 0),
        cache_dir=os.getenv("HARBOR_FILE_CACHE_DIR") or DEFAULT_CACHE_DIR,
        artifact_page_size=get_int("HARBOR_ARTIFACT_PAGE_SIZE", 1),
        latest_artifact_by=os.getenv("HARBOR_LATEST_ARTIFACT_BY", LATEST_BY_ID).lower(),
    )
