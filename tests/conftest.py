"""Root pytest configuration for harbor-file-cache tests."""
import pytest

from harbor_file_cache.settings import Settings
from harbor_file_cache.storage.address import parse_store_address
from harbor_file_cache.storage.blob_cache import BlobCache
from harbor_file_cache.store import FileStore
from .storage.fakes.fake_harbor import FakeHarbor

# Import fixtures to make them available
from .fixtures.oci_registry import oci_registry


# Configure pytest markers
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (requires Docker)"
    )
    config.addinivalue_line(
        "markers",
        "slow: mark test as slow (may take significant time)"
    )


# Set up test environment variables
@pytest.fixture(autouse=True)
def test_env(monkeypatch, tmp_path):
    """Point the store at a throwaway cache dir and clear credentials."""
    monkeypatch.setenv("HARBOR_FILE_CACHE_DIR", str(tmp_path / "env-cache"))
    monkeypatch.setenv("HARBOR_INSECURE", "true")
    monkeypatch.delenv("HARBOR_USERNAME", raising=False)
    monkeypatch.delenv("HARBOR_PASSWORD", raising=False)
    monkeypatch.delenv("HARBOR_LATEST_ARTIFACT_BY", raising=False)
    monkeypatch.delenv("HARBOR_ARTIFACT_PAGE_SIZE", raising=False)


# Standardized test fixtures
@pytest.fixture
def settings(tmp_path):
    """Standard test settings with a per-test cache directory."""
    return Settings(
        registry_user="admin",
        registry_pass="Harbor12345",
        registry_insecure=True,
        cache_dir=str(tmp_path / "cache"),
    )


@pytest.fixture
def cache(settings):
    return BlobCache(settings.cache_dir)


@pytest.fixture
def harbor():
    """In-memory Harbor: registry transport and management API in one."""
    return FakeHarbor()


@pytest.fixture
def store(settings, harbor, cache):
    """FileStore wired to the fake Harbor."""
    return FileStore(settings, transport=harbor, catalog=harbor, cache=cache)


@pytest.fixture
def address():
    return parse_store_address("harbor.local/proj/files")


@pytest.fixture
def make_file(tmp_path):
    """Write a local file with the given content and return its path."""
    def _make(name: str, content: bytes):
        path = tmp_path / "src" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path
    return _make
