"""
End-to-end tests for FileStore against the in-memory Harbor.

Covers upload/download round trips, digest-addressed retrieval, transfer
skipping through the local cache, and repository deletion.
"""
from __future__ import annotations

import hashlib
from datetime import datetime, timezone

import pytest

from harbor_file_cache.errors import HTTPStatusError, NoLayers, NotFound
from harbor_file_cache.models import BlobDescriptor
from harbor_file_cache.settings import Settings, LATEST_BY_PUSH_TIME
from harbor_file_cache.storage.blob_cache import BlobCache
from harbor_file_cache.store import FileStore

ADDRESS = "harbor.local/proj/files"


def _digest(data: bytes) -> str:
    return f"sha256:{hashlib.sha256(data).hexdigest()}"


@pytest.fixture
def file_a(make_file):
    return make_file("a.bin", b"A" * 200)


@pytest.fixture
def file_b(make_file):
    return make_file("b.bin", b"B" * 50)


class TestUploadDownload:

    def test_latest_file_wins(self, store, file_a, file_b, tmp_path):
        store.create_repository_if_not_exist(ADDRESS, "latest")
        desc_a = store.upload_file(file_a, ADDRESS, "latest")
        desc_b = store.upload_file(file_b, ADDRESS, "latest")

        assert desc_a.digest == _digest(b"A" * 200)
        assert desc_a.size == 200
        assert desc_b.size == 50
        assert store.latest_layer_digest(ADDRESS, "latest") == desc_b.digest
        assert store.blob_digest(ADDRESS, "latest") == desc_b.digest

        target = store.download_file(ADDRESS, "latest", tmp_path / "out" / "latest.bin")
        assert target.read_bytes() == b"B" * 50

    def test_older_file_by_digest(self, store, file_a, file_b, tmp_path):
        store.create_repository_if_not_exist(ADDRESS, "latest")
        desc_a = store.upload_file(file_a, ADDRESS, "latest")
        store.upload_file(file_b, ADDRESS, "latest")

        target = store.download_file_by_digest(ADDRESS, "latest", desc_a.digest, tmp_path / "a.out")

        assert target.read_bytes() == b"A" * 200

    def test_reader_reports_size(self, store, file_a):
        store.create_repository_if_not_exist(ADDRESS, "latest")
        store.upload_file(file_a, ADDRESS, "latest")

        reader, size = store.download_reader(ADDRESS, "latest")
        with reader:
            assert size == 200
            assert reader.read() == b"A" * 200

    def test_download_by_descriptor(self, store, file_a, tmp_path):
        store.create_repository_if_not_exist(ADDRESS, "latest")
        desc = store.upload_file(file_a, ADDRESS, "latest")

        reader, size = store.download_reader_by_descriptor(ADDRESS, "latest", desc)
        reader.close()
        target = store.download_file_by_descriptor(ADDRESS, "latest", tmp_path / "d.out", desc)

        assert size == 200
        assert target.read_bytes() == b"A" * 200

    def test_download_of_bootstrapped_repository(self, store):
        store.create_repository_if_not_exist(ADDRESS, "latest")

        with pytest.raises(NoLayers):
            store.download_reader(ADDRESS, "latest")

    def test_upload_requires_existing_repository(self, store, file_a):
        with pytest.raises(NotFound):
            store.upload_file(file_a, ADDRESS, "latest")

    def test_upload_missing_local_file(self, store, tmp_path):
        store.create_repository_if_not_exist(ADDRESS, "latest")

        with pytest.raises(FileNotFoundError):
            store.upload_file(tmp_path / "nope.bin", ADDRESS, "latest")

    def test_accepts_parsed_address(self, store, address, file_a):
        store.create_repository_if_not_exist(address, "latest")
        desc = store.upload_file(file_a, address, "latest")

        assert store.latest_layer_digest(ADDRESS, "latest") == desc.digest

    def test_manifest(self, store, file_a, file_b):
        store.create_repository_if_not_exist(ADDRESS, "latest")
        store.upload_file(file_a, ADDRESS, "latest")
        store.upload_file(file_b, ADDRESS, "latest")

        assert store.manifest(ADDRESS, "latest").layer_count == 2


class TestTransferSkipping:

    def test_second_upload_of_same_content_skips_transfer(self, store, harbor, file_a):
        store.create_repository_if_not_exist(ADDRESS, "latest")
        store.upload_file(file_a, ADDRESS, "latest")
        store.upload_file(file_a, ADDRESS, "latest")

        assert harbor.blob_uploads == 1
        assert store.manifest(ADDRESS, "latest").layer_count == 2

    def test_second_download_served_from_cache(self, store, harbor, file_a, tmp_path):
        store.create_repository_if_not_exist(ADDRESS, "latest")
        store.upload_file(file_a, ADDRESS, "latest")

        store.download_file(ADDRESS, "latest", tmp_path / "1.out")
        store.download_file(ADDRESS, "latest", tmp_path / "2.out")

        assert harbor.blob_downloads == 1
        assert (tmp_path / "2.out").read_bytes() == b"A" * 200

    def test_cache_directory_created_on_download(self, harbor, file_a, tmp_path):
        settings = Settings(cache_dir=str(tmp_path / "fresh-cache"))
        store = FileStore(settings, transport=harbor, catalog=harbor)
        store.create_repository_if_not_exist(ADDRESS, "latest")
        store.upload_file(file_a, ADDRESS, "latest")

        store.download_file(ADDRESS, "latest", tmp_path / "x.out")

        assert (tmp_path / "fresh-cache" / "blobs" / "sha256").is_dir()

    def test_independent_stores_do_not_share_cache(self, harbor, file_a, tmp_path):
        first = FileStore(Settings(cache_dir=str(tmp_path / "c1")), transport=harbor, catalog=harbor)
        second = FileStore(Settings(cache_dir=str(tmp_path / "c2")), transport=harbor, catalog=harbor)
        first.create_repository_if_not_exist(ADDRESS, "latest")
        first.upload_file(file_a, ADDRESS, "latest")

        first.download_file(ADDRESS, "latest", tmp_path / "1.out")
        second.download_file(ADDRESS, "latest", tmp_path / "2.out")

        assert harbor.blob_downloads == 2


class TestDeletion:

    def test_delete_image(self, store, file_a):
        store.create_repository_if_not_exist(ADDRESS, "latest")
        store.upload_file(file_a, ADDRESS, "latest")

        store.delete_image(ADDRESS, "latest")

        with pytest.raises(NotFound):
            store.latest_layer_digest(ADDRESS, "latest")

    def test_delete_image_forgets_known_blobs(self, store, cache, file_a):
        store.create_repository_if_not_exist(ADDRESS, "latest")
        desc = store.upload_file(file_a, ADDRESS, "latest")
        assert cache.knows(desc.digest, "harbor.local/proj/files")

        store.delete_image(ADDRESS, "latest")

        assert not cache.knows(desc.digest, "harbor.local/proj/files")

    def test_delete_missing_image(self, store):
        with pytest.raises(NotFound):
            store.delete_image(ADDRESS, "latest")

    def test_delete_repository_then_bootstrap_again(self, store, harbor, file_a):
        store.create_repository_if_not_exist(ADDRESS, "latest")
        store.upload_file(file_a, ADDRESS, "latest")

        store.delete_repository(ADDRESS)

        assert not harbor.has_repository("harbor.local/proj/files")
        assert store.create_repository_if_not_exist(ADDRESS, "latest") is True
        store.upload_file(file_a, ADDRESS, "latest")
        assert harbor.blob_uploads == 2
        assert harbor.blob_bytes("harbor.local/proj/files", _digest(b"A" * 200)) == b"A" * 200

    def test_delete_missing_repository(self, store):
        with pytest.raises(HTTPStatusError) as exc_info:
            store.delete_repository(ADDRESS)
        assert exc_info.value.status_code == 404


class TestLatestArtifact:

    def test_empty_repository(self, store):
        assert store.latest_artifact_digest(ADDRESS) == ""

    def test_newest_artifact_after_upload(self, store, harbor, file_a):
        store.create_repository_if_not_exist(ADDRESS, "latest")
        store.upload_file(file_a, ADDRESS, "latest")

        expected = _digest(harbor.get_manifest("harbor.local/proj/files:latest"))
        assert store.latest_artifact_digest(ADDRESS) == expected

    def test_push_time_strategy(self, harbor, tmp_path):
        settings = Settings(
            cache_dir=str(tmp_path),
            artifact_page_size=10,
            latest_artifact_by=LATEST_BY_PUSH_TIME,
        )
        store = FileStore(settings, transport=harbor, catalog=harbor, cache=BlobCache(tmp_path))
        harbor.add_artifact("harbor.local/proj/files", 9, "sha256:" + "9" * 64,
                            push_time=datetime(2024, 1, 1, tzinfo=timezone.utc))
        harbor.add_artifact("harbor.local/proj/files", 4, "sha256:" + "4" * 64,
                            push_time=datetime(2024, 3, 1, tzinfo=timezone.utc))

        assert store.latest_artifact_digest(ADDRESS) == "sha256:" + "4" * 64


def test_context_manager_closes_catalog(settings, harbor):
    with FileStore(settings, transport=harbor, catalog=harbor):
        pass
    assert harbor.closed


def test_descriptor_identity_is_digest(store, file_a):
    store.create_repository_if_not_exist(ADDRESS, "latest")
    desc = store.upload_file(file_a, ADDRESS, "latest")

    assert desc == BlobDescriptor(desc.digest)
