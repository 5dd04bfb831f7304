"""Tests for repository bootstrap."""
from __future__ import annotations

from unittest.mock import Mock

import pytest

from harbor_file_cache.bootstrap import ensure_repository, repository_exists
from harbor_file_cache.errors import NotFound, TransportError
from harbor_file_cache.models import Manifest
from harbor_file_cache.storage.media_types import OCI_IMAGE_MANIFEST


class TestEnsureRepository:

    def test_creates_missing_repository(self, harbor, address):
        assert not repository_exists(harbor, address, "latest")

        assert ensure_repository(harbor, address, "latest") is True

        manifest = harbor.manifest_dict(address.reference("latest"))
        assert manifest["mediaType"] == OCI_IMAGE_MANIFEST
        assert manifest["layers"] == []
        config_digest = manifest["config"]["digest"]
        assert harbor.blob_bytes(address.location, config_digest)

    def test_second_call_does_not_push(self, harbor, address):
        ensure_repository(harbor, address, "latest")
        pushes = harbor.manifest_pushes

        assert ensure_repository(harbor, address, "latest") is False
        assert harbor.manifest_pushes == pushes

    def test_existing_repository_is_untouched(self, harbor, address):
        reference = address.reference("latest")
        harbor.set_manifest(reference, {"schemaVersion": 2, "layers": [{"digest": "sha256:" + "a" * 64}]})

        ensure_repository(harbor, address, "latest")

        assert harbor.manifest_pushes == 0
        assert harbor.manifest_dict(reference)["layers"][0]["digest"] == "sha256:" + "a" * 64

    def test_bootstrapped_manifest_has_no_latest_layer(self, harbor, address):
        ensure_repository(harbor, address, "latest")

        manifest = Manifest.from_bytes(harbor.get_manifest(address.reference("latest")))
        assert manifest.layer_count == 0

    def test_tags_are_independent(self, harbor, address):
        ensure_repository(harbor, address, "latest")

        assert ensure_repository(harbor, address, "nightly") is True

    def test_transport_errors_propagate(self, address):
        transport = Mock()
        transport.get_manifest.side_effect = TransportError("401 unauthorized")

        with pytest.raises(TransportError):
            ensure_repository(transport, address, "latest")
        transport.copy_image.assert_not_called()

    def test_layout_directory_is_removed(self, address):
        seen = []
        transport = Mock()
        transport.get_manifest.side_effect = NotFound("missing")
        transport.copy_image.side_effect = lambda layout_dir, reference: seen.append(layout_dir)

        ensure_repository(transport, address, "latest")

        assert len(seen) == 1
        assert not seen[0].exists()
        transport.copy_image.assert_called_once()
