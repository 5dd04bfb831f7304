"""Tests for the bootstrap image layout."""
from __future__ import annotations

import hashlib
import json

import pytest

from harbor_file_cache.storage.layout import PLACEHOLDER_CONFIG, create_image_layout, read_image_layout
from harbor_file_cache.storage.media_types import OCI_IMAGE_CONFIG, OCI_IMAGE_MANIFEST


def test_layout_is_valid_empty_image(tmp_path):
    layout = create_image_layout(tmp_path / "layout")
    manifest = json.loads(layout.manifest_bytes())

    assert manifest["schemaVersion"] == 2
    assert manifest["mediaType"] == OCI_IMAGE_MANIFEST
    assert manifest["layers"] == []
    assert manifest["config"]["mediaType"] == OCI_IMAGE_CONFIG


def test_config_blob_matches_descriptor(tmp_path):
    """The config blob on disk hashes to the digest the manifest names."""
    layout = create_image_layout(tmp_path / "layout")
    manifest = json.loads(layout.manifest_bytes())
    config_path = layout.blob_paths[0]
    config_bytes = config_path.read_bytes()

    assert manifest["config"]["digest"] == f"sha256:{hashlib.sha256(config_bytes).hexdigest()}"
    assert manifest["config"]["size"] == len(config_bytes)
    assert json.loads(config_bytes) == PLACEHOLDER_CONFIG


def test_read_layout_round_trip(tmp_path):
    written = create_image_layout(tmp_path / "layout")
    read = read_image_layout(tmp_path / "layout")

    assert read.manifest_path == written.manifest_path
    assert read.blob_paths == written.blob_paths


def test_read_layout_without_manifest(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_image_layout(tmp_path)
