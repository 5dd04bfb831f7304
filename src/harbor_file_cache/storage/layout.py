"""
Minimal on-disk image layout.

A registry cannot create a manifest from nothing, so a brand-new repository
is seeded by pushing a tiny image: one placeholder config blob and a manifest
that references it with an empty layer list.

Layout:

    <dir>/blobs/sha256/<config hex>
    <dir>/manifest.json
"""
from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from pathlib import Path
from typing import List

from .media_types import OCI_IMAGE_CONFIG, OCI_IMAGE_MANIFEST

__all__ = ["ImageLayout", "create_image_layout", "read_image_layout", "PLACEHOLDER_CONFIG"]

PLACEHOLDER_CONFIG = {
    "architecture": "amd64",
    "os": "linux",
    "config": {"User": "1000:1000"},
    "rootfs": {"type": "layers", "diff_ids": []},
}

MANIFEST_FILENAME = "manifest.json"


@dataclass(frozen=True)
class ImageLayout:
    """Files that make up an image layout on disk."""
    root: Path
    manifest_path: Path
    blob_paths: List[Path]

    def manifest_bytes(self) -> bytes:
        return self.manifest_path.read_bytes()


def create_image_layout(layout_dir: Path) -> ImageLayout:
    """
    Write a minimal image layout into ``layout_dir``.

    Args:
        layout_dir: Directory to populate (created if missing)

    Returns:
        ImageLayout describing the written files
    """
    blobs_dir = layout_dir / "blobs" / "sha256"
    blobs_dir.mkdir(parents=True, exist_ok=True)

    config_bytes = json.dumps(PLACEHOLDER_CONFIG, sort_keys=True, separators=(",", ":")).encode("utf-8")
    config_hex = hashlib.sha256(config_bytes).hexdigest()
    config_path = blobs_dir / config_hex
    config_path.write_bytes(config_bytes)

    manifest = {
        "schemaVersion": 2,
        "mediaType": OCI_IMAGE_MANIFEST,
        "config": {
            "mediaType": OCI_IMAGE_CONFIG,
            "digest": f"sha256:{config_hex}",
            "size": len(config_bytes),
        },
        "layers": [],
    }
    manifest_path = layout_dir / MANIFEST_FILENAME
    manifest_path.write_bytes(json.dumps(manifest, separators=(",", ":")).encode("utf-8"))

    return ImageLayout(root=layout_dir, manifest_path=manifest_path, blob_paths=[config_path])


def read_image_layout(layout_dir: Path) -> ImageLayout:
    """
    Load an image layout previously written by create_image_layout.

    Raises:
        FileNotFoundError: If manifest.json is missing
    """
    manifest_path = layout_dir / MANIFEST_FILENAME
    if not manifest_path.is_file():
        raise FileNotFoundError(f"No {MANIFEST_FILENAME} in image layout {layout_dir}")

    blobs_dir = layout_dir / "blobs" / "sha256"
    blob_paths = sorted(p for p in blobs_dir.iterdir() if p.is_file()) if blobs_dir.is_dir() else []
    return ImageLayout(root=layout_dir, manifest_path=manifest_path, blob_paths=blob_paths)
